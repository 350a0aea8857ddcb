from sqlalchemy import Boolean, Column, String
from app.database import Base, UTCDateTime


class UserRecord(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    # Always stored lower-case
    username = Column(String, nullable=False, unique=True, index=True)
    password_hash = Column(String, nullable=False)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    role = Column(String, nullable=False, default="staff")
    active = Column(Boolean, nullable=False, default=True)
    employee_id = Column(String, nullable=True, index=True)
    must_change_password = Column(Boolean, nullable=False, default=False)
    created_at = Column(UTCDateTime, nullable=True)
    last_login_at = Column(UTCDateTime, nullable=True)

    def __repr__(self):
        return f"<User {self.username} ({self.role})>"
