from sqlalchemy import Column, String, JSON
from app.database import Base, UTCDateTime


class EmployeeRecord(Base):
    __tablename__ = "employees"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    role = Column(String, nullable=False, default="")
    hierarchy = Column(String, nullable=False, index=True)
    executive_type = Column(String, nullable=True)
    team_id = Column(String, nullable=True, index=True)
    reports_to = Column(String, nullable=True, index=True)
    dotted_line_reports_to = Column(JSON, nullable=True)
    employment_status = Column(String, nullable=True, default="permanent")
    created_at = Column(UTCDateTime, nullable=True)
    updated_at = Column(UTCDateTime, nullable=True)

    def __repr__(self):
        return f"<Employee {self.id}: {self.name} ({self.hierarchy})>"
