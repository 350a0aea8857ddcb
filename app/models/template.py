from sqlalchemy import Column, Integer, String, JSON
from app.database import Base, UTCDateTime


class TemplateRecord(Base):
    __tablename__ = "templates"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    subtitle = Column(String, nullable=True)
    type = Column(String, nullable=False, index=True)
    categories = Column(JSON, nullable=False, default=list)  # categories -> items, as stored JSON
    created_at = Column(UTCDateTime, nullable=True)
    updated_at = Column(UTCDateTime, nullable=True)
    version = Column(Integer, nullable=False, default=1)
