from sqlalchemy import Column, String, Text, JSON
from app.database import Base, UTCDateTime


class TeamRecord(Base):
    __tablename__ = "teams"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    oversight_executive_id = Column(String, nullable=True)
    leader_ids = Column(JSON, nullable=True)
    created_at = Column(UTCDateTime, nullable=True)
