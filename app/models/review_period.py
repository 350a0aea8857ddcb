from sqlalchemy import Column, Date, Integer, String, Text
from app.database import Base, UTCDateTime


class ReviewPeriodRecord(Base):
    __tablename__ = "review_periods"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    type = Column(String, nullable=False)
    year = Column(Integer, nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)
    created_at = Column(UTCDateTime, nullable=True)
