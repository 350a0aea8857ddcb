from sqlalchemy import Column, String, Text, JSON
from app.database import Base, UTCDateTime


class PerformanceSummaryRecord(Base):
    __tablename__ = "performance_summaries"

    employee_id = Column(String, primary_key=True)
    period = Column(String, nullable=True)
    summary_text = Column(Text, nullable=False, default="")
    insights = Column(JSON, nullable=False, default=dict)  # scores, strengths, improvements, breakdown
    generated_at = Column(UTCDateTime, nullable=True)
