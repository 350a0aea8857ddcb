"""
Appraisal tables: submitted forms, invitation links and assignments.
"""
from sqlalchemy import Boolean, Column, Float, String, JSON
from app.database import Base, UTCDateTime


class AppraisalRecord(Base):
    __tablename__ = "appraisals"

    id = Column(String, primary_key=True)
    template_id = Column(String, nullable=False)
    employee_id = Column(String, nullable=False, index=True)
    appraiser_id = Column(String, nullable=False, index=True)
    review_period_id = Column(String, nullable=False, index=True)
    review_period_name = Column(String, nullable=False, default="")
    responses = Column(JSON, nullable=False, default=list)
    score = Column(Float, nullable=False, default=0)
    max_score = Column(Float, nullable=False, default=0)
    completed_at = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, nullable=True)


class AppraisalLinkRecord(Base):
    __tablename__ = "appraisal_links"

    id = Column(String, primary_key=True)
    employee_id = Column(String, nullable=False, index=True)
    appraiser_id = Column(String, nullable=False)
    template_id = Column(String, nullable=False)
    review_period_id = Column(String, nullable=True)
    review_period_name = Column(String, nullable=True)
    token = Column(String, nullable=False, unique=True, index=True)
    expires_at = Column(UTCDateTime, nullable=True)
    used = Column(Boolean, nullable=False, default=False)
    created_at = Column(UTCDateTime, nullable=True)


class AppraisalAssignmentRecord(Base):
    __tablename__ = "appraisal_assignments"

    id = Column(String, primary_key=True)
    review_period_id = Column(String, nullable=False, index=True)
    appraiser_id = Column(String, nullable=False, index=True)
    appraiser_name = Column(String, nullable=False)
    employee_id = Column(String, nullable=False, index=True)
    employee_name = Column(String, nullable=False)
    relationship_type = Column(String, nullable=False)
    template_id = Column(String, nullable=False)
    status = Column(String, nullable=False, default="pending", index=True)
    assignment_type = Column(String, nullable=False, default="auto")
    link_token = Column(String, nullable=True)
    created_at = Column(UTCDateTime, nullable=True)
    due_date = Column(UTCDateTime, nullable=True)
