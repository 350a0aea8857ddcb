"""
Appraisal records: assignments (who appraises whom), single-use invitation
links, and submitted appraisal forms.
"""
import enum
from datetime import datetime
from typing import List, Optional, Union

from pydantic import Field

from app.schemas.base import CamelModel, new_id, new_token, utc_now


class RelationshipType(str, enum.Enum):
    LEADER_TO_MEMBER = "leader-to-member"
    MEMBER_TO_LEADER = "member-to-leader"
    LEADER_TO_LEADER = "leader-to-leader"
    EXEC_TO_LEADER = "exec-to-leader"
    HR_TO_ALL = "hr-to-all"
    CUSTOM = "custom"


class AssignmentStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


# Statuses only move forward
STATUS_ORDER = {
    AssignmentStatus.PENDING: 0,
    AssignmentStatus.IN_PROGRESS: 1,
    AssignmentStatus.COMPLETED: 2,
}


class AssignmentType(str, enum.Enum):
    AUTO = "auto"
    MANUAL = "manual"


class AppraisalAssignment(CamelModel):
    id: str = Field(default_factory=new_id)
    review_period_id: str
    appraiser_id: str
    appraiser_name: str
    employee_id: str
    employee_name: str
    relationship_type: RelationshipType
    template_id: str
    status: AssignmentStatus = AssignmentStatus.PENDING
    assignment_type: AssignmentType = AssignmentType.MANUAL
    link_token: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    due_date: Optional[datetime] = None


class AppraisalLink(CamelModel):
    id: str = Field(default_factory=new_id)
    employee_id: str
    appraiser_id: str
    template_id: str
    review_period_id: Optional[str] = None
    review_period_name: Optional[str] = None
    token: str = Field(default_factory=new_token)
    expires_at: Optional[datetime] = None
    used: bool = False
    created_at: datetime = Field(default_factory=utc_now)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or utc_now()
        expires = self.expires_at
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=now.tzinfo)
        return now > expires


class AppraisalResponse(CamelModel):
    question_id: str
    value: Union[int, float, str, None] = None
    text_feedback: Optional[str] = None


class Appraisal(CamelModel):
    id: str = Field(default_factory=new_id)
    template_id: str
    employee_id: str
    appraiser_id: str
    review_period_id: str
    review_period_name: str = ""
    responses: List[AppraisalResponse] = Field(default_factory=list)
    score: float = 0
    max_score: float = 0
    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None
