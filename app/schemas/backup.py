from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.schemas.appraisal import Appraisal, AppraisalAssignment, AppraisalLink
from app.schemas.base import CamelModel, utc_now
from app.schemas.employee import Employee
from app.schemas.review_period import ReviewPeriod
from app.schemas.settings import CompanySettings
from app.schemas.summary import PerformanceSummary
from app.schemas.team import Team
from app.schemas.template import Template
from app.schemas.user import User

SNAPSHOT_VERSION = "1.0.0"


class Snapshot(CamelModel):
    """Full backup: one list per entity type plus a version tag."""
    version: str = SNAPSHOT_VERSION
    exported_at: datetime = Field(default_factory=utc_now)
    templates: List[Template] = Field(default_factory=list)
    employees: List[Employee] = Field(default_factory=list)
    appraisals: List[Appraisal] = Field(default_factory=list)
    links: List[AppraisalLink] = Field(default_factory=list)
    review_periods: List[ReviewPeriod] = Field(default_factory=list)
    users: List[User] = Field(default_factory=list)
    teams: List[Team] = Field(default_factory=list)
    appraisal_assignments: List[AppraisalAssignment] = Field(default_factory=list)
    summaries: List[PerformanceSummary] = Field(default_factory=list)
    settings: Optional[CompanySettings] = None
