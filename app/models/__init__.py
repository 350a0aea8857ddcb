# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    employee, team, template, review_period,
    appraisal, user, settings, summary,
)

# Explicit class exports for cleaner imports
from .employee import EmployeeRecord
from .team import TeamRecord
from .template import TemplateRecord
from .review_period import ReviewPeriodRecord
from .appraisal import AppraisalRecord, AppraisalLinkRecord, AppraisalAssignmentRecord
from .user import UserRecord
from .settings import SettingsRecord
from .summary import PerformanceSummaryRecord

__all__ = [
    "EmployeeRecord",
    "TeamRecord",
    "TemplateRecord",
    "ReviewPeriodRecord",
    "AppraisalRecord",
    "AppraisalLinkRecord",
    "AppraisalAssignmentRecord",
    "UserRecord",
    "SettingsRecord",
    "PerformanceSummaryRecord",
]
