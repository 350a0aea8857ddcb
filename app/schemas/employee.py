"""
Employee schema with organizational hierarchy support.

Hierarchy tiers, top to bottom:
- CHAIRMAN
- EXECUTIVE (optionally OPERATIONAL or ADVISORY)
- DEPARTMENT_LEADER (LEADER is the legacy spelling of the same tier)
- MEMBER / HR
"""
import enum
from datetime import datetime
from typing import Iterable, List, Optional

from pydantic import Field, field_validator

from app.schemas.base import CamelModel, new_id, utc_now


class Hierarchy(str, enum.Enum):
    CHAIRMAN = "chairman"
    EXECUTIVE = "executive"
    DEPARTMENT_LEADER = "department-leader"
    LEADER = "leader"
    MEMBER = "member"
    HR = "hr"


class ExecutiveType(str, enum.Enum):
    OPERATIONAL = "operational"
    ADVISORY = "advisory"


class EmploymentStatus(str, enum.Enum):
    PERMANENT = "permanent"
    TEMPORARY = "temporary"
    CONTRACTOR = "contractor"
    PROBATION = "probation"
    INTERN = "intern"
    ON_LEAVE = "on-leave"
    TERMINATED = "terminated"
    RESIGNED = "resigned"


# Employees in these states lose access to any linked user account and are
# hidden from active/org-chart views.
LOCKING_STATUSES = frozenset({EmploymentStatus.TERMINATED, EmploymentStatus.RESIGNED})

DEPARTMENT_LEADER_TIERS = frozenset({Hierarchy.DEPARTMENT_LEADER, Hierarchy.LEADER})


class Employee(CamelModel):
    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1)
    email: Optional[str] = None
    role: str = ""
    hierarchy: Hierarchy = Hierarchy.MEMBER
    executive_type: Optional[ExecutiveType] = None
    team_id: Optional[str] = None
    reports_to: Optional[str] = None
    dotted_line_reports_to: List[str] = Field(default_factory=list)
    employment_status: EmploymentStatus = EmploymentStatus.PERMANENT
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = None

    @field_validator("hierarchy", mode="before")
    @classmethod
    def _normalize_hierarchy(cls, value):
        # Unknown or missing tiers are treated as plain members
        if isinstance(value, Hierarchy):
            return value
        try:
            return Hierarchy(str(value).strip().lower()) if value else Hierarchy.MEMBER
        except ValueError:
            return Hierarchy.MEMBER

    @field_validator("employment_status", mode="before")
    @classmethod
    def _default_status(cls, value):
        return value or EmploymentStatus.PERMANENT

    @field_validator("dotted_line_reports_to", mode="before")
    @classmethod
    def _default_dotted_line(cls, value):
        return value or []

    @field_validator("team_id", "reports_to", "email", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


def is_chairman(employee: Employee) -> bool:
    return employee.hierarchy == Hierarchy.CHAIRMAN


def is_executive(employee: Employee) -> bool:
    return employee.hierarchy == Hierarchy.EXECUTIVE


def is_department_leader(employee: Employee) -> bool:
    return employee.hierarchy in DEPARTMENT_LEADER_TIERS


def is_member(employee: Employee) -> bool:
    return employee.hierarchy == Hierarchy.MEMBER


def is_hr(employee: Employee) -> bool:
    return employee.hierarchy == Hierarchy.HR


def is_locked(employee: Employee) -> bool:
    return employee.employment_status in LOCKING_STATUSES


def active_employees(employees: Iterable[Employee]) -> List[Employee]:
    """Employees shown in org-chart and other active views."""
    return [e for e in employees if not is_locked(e)]
