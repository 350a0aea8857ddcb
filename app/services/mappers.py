"""
Field mapping between domain records and table rows.

Both the remote backend and the local cache address tables by snake_case
column names. Each EntityMapper owns the complete, explicit mapping for one
entity type; every domain field has a column and every column is filled.
"""
import enum
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Type, TypeVar

from app.models import (
    AppraisalAssignmentRecord,
    AppraisalLinkRecord,
    AppraisalRecord,
    EmployeeRecord,
    PerformanceSummaryRecord,
    ReviewPeriodRecord,
    SettingsRecord,
    TeamRecord,
    TemplateRecord,
    UserRecord,
)
from app.schemas.appraisal import Appraisal, AppraisalAssignment, AppraisalLink, AppraisalResponse
from app.schemas.employee import Employee
from app.schemas.review_period import ReviewPeriod
from app.schemas.settings import SETTINGS_KEY, CompanySettings
from app.schemas.summary import PerformanceSummary
from app.schemas.team import Team
from app.schemas.template import Category, Template
from app.schemas.user import User

T = TypeVar("T")
Row = Dict[str, Any]


def _value(v: Any) -> Any:
    return v.value if isinstance(v, enum.Enum) else v


def _compact(values: Row) -> Row:
    """Drop NULL columns so model defaults apply."""
    return {k: v for k, v in values.items() if v is not None}


@dataclass(frozen=True)
class EntityMapper(Generic[T]):
    name: str
    model: Type
    key_column: str
    key_of: Callable[[T], str]
    to_row: Callable[[T], Row]
    from_row: Callable[[Row], T]

    @property
    def table(self) -> str:
        return self.model.__tablename__

    def rows(self, items: List[T]) -> List[Row]:
        return [self.to_row(item) for item in items]

    def items(self, rows: List[Row]) -> List[T]:
        return [self.from_row(row) for row in rows]


# ============================================================================
# EMPLOYEES
# ============================================================================
def employee_to_row(e: Employee) -> Row:
    return {
        "id": e.id,
        "name": e.name,
        "email": e.email,
        "role": e.role,
        "hierarchy": _value(e.hierarchy),
        "executive_type": _value(e.executive_type),
        "team_id": e.team_id,
        "reports_to": e.reports_to,
        "dotted_line_reports_to": list(e.dotted_line_reports_to),
        "employment_status": _value(e.employment_status),
        "created_at": e.created_at,
        "updated_at": e.updated_at,
    }


def employee_from_row(row: Row) -> Employee:
    return Employee(**_compact(dict(
        id=row["id"],
        name=row["name"],
        email=row.get("email"),
        role=row.get("role") or "",
        hierarchy=row.get("hierarchy"),
        executive_type=row.get("executive_type"),
        team_id=row.get("team_id"),
        reports_to=row.get("reports_to"),
        dotted_line_reports_to=row.get("dotted_line_reports_to"),
        employment_status=row.get("employment_status"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )))


# ============================================================================
# TEAMS
# ============================================================================
def team_to_row(t: Team) -> Row:
    return {
        "id": t.id,
        "name": t.name,
        "description": t.description,
        "oversight_executive_id": t.oversight_executive_id,
        "leader_ids": list(t.leader_ids),
        "created_at": t.created_at,
    }


def team_from_row(row: Row) -> Team:
    return Team(**_compact(dict(
        id=row["id"],
        name=row["name"],
        description=row.get("description"),
        oversight_executive_id=row.get("oversight_executive_id"),
        leader_ids=row.get("leader_ids"),
        created_at=row.get("created_at"),
    )))


# ============================================================================
# TEMPLATES
# ============================================================================
def template_to_row(t: Template) -> Row:
    return {
        "id": t.id,
        "name": t.name,
        "subtitle": t.subtitle,
        "type": _value(t.type),
        # Nested JSON keeps the camelCase shape the form builder produces
        "categories": [c.model_dump(mode="json", by_alias=True) for c in t.categories],
        "created_at": t.created_at,
        "updated_at": t.updated_at,
        "version": t.version,
    }


def template_from_row(row: Row) -> Template:
    return Template(**_compact(dict(
        id=row["id"],
        name=row["name"],
        subtitle=row.get("subtitle"),
        type=row["type"],
        categories=[Category.model_validate(c) for c in (row.get("categories") or [])],
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
        version=row.get("version") or 1,
    )))


# ============================================================================
# REVIEW PERIODS
# ============================================================================
def review_period_to_row(p: ReviewPeriod) -> Row:
    return {
        "id": p.id,
        "name": p.name,
        "type": _value(p.type),
        "year": p.year,
        "start_date": p.start_date,
        "end_date": p.end_date,
        "status": _value(p.status),
        "description": p.description,
        "created_at": p.created_at,
    }


def review_period_from_row(row: Row) -> ReviewPeriod:
    return ReviewPeriod(**_compact(dict(
        id=row["id"],
        name=row["name"],
        type=row["type"],
        year=row["year"],
        start_date=row["start_date"],
        end_date=row["end_date"],
        status=row["status"],
        description=row.get("description"),
        created_at=row.get("created_at"),
    )))


# ============================================================================
# APPRAISALS
# ============================================================================
def appraisal_to_row(a: Appraisal) -> Row:
    return {
        "id": a.id,
        "template_id": a.template_id,
        "employee_id": a.employee_id,
        "appraiser_id": a.appraiser_id,
        "review_period_id": a.review_period_id,
        "review_period_name": a.review_period_name,
        "responses": [r.model_dump(mode="json", by_alias=True) for r in a.responses],
        "score": a.score,
        "max_score": a.max_score,
        "completed_at": a.completed_at,
        "created_at": a.created_at,
    }


def appraisal_from_row(row: Row) -> Appraisal:
    return Appraisal(**_compact(dict(
        id=row["id"],
        template_id=row["template_id"],
        employee_id=row["employee_id"],
        appraiser_id=row["appraiser_id"],
        review_period_id=row["review_period_id"],
        review_period_name=row.get("review_period_name") or "",
        responses=[AppraisalResponse.model_validate(r) for r in (row.get("responses") or [])],
        score=float(row.get("score") or 0),
        max_score=float(row.get("max_score") or 0),
        completed_at=row.get("completed_at"),
        created_at=row.get("created_at"),
    )))


def link_to_row(link: AppraisalLink) -> Row:
    return {
        "id": link.id,
        "employee_id": link.employee_id,
        "appraiser_id": link.appraiser_id,
        "template_id": link.template_id,
        "review_period_id": link.review_period_id,
        "review_period_name": link.review_period_name,
        "token": link.token,
        "expires_at": link.expires_at,
        "used": link.used,
        "created_at": link.created_at,
    }


def link_from_row(row: Row) -> AppraisalLink:
    return AppraisalLink(**_compact(dict(
        id=row["id"],
        employee_id=row["employee_id"],
        appraiser_id=row["appraiser_id"],
        template_id=row["template_id"],
        review_period_id=row.get("review_period_id"),
        review_period_name=row.get("review_period_name"),
        token=row["token"],
        expires_at=row.get("expires_at"),
        used=bool(row.get("used")),
        created_at=row.get("created_at"),
    )))


def assignment_to_row(a: AppraisalAssignment) -> Row:
    return {
        "id": a.id,
        "review_period_id": a.review_period_id,
        "appraiser_id": a.appraiser_id,
        "appraiser_name": a.appraiser_name,
        "employee_id": a.employee_id,
        "employee_name": a.employee_name,
        "relationship_type": _value(a.relationship_type),
        "template_id": a.template_id,
        "status": _value(a.status),
        "assignment_type": _value(a.assignment_type),
        "link_token": a.link_token,
        "created_at": a.created_at,
        "due_date": a.due_date,
    }


def assignment_from_row(row: Row) -> AppraisalAssignment:
    return AppraisalAssignment(**_compact(dict(
        id=row["id"],
        review_period_id=row["review_period_id"],
        appraiser_id=row["appraiser_id"],
        appraiser_name=row["appraiser_name"],
        employee_id=row["employee_id"],
        employee_name=row["employee_name"],
        relationship_type=row["relationship_type"],
        template_id=row["template_id"],
        status=row["status"],
        assignment_type=row["assignment_type"],
        link_token=row.get("link_token"),
        created_at=row.get("created_at"),
        due_date=row.get("due_date"),
    )))


# ============================================================================
# USERS
# ============================================================================
def user_to_row(u: User) -> Row:
    return {
        "id": u.id,
        "username": u.username.strip().lower(),
        "password_hash": u.password_hash,
        "name": u.name,
        "email": u.email,
        "role": _value(u.role),
        "active": u.active,
        "employee_id": u.employee_id,
        "must_change_password": u.must_change_password,
        "created_at": u.created_at,
        "last_login_at": u.last_login_at,
    }


def user_from_row(row: Row) -> User:
    return User(**_compact(dict(
        id=row["id"],
        username=row["username"],
        password_hash=row["password_hash"],
        name=row["name"],
        email=row.get("email"),
        role=row.get("role") or "staff",
        active=row.get("active"),
        employee_id=row.get("employee_id"),
        must_change_password=row.get("must_change_password"),
        created_at=row.get("created_at"),
        last_login_at=row.get("last_login_at"),
    )))


# ============================================================================
# SETTINGS (single row keyed 'company')
# ============================================================================
def settings_to_row(s: CompanySettings) -> Row:
    return {
        "key": SETTINGS_KEY,
        "name": s.name,
        "logo": s.logo,
        "admin_pin": s.admin_pin,
        "accent_color": s.accent_color,
        "theme": _value(s.theme),
        "hr_score_weight": s.hr_score_weight,
        "require_hr_for_ranking": s.require_hr_for_ranking,
    }


def settings_from_row(row: Row) -> CompanySettings:
    # Older rows may predate the HR columns; fall back to defaults for them
    values = {k: v for k, v in row.items() if k != "key" and v is not None}
    return CompanySettings(**values)


# ============================================================================
# PERFORMANCE SUMMARIES
# ============================================================================
def summary_to_row(s: PerformanceSummary) -> Row:
    return {
        "employee_id": s.employee_id,
        "period": s.period,
        "summary_text": s.narrative,
        "insights": {
            "totalScore": s.total_score,
            "maxScore": s.max_score,
            "percentage": s.percentage,
            "strengths": list(s.strengths),
            "improvements": list(s.improvements),
            "breakdown": [b.model_dump(mode="json", by_alias=True) for b in s.breakdown],
        },
        "generated_at": s.generated_at,
    }


def summary_from_row(row: Row) -> PerformanceSummary:
    insights = row.get("insights") or {}
    return PerformanceSummary(**_compact(dict(
        employee_id=row["employee_id"],
        period=row.get("period") or "",
        narrative=row.get("summary_text") or "",
        total_score=insights.get("totalScore", 0),
        max_score=insights.get("maxScore", 0),
        percentage=insights.get("percentage", 0),
        strengths=insights.get("strengths", []),
        improvements=insights.get("improvements", []),
        breakdown=insights.get("breakdown", []),
        generated_at=row.get("generated_at"),
    )))


EMPLOYEES = EntityMapper("employee", EmployeeRecord, "id", lambda e: e.id, employee_to_row, employee_from_row)
TEAMS = EntityMapper("team", TeamRecord, "id", lambda t: t.id, team_to_row, team_from_row)
TEMPLATES = EntityMapper("template", TemplateRecord, "id", lambda t: t.id, template_to_row, template_from_row)
REVIEW_PERIODS = EntityMapper(
    "review_period", ReviewPeriodRecord, "id", lambda p: p.id, review_period_to_row, review_period_from_row
)
APPRAISALS = EntityMapper("appraisal", AppraisalRecord, "id", lambda a: a.id, appraisal_to_row, appraisal_from_row)
LINKS = EntityMapper("link", AppraisalLinkRecord, "id", lambda link: link.id, link_to_row, link_from_row)
ASSIGNMENTS = EntityMapper(
    "assignment", AppraisalAssignmentRecord, "id", lambda a: a.id, assignment_to_row, assignment_from_row
)
USERS = EntityMapper("user", UserRecord, "id", lambda u: u.id, user_to_row, user_from_row)
SETTINGS = EntityMapper("settings", SettingsRecord, "key", lambda s: SETTINGS_KEY, settings_to_row, settings_from_row)
SUMMARIES = EntityMapper(
    "summary", PerformanceSummaryRecord, "employee_id", lambda s: s.employee_id, summary_to_row, summary_from_row
)

ALL_MAPPERS = (
    EMPLOYEES, TEAMS, TEMPLATES, REVIEW_PERIODS, APPRAISALS,
    LINKS, ASSIGNMENTS, USERS, SETTINGS, SUMMARIES,
)
