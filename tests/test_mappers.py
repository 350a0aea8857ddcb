from datetime import date

import pytest
from pydantic_core import to_jsonable_python
from sqlalchemy import inspect

from app.schemas.appraisal import (
    Appraisal,
    AppraisalAssignment,
    AppraisalLink,
    AppraisalResponse,
    RelationshipType,
)
from app.schemas.employee import Employee, Hierarchy
from app.schemas.review_period import PeriodType, ReviewPeriod
from app.schemas.settings import CompanySettings
from app.schemas.summary import PerformanceSummary, ScoreBreakdown
from app.schemas.team import Team
from app.schemas.template import Category, CategoryItem, Template, TemplateType
from app.schemas.user import User
from app.services import mappers

SAMPLES = {
    "employee": Employee(id="e1", name="Ann", hierarchy=Hierarchy.LEADER, team_id="t1", dotted_line_reports_to=["x"]),
    "team": Team(id="t1", name="Ops", leader_ids=["e1"]),
    "template": Template(
        id="tpl", name="Leader review", type=TemplateType.LEADER_TO_MEMBER,
        categories=[Category(category_name="Delivery", items=[CategoryItem(id="q1", text="Ships on time", weight=20)])],
    ),
    "review_period": ReviewPeriod(
        id="p1", name="Q1 2026", type=PeriodType.Q1, year=2026,
        start_date=date(2026, 1, 1), end_date=date(2026, 3, 31),
    ),
    "appraisal": Appraisal(
        id="a1", template_id="tpl", employee_id="e2", appraiser_id="e1", review_period_id="p1",
        responses=[AppraisalResponse(question_id="q1", value=4)], score=80, max_score=100,
    ),
    "link": AppraisalLink(id="l1", employee_id="e2", appraiser_id="e1", template_id="tpl"),
    "assignment": AppraisalAssignment(
        id="x1", review_period_id="p1", appraiser_id="e1", appraiser_name="Ann",
        employee_id="e2", employee_name="Bob", relationship_type=RelationshipType.LEADER_TO_MEMBER,
        template_id="tpl",
    ),
    "user": User(id="u1", username="Ann.Lee", password_hash="h", name="Ann", employee_id="e1"),
    "settings": CompanySettings(name="Acme"),
    "summary": PerformanceSummary(
        employee_id="e2", period="Q1 2026", total_score=80, max_score=100, percentage=80,
        strengths=["shows strong delivery"], narrative="Solid quarter.",
        breakdown=[ScoreBreakdown(type=TemplateType.LEADER_TO_MEMBER, score=80, max_score=100)],
    ),
}


@pytest.mark.parametrize("mapper", mappers.ALL_MAPPERS, ids=lambda m: m.name)
def test_row_fills_every_column(mapper):
    row = mapper.to_row(SAMPLES[mapper.name])
    columns = {c.key for c in inspect(mapper.model).mapper.column_attrs}
    assert set(row) == columns


@pytest.mark.parametrize("mapper", mappers.ALL_MAPPERS, ids=lambda m: m.name)
def test_remote_json_rows_parse(mapper):
    """Rows as they arrive over HTTP (ISO strings, plain lists) map back to the same record."""
    item = SAMPLES[mapper.name]
    wire = to_jsonable_python(mapper.to_row(item))
    assert mapper.from_row(wire) == item


def test_username_lowercased_in_row():
    assert mappers.USERS.to_row(SAMPLES["user"])["username"] == "ann.lee"


def test_summary_narrative_maps_to_summary_text():
    row = mappers.SUMMARIES.to_row(SAMPLES["summary"])
    assert row["summary_text"] == "Solid quarter."
    assert row["insights"]["percentage"] == 80
    assert row["insights"]["breakdown"] == [{"type": "leader-to-member", "score": 80, "maxScore": 100}]


def test_settings_row_is_keyed_company():
    assert mappers.SETTINGS.to_row(CompanySettings())["key"] == "company"


def test_settings_row_missing_columns_uses_defaults():
    settings = mappers.SETTINGS.from_row({"key": "company", "name": "Acme", "hr_score_weight": None})
    assert settings.name == "Acme"
    assert settings.hr_score_weight == 30


def test_template_categories_stored_camel_case():
    row = mappers.TEMPLATES.to_row(SAMPLES["template"])
    assert row["categories"][0]["categoryName"] == "Delivery"


def test_employee_row_with_nulls_gets_defaults():
    employee = mappers.EMPLOYEES.from_row({
        "id": "e9", "name": "Legacy", "role": None, "hierarchy": "unknown-tier",
        "employment_status": None, "dotted_line_reports_to": None, "team_id": "",
    })
    assert employee.hierarchy == Hierarchy.MEMBER
    assert employee.dotted_line_reports_to == []
    assert employee.team_id is None
