import itertools

import pytest

from app.core.exceptions import AppException
from app.schemas.appraisal import AssignmentStatus, AssignmentType, RelationshipType
from app.schemas.assignment import RelationshipOptions, TemplateMapping
from app.schemas.employee import Employee, EmploymentStatus, Hierarchy
from app.services.assignment_engine import (
    AUTO_RELATIONSHIPS,
    build_assignments,
    direct_reports,
    preview_assignments,
)


def _emp(id, hierarchy, **kw):
    return Employee(id=id, name=kw.pop("name", id.upper()), hierarchy=hierarchy, **kw)


def _pairs(preview, rel):
    return {(p.appraiser_id, p.employee_id) for p in preview.pairs_for(rel)}


@pytest.fixture
def org():
    """Chairman, one executive, one department leader and two members."""
    return [
        _emp("c", Hierarchy.CHAIRMAN),
        _emp("e1", Hierarchy.EXECUTIVE),
        _emp("l1", Hierarchy.DEPARTMENT_LEADER, team_id="t1"),
        _emp("m1", Hierarchy.MEMBER, team_id="t1"),
        _emp("m2", Hierarchy.MEMBER, reports_to="l1"),
    ]


@pytest.fixture
def big_org():
    return [
        _emp("c", Hierarchy.CHAIRMAN),
        _emp("e1", Hierarchy.EXECUTIVE),
        _emp("e2", Hierarchy.EXECUTIVE),
        _emp("l1", Hierarchy.DEPARTMENT_LEADER, team_id="t1", reports_to="e1"),
        _emp("l2", Hierarchy.LEADER, team_id="t2", reports_to="e2"),
        _emp("m1", Hierarchy.MEMBER, team_id="t1"),
        _emp("m2", Hierarchy.MEMBER, team_id="t1", reports_to="l1"),
        _emp("m3", Hierarchy.MEMBER, team_id="t2"),
        _emp("m4", Hierarchy.MEMBER, reports_to="l2"),
        _emp("h1", Hierarchy.HR),
        _emp("h2", Hierarchy.HR, team_id="t1"),
    ]


def test_concrete_scenario(org):
    preview = preview_assignments(org)

    assert _pairs(preview, RelationshipType.LEADER_TO_MEMBER) == {("l1", "m1"), ("l1", "m2")}
    assert _pairs(preview, RelationshipType.MEMBER_TO_LEADER) == {("m1", "l1"), ("m2", "l1")}
    assert _pairs(preview, RelationshipType.EXEC_TO_LEADER) == {("e1", "l1")}
    assert _pairs(preview, RelationshipType.LEADER_TO_LEADER) == set()
    assert _pairs(preview, RelationshipType.HR_TO_ALL) == set()

    assert any("Leader→Leader" in w and "found 1" in w for w in preview.warnings)
    assert "HR→All skipped: no HR staff found." in preview.warnings


def test_every_category_key_present_even_when_disabled(org):
    options = RelationshipOptions(
        include_leader_to_member=False,
        include_member_to_leader=False,
        include_leader_to_leader=False,
        include_exec_to_leader=False,
        include_hr_to_all=False,
    )
    preview = preview_assignments(org, options)

    assert set(preview.pairs) == set(AUTO_RELATIONSHIPS)
    assert preview.total == 0
    assert preview.warnings == []


def test_disabled_rule_leaves_others_untouched(org):
    preview = preview_assignments(org, RelationshipOptions(include_member_to_leader=False))

    assert _pairs(preview, RelationshipType.MEMBER_TO_LEADER) == set()
    assert _pairs(preview, RelationshipType.LEADER_TO_MEMBER) == {("l1", "m1"), ("l1", "m2")}


def test_team_fallback_only_when_no_explicit_reports():
    leader = _emp("l1", Hierarchy.LEADER, team_id="t1")
    reporting = _emp("m1", Hierarchy.MEMBER, reports_to="l1")
    teammate = _emp("m2", Hierarchy.MEMBER, team_id="t1")

    assert [e.id for e in direct_reports(leader, [leader, reporting, teammate])] == ["m1"]
    assert [e.id for e in direct_reports(leader, [leader, teammate])] == ["m2"]


def test_leader_covers_whole_team_regardless_of_reports_to():
    employees = [
        _emp("l1", Hierarchy.DEPARTMENT_LEADER, team_id="t1"),
        _emp("l2", Hierarchy.DEPARTMENT_LEADER, team_id="t2"),
        # Reports to l2 but sits in l1's team: both leaders appraise them
        _emp("m1", Hierarchy.MEMBER, team_id="t1", reports_to="l2"),
    ]
    preview = preview_assignments(employees)
    assert _pairs(preview, RelationshipType.LEADER_TO_MEMBER) == {("l1", "m1"), ("l2", "m1")}


def test_non_members_reporting_to_leader_are_not_subjects():
    employees = [
        _emp("l1", Hierarchy.LEADER, team_id="t1"),
        _emp("h1", Hierarchy.HR, reports_to="l1"),
        _emp("l2", Hierarchy.LEADER, reports_to="l1"),
    ]
    preview = preview_assignments(employees)
    assert _pairs(preview, RelationshipType.LEADER_TO_MEMBER) == set()


def test_leader_to_leader_is_company_wide(big_org):
    preview = preview_assignments(big_org)
    assert _pairs(preview, RelationshipType.LEADER_TO_LEADER) == {("l1", "l2"), ("l2", "l1")}


def test_exec_to_leader_is_full_cross_product(big_org):
    preview = preview_assignments(big_org)
    expected = set(itertools.product(["e1", "e2"], ["l1", "l2"]))
    assert _pairs(preview, RelationshipType.EXEC_TO_LEADER) == expected


def test_hr_to_all_excludes_hr_executives_and_chairman(big_org):
    preview = preview_assignments(big_org)
    subjects = {s for _, s in _pairs(preview, RelationshipType.HR_TO_ALL)}
    assert subjects == {"l1", "l2", "m1", "m2", "m3", "m4"}
    appraisers = {a for a, _ in _pairs(preview, RelationshipType.HR_TO_ALL)}
    assert appraisers == {"h1", "h2"}


def test_hr_with_no_eligible_subjects_warns():
    employees = [_emp("h1", Hierarchy.HR), _emp("e1", Hierarchy.EXECUTIVE)]
    preview = preview_assignments(employees)
    assert "HR→All skipped: HR staff exist but there is no one eligible to appraise." in preview.warnings


def test_exec_to_leader_warnings():
    preview = preview_assignments([_emp("m1", Hierarchy.MEMBER, team_id="t1")])
    assert "Executive→Leader skipped: no executives found." in preview.warnings
    assert "Executive→Leader skipped: no department leaders found." in preview.warnings


def test_unreachable_members_and_idle_leaders_are_reported():
    employees = [
        _emp("l1", Hierarchy.LEADER, name="Lena"),
        _emp("m1", Hierarchy.MEMBER, name="Omar"),
    ]
    preview = preview_assignments(employees)
    assert any(w.startswith("1 member(s)") and "Omar" in w for w in preview.warnings)
    assert any(w.startswith("1 department leader(s)") and "Lena" in w for w in preview.warnings)


def test_executives_and_chairman_are_never_subjects(big_org):
    tier = {e.id: e.hierarchy for e in big_org}
    for flags in itertools.product([True, False], repeat=5):
        options = RelationshipOptions(
            include_leader_to_member=flags[0],
            include_member_to_leader=flags[1],
            include_leader_to_leader=flags[2],
            include_exec_to_leader=flags[3],
            include_hr_to_all=flags[4],
        )
        preview = preview_assignments(big_org, options)
        for rel in AUTO_RELATIONSHIPS:
            for pair in preview.pairs_for(rel):
                assert tier[pair.employee_id] not in (Hierarchy.EXECUTIVE, Hierarchy.CHAIRMAN)


def test_downward_and_upward_are_mirrors(big_org):
    preview = preview_assignments(big_org)
    down = _pairs(preview, RelationshipType.LEADER_TO_MEMBER)
    up = _pairs(preview, RelationshipType.MEMBER_TO_LEADER)
    assert down
    assert {(b, a) for a, b in down} == up


def test_no_self_pairs_or_duplicates(big_org):
    preview = preview_assignments(big_org)
    for rel in AUTO_RELATIONSHIPS:
        pairs = [(p.appraiser_id, p.employee_id) for p in preview.pairs_for(rel)]
        assert len(pairs) == len(set(pairs))
        assert all(a != b for a, b in pairs)


def test_preview_is_repeatable_and_does_not_mutate(big_org):
    before = [e.model_dump() for e in big_org]
    first = preview_assignments(big_org)
    second = preview_assignments(big_org)

    for rel in AUTO_RELATIONSHIPS:
        assert _pairs(first, rel) == _pairs(second, rel)
    assert first.warnings == second.warnings
    assert [e.model_dump() for e in big_org] == before


def test_reporting_cycle_terminates():
    employees = [
        _emp("a", Hierarchy.LEADER, reports_to="b", team_id="t1"),
        _emp("b", Hierarchy.LEADER, reports_to="a", team_id="t2"),
        _emp("m", Hierarchy.MEMBER, reports_to="m"),
    ]
    preview = preview_assignments(employees)
    assert _pairs(preview, RelationshipType.LEADER_TO_LEADER) == {("a", "b"), ("b", "a")}


def test_dangling_reports_to_treated_as_no_manager():
    employees = [
        _emp("l1", Hierarchy.LEADER, team_id="t1"),
        _emp("m1", Hierarchy.MEMBER, reports_to="ghost"),
    ]
    preview = preview_assignments(employees)
    assert _pairs(preview, RelationshipType.LEADER_TO_MEMBER) == set()


def test_locked_employees_are_not_filtered_by_engine():
    # Filtering locked staff is the caller's job (see AssignmentService.preview)
    employees = [
        _emp("l1", Hierarchy.LEADER, team_id="t1"),
        _emp("m1", Hierarchy.MEMBER, team_id="t1", employment_status=EmploymentStatus.RESIGNED),
    ]
    preview = preview_assignments(employees)
    assert ("l1", "m1") in _pairs(preview, RelationshipType.LEADER_TO_MEMBER)


MAPPING = TemplateMapping(
    leader_to_member="tpl-lm",
    member_to_leader="tpl-ml",
    leader_to_leader="tpl-ll",
    exec_to_leader="tpl-el",
    hr_to_all="tpl-hr",
)


def test_build_assignments_one_per_pair(big_org):
    preview = preview_assignments(big_org)
    assignments = build_assignments(preview, MAPPING, "period-1")

    assert len(assignments) == preview.total
    assert all(a.status == AssignmentStatus.PENDING for a in assignments)
    assert all(a.assignment_type == AssignmentType.AUTO for a in assignments)
    assert all(a.review_period_id == "period-1" for a in assignments)
    assert len({a.id for a in assignments}) == len(assignments)

    hr = [a for a in assignments if a.relationship_type == RelationshipType.HR_TO_ALL]
    assert {a.template_id for a in hr} == {"tpl-hr"}


def test_build_assignments_requires_template_for_non_empty_category(org):
    preview = preview_assignments(org)
    mapping = TemplateMapping(leader_to_member="tpl-lm", member_to_leader="tpl-ml")

    with pytest.raises(AppException) as exc:
        build_assignments(preview, mapping, "period-1")
    assert exc.value.error_code == "TEMPLATE_MAPPING_INCOMPLETE"
    assert exc.value.details["missing"] == ["exec-to-leader"]


def test_build_assignments_ignores_missing_template_for_empty_category(org):
    preview = preview_assignments(org, RelationshipOptions(include_exec_to_leader=False))
    mapping = TemplateMapping(leader_to_member="tpl-lm", member_to_leader="tpl-ml")

    assignments = build_assignments(preview, mapping, "period-1")
    assert len(assignments) == 4
