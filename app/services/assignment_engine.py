"""
Relationship resolution engine.

Derives who-appraises-whom from organizational structure (reporting lines,
team membership, hierarchy tier). Pure computation: no storage access, no
mutation of the employee records it is given.

Rules (each can be switched off through RelationshipOptions):
1. Department leader -> member (downward)
2. Member -> department leader (exact mirror of rule 1)
3. Department leader -> department leader (company-wide peers)
4. Executive -> department leader (all executives x all leaders)
5. HR -> everyone except HR, executives and the chairman

Executives and the chairman are never subjects of an automatic rule.
"""
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from app.core.exceptions import AppException
from app.schemas.appraisal import (
    AppraisalAssignment,
    AssignmentStatus,
    AssignmentType,
    RelationshipType,
)
from app.schemas.assignment import AssignmentPreview, Pair, RelationshipOptions, TemplateMapping
from app.schemas.base import new_id, utc_now
from app.schemas.employee import (
    Employee,
    is_chairman,
    is_department_leader,
    is_executive,
    is_hr,
    is_member,
)

logger = logging.getLogger(__name__)

AUTO_RELATIONSHIPS: Tuple[RelationshipType, ...] = (
    RelationshipType.LEADER_TO_MEMBER,
    RelationshipType.MEMBER_TO_LEADER,
    RelationshipType.LEADER_TO_LEADER,
    RelationshipType.EXEC_TO_LEADER,
    RelationshipType.HR_TO_ALL,
)


class _PairCollector:
    """Ordered pair list that drops repeated (appraiser, subject) combinations."""

    def __init__(self):
        self.pairs: List[Pair] = []
        self._seen: Set[Tuple[str, str]] = set()

    def add(self, appraiser: Employee, subject: Employee) -> None:
        key = (appraiser.id, subject.id)
        if appraiser.id == subject.id or key in self._seen:
            return
        self._seen.add(key)
        self.pairs.append(
            Pair(
                appraiser_id=appraiser.id,
                appraiser_name=appraiser.name,
                employee_id=subject.id,
                employee_name=subject.name,
            )
        )


def direct_reports(manager: Employee, employees: Sequence[Employee]) -> List[Employee]:
    """
    Employees whose reports_to is the manager.

    When nobody reports to the manager explicitly, fall back to the members of
    the manager's team; many organizations only maintain team membership.
    Only one hop is inspected, so reporting cycles cannot loop.
    """
    reports = [e for e in employees if e.reports_to == manager.id and e.id != manager.id]
    if not reports and manager.team_id:
        reports = [
            e for e in employees
            if is_member(e) and e.team_id == manager.team_id and e.id != manager.id
        ]
    return reports


def _resolve_downward(employees: Sequence[Employee]) -> List[Pair]:
    collector = _PairCollector()
    leaders = [e for e in employees if is_department_leader(e)]

    # Reporting lines (with team fallback)
    for leader in leaders:
        for report in direct_reports(leader, employees):
            if is_member(report):
                collector.add(leader, report)

    # Department leadership covers the whole team, whatever reports_to says
    for leader in leaders:
        if not leader.team_id:
            continue
        for member in employees:
            if is_member(member) and member.team_id == leader.team_id:
                collector.add(leader, member)

    return collector.pairs


def _mirror(pairs: Iterable[Pair]) -> List[Pair]:
    return [
        Pair(
            appraiser_id=p.employee_id,
            appraiser_name=p.employee_name,
            employee_id=p.appraiser_id,
            employee_name=p.appraiser_name,
        )
        for p in pairs
    ]


def _cross(appraisers: Sequence[Employee], subjects: Sequence[Employee]) -> List[Pair]:
    collector = _PairCollector()
    for appraiser in appraisers:
        for subject in subjects:
            collector.add(appraiser, subject)
    return collector.pairs


def _is_hr_subject(employee: Employee) -> bool:
    return not (is_hr(employee) or is_executive(employee) or is_chairman(employee))


def preview_assignments(
    employees: Sequence[Employee],
    options: Optional[RelationshipOptions] = None,
) -> AssignmentPreview:
    """
    Compute every appraiser -> subject pair implied by the org structure.

    Always returns a best-effort result; problems in the data are reported as
    advisory warnings, never raised.
    """
    opts = options or RelationshipOptions()
    employees = list(employees)
    warnings: List[str] = []
    pairs: Dict[RelationshipType, List[Pair]] = {rel: [] for rel in AUTO_RELATIONSHIPS}

    leaders = [e for e in employees if is_department_leader(e)]
    executives = [e for e in employees if is_executive(e)]
    hr_staff = [e for e in employees if is_hr(e)]

    downward = _resolve_downward(employees)

    if opts.include_leader_to_member or opts.include_member_to_leader:
        unreachable = [e for e in employees if is_member(e) and not e.reports_to and not e.team_id]
        if unreachable:
            names = ", ".join(e.name for e in unreachable)
            warnings.append(
                f'{len(unreachable)} member(s) have neither "Reports To" nor a team set '
                f"and were skipped for Leader→Member and Member→Leader: {names}."
            )
        covered = {p.appraiser_id for p in downward}
        idle_leaders = [leader for leader in leaders if leader.id not in covered]
        if idle_leaders:
            names = ", ".join(e.name for e in idle_leaders)
            warnings.append(
                f"{len(idle_leaders)} department leader(s) have no members reporting to them: {names}."
            )

    if opts.include_leader_to_member:
        pairs[RelationshipType.LEADER_TO_MEMBER] = downward

    if opts.include_member_to_leader:
        pairs[RelationshipType.MEMBER_TO_LEADER] = _mirror(downward)

    if opts.include_leader_to_leader:
        if len(leaders) < 2:
            warnings.append(
                f"Leader→Leader needs at least two department leaders; found {len(leaders)}."
            )
        pairs[RelationshipType.LEADER_TO_LEADER] = _cross(leaders, leaders)

    if opts.include_exec_to_leader:
        if not executives:
            warnings.append("Executive→Leader skipped: no executives found.")
        if not leaders:
            warnings.append("Executive→Leader skipped: no department leaders found.")
        pairs[RelationshipType.EXEC_TO_LEADER] = _cross(executives, leaders)

    if opts.include_hr_to_all:
        subjects = [e for e in employees if _is_hr_subject(e)]
        if not hr_staff:
            warnings.append("HR→All skipped: no HR staff found.")
        elif not subjects:
            warnings.append("HR→All skipped: HR staff exist but there is no one eligible to appraise.")
        pairs[RelationshipType.HR_TO_ALL] = _cross(hr_staff, subjects)

    preview = AssignmentPreview(pairs=pairs, warnings=warnings)
    logger.debug(
        f"Previewed {preview.total} assignment pair(s) for {len(employees)} employee(s) "
        f"with {len(warnings)} warning(s)"
    )
    return preview


def build_assignments(
    preview: AssignmentPreview,
    template_mapping: TemplateMapping,
    review_period_id: str,
    due_date: Optional[datetime] = None,
) -> List[AppraisalAssignment]:
    """
    Materialize preview pairs into pending automatic assignments.

    Nothing is persisted here; the caller saves the returned list.
    """
    missing = [
        rel.value for rel in AUTO_RELATIONSHIPS
        if preview.pairs_for(rel) and not template_mapping.template_for(rel)
    ]
    if missing:
        raise AppException(
            message=f"No template configured for: {', '.join(missing)}",
            status_code=400,
            error_code="TEMPLATE_MAPPING_INCOMPLETE",
            details={"missing": missing},
        )

    created_at = utc_now()
    assignments: List[AppraisalAssignment] = []
    for rel in AUTO_RELATIONSHIPS:
        template_id = template_mapping.template_for(rel)
        for pair in preview.pairs_for(rel):
            assignments.append(
                AppraisalAssignment(
                    id=new_id(),
                    review_period_id=review_period_id,
                    appraiser_id=pair.appraiser_id,
                    appraiser_name=pair.appraiser_name,
                    employee_id=pair.employee_id,
                    employee_name=pair.employee_name,
                    relationship_type=rel,
                    template_id=template_id,
                    status=AssignmentStatus.PENDING,
                    assignment_type=AssignmentType.AUTO,
                    created_at=created_at,
                    due_date=due_date,
                )
            )
    return assignments
