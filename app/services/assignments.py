"""
Assignment workflows on top of the relationship resolution engine.
"""
import logging
from typing import List, Optional

from pydantic import BaseModel, Field

from app.core.exceptions import AppException, NotFoundError
from app.schemas.appraisal import AppraisalAssignment, AssignmentType
from app.schemas.assignment import AssignmentPreview, GenerateRequest, RelationshipOptions
from app.schemas.employee import active_employees
from app.schemas.review_period import ReviewPeriod
from app.services.assignment_engine import build_assignments, preview_assignments
from app.services.storage import StorageSynchronizer

logger = logging.getLogger(__name__)


class GenerateResult(BaseModel):
    created: int = 0
    skipped_existing: int = 0
    assignments: List[AppraisalAssignment] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class AssignmentService:
    def __init__(self, storage: StorageSynchronizer):
        self.storage = storage

    def _period(self, review_period_id: str) -> ReviewPeriod:
        period = self.storage.get_review_period(review_period_id)
        if period is None:
            raise NotFoundError("review period", review_period_id)
        return period

    def preview(self, review_period_id: str, options: Optional[RelationshipOptions] = None) -> AssignmentPreview:
        """Pairs for the period, computed over employees who have not left."""
        self._period(review_period_id)
        employees = active_employees(self.storage.get_employees())
        return preview_assignments(employees, options)

    def generate(self, request: GenerateRequest) -> GenerateResult:
        """
        Persist the previewed pairs as pending assignments.

        Pairs that already have an assignment of the same relationship in the
        period are skipped, so generating twice does not duplicate work.
        """
        preview = self.preview(request.review_period_id, request.options)
        candidates = build_assignments(
            preview,
            request.template_mapping,
            request.review_period_id,
            due_date=request.due_date,
        )
        existing = {
            (a.appraiser_id, a.employee_id, a.relationship_type)
            for a in self.storage.get_assignments_for_period(request.review_period_id)
        }
        fresh = [
            a for a in candidates
            if (a.appraiser_id, a.employee_id, a.relationship_type) not in existing
        ]
        self.storage.save_assignments(fresh)
        logger.info(
            f"Generated {len(fresh)} assignment(s) for period {request.review_period_id} "
            f"({len(candidates) - len(fresh)} already existed)"
        )
        return GenerateResult(
            created=len(fresh),
            skipped_existing=len(candidates) - len(fresh),
            assignments=fresh,
            warnings=preview.warnings,
        )

    def create_manual(self, assignment: AppraisalAssignment) -> AppraisalAssignment:
        """Admin-created assignment outside the automatic rules."""
        self._period(assignment.review_period_id)
        if assignment.appraiser_id == assignment.employee_id:
            raise AppException(
                message="An employee cannot be assigned to appraise themselves",
                status_code=400,
                error_code="SELF_ASSIGNMENT",
            )
        for employee_id in (assignment.appraiser_id, assignment.employee_id):
            if self.storage.get_employee(employee_id) is None:
                raise NotFoundError("employee", employee_id)
        manual = assignment.model_copy(update={"assignment_type": AssignmentType.MANUAL})
        self.storage.save_assignments([manual])
        return manual
