"""
Form submission through assignments or single-use links, and per-employee
summary generation.
"""
import logging
from datetime import timedelta
from typing import List, Optional

from app.core.exceptions import AppException, InvalidTransitionError, NotFoundError
from app.core.session import SessionContext
from app.schemas.appraisal import (
    Appraisal,
    AppraisalAssignment,
    AppraisalLink,
    AppraisalResponse,
    AssignmentStatus,
)
from app.schemas.base import utc_now
from app.schemas.summary import PerformanceSummary
from app.schemas.template import Template
from app.services.scoring import build_performance_summary, calculate_score, template_items
from app.services.storage import StorageSynchronizer

logger = logging.getLogger(__name__)


class AppraisalService:
    def __init__(self, storage: StorageSynchronizer):
        self.storage = storage

    def _template(self, template_id: str) -> Template:
        template = self.storage.get_template(template_id)
        if template is None:
            raise NotFoundError("template", template_id)
        return template

    def _scored(self, template: Template, responses: List[AppraisalResponse], **fields) -> Appraisal:
        result = calculate_score(responses, template_items(template))
        return Appraisal(
            template_id=template.id,
            responses=responses,
            score=result.score,
            max_score=result.max_score,
            completed_at=utc_now(),
            **fields,
        )

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------
    def create_link(
        self,
        employee_id: str,
        appraiser_id: str,
        template_id: str,
        review_period_id: str,
        expires_in_days: Optional[int] = None,
    ) -> AppraisalLink:
        period = self.storage.get_review_period(review_period_id)
        if period is None:
            raise NotFoundError("review period", review_period_id)
        self._template(template_id)
        link = AppraisalLink(
            employee_id=employee_id,
            appraiser_id=appraiser_id,
            template_id=template_id,
            review_period_id=period.id,
            review_period_name=period.name,
            expires_at=utc_now() + timedelta(days=expires_in_days) if expires_in_days else None,
        )
        return self.storage.save_link(link)

    def submit_via_link(self, token: str, responses: List[AppraisalResponse]) -> Appraisal:
        link = self.storage.get_link_by_token(token)
        if link is None:
            raise NotFoundError("link", token)
        if link.used:
            raise InvalidTransitionError("This appraisal link has already been used", {"token": token})
        if link.is_expired():
            raise InvalidTransitionError("This appraisal link has expired", {"token": token})

        appraisal = self._scored(
            self._template(link.template_id),
            responses,
            employee_id=link.employee_id,
            appraiser_id=link.appraiser_id,
            review_period_id=link.review_period_id or "",
            review_period_name=link.review_period_name or "",
        )
        saved = self.storage.submit_appraisal(appraisal)
        self.storage.mark_link_used(token)
        return saved

    # ------------------------------------------------------------------
    # Assignments
    # ------------------------------------------------------------------
    def submit_for_assignment(
        self,
        session: SessionContext,
        assignment_id: str,
        responses: List[AppraisalResponse],
    ) -> Appraisal:
        session.require_active()
        assignment: Optional[AppraisalAssignment] = self.storage.get_assignment(assignment_id)
        if assignment is None:
            raise NotFoundError("assignment", assignment_id)
        if not session.is_admin and session.employee_id != assignment.appraiser_id:
            raise AppException(
                message="Only the assigned appraiser can submit this form",
                status_code=403,
                error_code="FORBIDDEN",
            )
        if assignment.status == AssignmentStatus.COMPLETED:
            raise InvalidTransitionError("This assignment has already been completed", {"assignment_id": assignment_id})

        period = self.storage.get_review_period(assignment.review_period_id)
        appraisal = self._scored(
            self._template(assignment.template_id),
            responses,
            employee_id=assignment.employee_id,
            appraiser_id=assignment.appraiser_id,
            review_period_id=assignment.review_period_id,
            review_period_name=period.name if period else "",
        )
        saved = self.storage.submit_appraisal(appraisal, session)
        self.storage.update_assignment_status(assignment_id, AssignmentStatus.COMPLETED)
        logger.info(f"Assignment {assignment_id} completed by {session.username}")
        return saved

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------
    def generate_summary(self, employee_id: str, review_period_id: Optional[str] = None) -> PerformanceSummary:
        """Aggregate completed appraisals (optionally one period) and store the result."""
        employee = self.storage.get_employee(employee_id)
        if employee is None:
            raise NotFoundError("employee", employee_id)
        appraisals = [a for a in self.storage.get_appraisals() if a.employee_id == employee_id]
        period_label = "All periods"
        if review_period_id:
            appraisals = [a for a in appraisals if a.review_period_id == review_period_id]
            period = self.storage.get_review_period(review_period_id)
            period_label = period.name if period else review_period_id
        summary = build_performance_summary(employee, appraisals, self.storage.get_templates(), period=period_label)
        return self.storage.save_summary(summary)
