from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from app.core.exceptions import NotFoundError
from app.core.session import SessionContext
from app.dependencies import get_session, get_storage
from app.schemas.appraisal import Appraisal, AppraisalAssignment, AppraisalResponse, AssignmentStatus
from app.schemas.assignment import AssignmentPreview, GenerateRequest, PreviewRequest
from app.schemas.base import CamelModel
from app.services.appraisals import AppraisalService
from app.services.assignments import AssignmentService, GenerateResult
from app.services.storage import StorageSynchronizer

router = APIRouter()


class StatusChange(CamelModel):
    status: AssignmentStatus


class Submission(CamelModel):
    responses: List[AppraisalResponse]


class DeleteCount(BaseModel):
    deleted: int


@router.get("", response_model=List[AppraisalAssignment])
def list_assignments(
    review_period_id: Optional[str] = None,
    appraiser_id: Optional[str] = None,
    storage: StorageSynchronizer = Depends(get_storage),
):
    if review_period_id:
        assignments = storage.get_assignments_for_period(review_period_id)
    elif appraiser_id:
        assignments = storage.get_assignments_by_appraiser(appraiser_id)
    else:
        return storage.get_assignments()
    if appraiser_id:
        assignments = [a for a in assignments if a.appraiser_id == appraiser_id]
    return assignments


@router.get("/mine", response_model=List[AppraisalAssignment])
def my_assignments(
    session: SessionContext = Depends(get_session),
    storage: StorageSynchronizer = Depends(get_storage),
):
    if not session.employee_id:
        return []
    return storage.get_assignments_by_appraiser(session.employee_id)


@router.post("/preview", response_model=AssignmentPreview)
def preview_assignments(request: PreviewRequest, storage: StorageSynchronizer = Depends(get_storage)):
    """Who would appraise whom for the period; nothing is saved."""
    return AssignmentService(storage).preview(request.review_period_id, request.options)


@router.post("/generate", response_model=GenerateResult, status_code=status.HTTP_201_CREATED)
def generate_assignments(request: GenerateRequest, storage: StorageSynchronizer = Depends(get_storage)):
    return AssignmentService(storage).generate(request)


@router.post("", response_model=AppraisalAssignment, status_code=status.HTTP_201_CREATED)
def create_assignment(assignment: AppraisalAssignment, storage: StorageSynchronizer = Depends(get_storage)):
    return AssignmentService(storage).create_manual(assignment)


@router.get("/{assignment_id}", response_model=AppraisalAssignment)
def get_assignment(assignment_id: str, storage: StorageSynchronizer = Depends(get_storage)):
    assignment = storage.get_assignment(assignment_id)
    if assignment is None:
        raise NotFoundError("assignment", assignment_id)
    return assignment


@router.patch("/{assignment_id}/status", response_model=AppraisalAssignment)
def change_status(assignment_id: str, change: StatusChange, storage: StorageSynchronizer = Depends(get_storage)):
    return storage.update_assignment_status(assignment_id, change.status)


@router.post("/{assignment_id}/submit", response_model=Appraisal, status_code=status.HTTP_201_CREATED)
def submit_assignment(
    assignment_id: str,
    submission: Submission,
    session: SessionContext = Depends(get_session),
    storage: StorageSynchronizer = Depends(get_storage),
):
    return AppraisalService(storage).submit_for_assignment(session, assignment_id, submission.responses)


@router.delete("/period/{review_period_id}", response_model=DeleteCount)
def delete_period_assignments(review_period_id: str, storage: StorageSynchronizer = Depends(get_storage)):
    return DeleteCount(deleted=storage.delete_assignments_for_period(review_period_id))


@router.delete("/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_assignment(assignment_id: str, storage: StorageSynchronizer = Depends(get_storage)):
    storage.delete_assignment(assignment_id)
