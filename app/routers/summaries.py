from typing import List, Optional

from fastapi import APIRouter, Depends

from app.core.exceptions import NotFoundError
from app.dependencies import get_storage
from app.schemas.summary import PerformanceSummary
from app.services.appraisals import AppraisalService
from app.services.storage import StorageSynchronizer

router = APIRouter()


@router.get("", response_model=List[PerformanceSummary])
def list_summaries(storage: StorageSynchronizer = Depends(get_storage)):
    return storage.get_summaries()


@router.get("/{employee_id}", response_model=PerformanceSummary)
def get_summary(employee_id: str, storage: StorageSynchronizer = Depends(get_storage)):
    summary = storage.get_summary(employee_id)
    if summary is None:
        raise NotFoundError("summary", employee_id)
    return summary


@router.post("/{employee_id}", response_model=PerformanceSummary)
def generate_summary(
    employee_id: str,
    review_period_id: Optional[str] = None,
    storage: StorageSynchronizer = Depends(get_storage),
):
    """Recompute from completed appraisals and store the result."""
    return AppraisalService(storage).generate_summary(employee_id, review_period_id)
