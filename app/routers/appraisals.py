from typing import List, Optional

from fastapi import APIRouter, Depends, status

from app.core.exceptions import NotFoundError
from app.dependencies import get_storage
from app.schemas.appraisal import Appraisal
from app.services.storage import StorageSynchronizer

router = APIRouter()


@router.get("", response_model=List[Appraisal])
def list_appraisals(
    employee_id: Optional[str] = None,
    appraiser_id: Optional[str] = None,
    review_period_id: Optional[str] = None,
    storage: StorageSynchronizer = Depends(get_storage),
):
    appraisals = storage.get_appraisals()
    if employee_id:
        appraisals = [a for a in appraisals if a.employee_id == employee_id]
    if appraiser_id:
        appraisals = [a for a in appraisals if a.appraiser_id == appraiser_id]
    if review_period_id:
        appraisals = [a for a in appraisals if a.review_period_id == review_period_id]
    return appraisals


@router.get("/{appraisal_id}", response_model=Appraisal)
def get_appraisal(appraisal_id: str, storage: StorageSynchronizer = Depends(get_storage)):
    appraisal = storage.get_appraisal(appraisal_id)
    if appraisal is None:
        raise NotFoundError("appraisal", appraisal_id)
    return appraisal


@router.post("", response_model=Appraisal, status_code=status.HTTP_201_CREATED)
def submit_appraisal(appraisal: Appraisal, storage: StorageSynchronizer = Depends(get_storage)):
    """Store a pre-scored form, e.g. when migrating history."""
    return storage.submit_appraisal(appraisal)


@router.delete("/{appraisal_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_appraisal(appraisal_id: str, storage: StorageSynchronizer = Depends(get_storage)):
    storage.delete_appraisal(appraisal_id)
