from datetime import date
from typing import List

from fastapi import APIRouter, Depends, status

from app.core.exceptions import NotFoundError
from app.dependencies import get_storage
from app.schemas.base import CamelModel
from app.schemas.review_period import PeriodType, ReviewPeriod
from app.services import periods as period_helpers
from app.services.storage import StorageSynchronizer

router = APIRouter()


class PeriodDefaults(CamelModel):
    name: str
    type: PeriodType
    year: int
    start_date: date
    end_date: date


@router.get("", response_model=List[ReviewPeriod])
def list_periods(storage: StorageSynchronizer = Depends(get_storage)):
    return storage.get_review_periods()


@router.get("/active", response_model=List[ReviewPeriod])
def list_active_periods(storage: StorageSynchronizer = Depends(get_storage)):
    return storage.get_active_review_periods()


@router.get("/defaults", response_model=PeriodDefaults)
def period_defaults(type: PeriodType, year: int):
    """Suggested name and date range for a new period."""
    start, end = period_helpers.period_dates(type, year)
    return PeriodDefaults(
        name=period_helpers.generate_period_name(type, year),
        type=type,
        year=year,
        start_date=start,
        end_date=end,
    )


@router.get("/{period_id}", response_model=ReviewPeriod)
def get_period(period_id: str, storage: StorageSynchronizer = Depends(get_storage)):
    period = storage.get_review_period(period_id)
    if period is None:
        raise NotFoundError("review period", period_id)
    return period


@router.post("", response_model=ReviewPeriod, status_code=status.HTTP_201_CREATED)
def create_period(period: ReviewPeriod, storage: StorageSynchronizer = Depends(get_storage)):
    return storage.save_review_period(period)


@router.put("/{period_id}", response_model=ReviewPeriod)
def update_period(period_id: str, period: ReviewPeriod, storage: StorageSynchronizer = Depends(get_storage)):
    return storage.save_review_period(period.model_copy(update={"id": period_id}))


@router.delete("/{period_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_period(period_id: str, storage: StorageSynchronizer = Depends(get_storage)):
    """Deletes the period with its assignments and links."""
    storage.delete_review_period(period_id)
