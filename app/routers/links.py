from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import Field

from app.core.exceptions import NotFoundError
from app.dependencies import get_storage
from app.schemas.appraisal import Appraisal, AppraisalLink, AppraisalResponse
from app.schemas.base import CamelModel
from app.services.appraisals import AppraisalService
from app.services.storage import StorageSynchronizer

router = APIRouter()


class LinkCreate(CamelModel):
    employee_id: str
    appraiser_id: str
    template_id: str
    review_period_id: str
    expires_in_days: Optional[int] = Field(default=None, gt=0)


class Submission(CamelModel):
    responses: List[AppraisalResponse]


@router.get("", response_model=List[AppraisalLink])
def list_links(storage: StorageSynchronizer = Depends(get_storage)):
    return storage.get_links()


@router.post("", response_model=AppraisalLink, status_code=status.HTTP_201_CREATED)
def create_link(request: LinkCreate, storage: StorageSynchronizer = Depends(get_storage)):
    return AppraisalService(storage).create_link(
        employee_id=request.employee_id,
        appraiser_id=request.appraiser_id,
        template_id=request.template_id,
        review_period_id=request.review_period_id,
        expires_in_days=request.expires_in_days,
    )


@router.get("/token/{token}", response_model=AppraisalLink)
def get_link_by_token(token: str, storage: StorageSynchronizer = Depends(get_storage)):
    link = storage.get_link_by_token(token)
    if link is None:
        raise NotFoundError("link", token)
    return link


@router.post("/token/{token}/consume", response_model=AppraisalLink)
def consume_link(token: str, storage: StorageSynchronizer = Depends(get_storage)):
    return storage.mark_link_used(token)


@router.post("/token/{token}/submit", response_model=Appraisal, status_code=status.HTTP_201_CREATED)
def submit_via_link(token: str, submission: Submission, storage: StorageSynchronizer = Depends(get_storage)):
    """Anonymous form submission; the link is consumed on success."""
    return AppraisalService(storage).submit_via_link(token, submission.responses)


@router.delete("/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_link(link_id: str, storage: StorageSynchronizer = Depends(get_storage)):
    storage.delete_link(link_id)
