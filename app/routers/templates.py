from typing import List

from fastapi import APIRouter, Depends, status

from app.core.exceptions import NotFoundError
from app.dependencies import get_storage
from app.schemas.base import utc_now
from app.schemas.template import Template
from app.services.storage import StorageSynchronizer

router = APIRouter()


@router.get("", response_model=List[Template])
def list_templates(storage: StorageSynchronizer = Depends(get_storage)):
    return storage.get_templates()


@router.get("/{template_id}", response_model=Template)
def get_template(template_id: str, storage: StorageSynchronizer = Depends(get_storage)):
    template = storage.get_template(template_id)
    if template is None:
        raise NotFoundError("template", template_id)
    return template


@router.post("", response_model=Template, status_code=status.HTTP_201_CREATED)
def create_template(template: Template, storage: StorageSynchronizer = Depends(get_storage)):
    return storage.save_template(template)


@router.put("/{template_id}", response_model=Template)
def update_template(template_id: str, template: Template, storage: StorageSynchronizer = Depends(get_storage)):
    current = storage.get_template(template_id)
    if current is None:
        raise NotFoundError("template", template_id)
    # Edits bump the version so submitted forms can be told apart
    updated = template.model_copy(
        update={"id": template_id, "version": current.version + 1, "updated_at": utc_now()}
    )
    return storage.save_template(updated)


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_template(template_id: str, storage: StorageSynchronizer = Depends(get_storage)):
    storage.delete_template(template_id)
