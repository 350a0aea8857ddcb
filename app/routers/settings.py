from fastapi import APIRouter, Depends

from app.dependencies import get_storage
from app.schemas.settings import CompanySettings
from app.services.storage import StorageSynchronizer

router = APIRouter()


@router.get("", response_model=CompanySettings)
def get_settings(storage: StorageSynchronizer = Depends(get_storage)):
    return storage.get_settings()


@router.put("", response_model=CompanySettings)
def update_settings(settings: CompanySettings, storage: StorageSynchronizer = Depends(get_storage)):
    return storage.save_settings(settings)
