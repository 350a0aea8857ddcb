from typing import Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.core.exceptions import AppException
from app.dependencies import get_storage
from app.schemas.backup import Snapshot
from app.services.storage import StorageSynchronizer

router = APIRouter()


class ImportResult(BaseModel):
    imported: Dict[str, int]


class SyncResult(BaseModel):
    synced: bool
    remote_configured: bool


class ClearResult(BaseModel):
    deleted: Dict[str, int]


@router.get("/export", response_model=Snapshot)
def export_backup(storage: StorageSynchronizer = Depends(get_storage)):
    return storage.export_all()


@router.post("/import", response_model=ImportResult)
def import_backup(snapshot: Snapshot, storage: StorageSynchronizer = Depends(get_storage)):
    return ImportResult(imported=storage.import_all(snapshot))


@router.post("/sync", response_model=SyncResult)
def sync_from_remote(storage: StorageSynchronizer = Depends(get_storage)):
    """Overwrite the local cache with the remote contents."""
    synced = storage.sync_from_remote()
    if storage.remote_configured and not synced:
        raise AppException(
            message="Remote backend is unreachable; sync did not complete",
            status_code=503,
            error_code="REMOTE_UNAVAILABLE",
        )
    return SyncResult(synced=synced, remote_configured=storage.remote_configured)


@router.post("/clear-appraisals", response_model=ClearResult)
def clear_appraisal_data(storage: StorageSynchronizer = Depends(get_storage)):
    return ClearResult(deleted=storage.clear_appraisal_data())
