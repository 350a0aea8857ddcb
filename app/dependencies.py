"""
Shared FastAPI dependencies.

The storage synchronizer is built once per process from the resolved remote
configuration; tests replace it through app.dependency_overrides.
"""
import threading
from typing import Optional

from fastapi import Depends, Header

from app.core.config import resolve_remote_config
from app.core.exceptions import SessionInvalidError
from app.core.session import SessionContext
from app.database import get_local_cache
from app.services.storage import StorageSynchronizer

_storage: Optional[StorageSynchronizer] = None
_storage_lock = threading.Lock()


def get_storage() -> StorageSynchronizer:
    global _storage
    if _storage is None:
        with _storage_lock:
            if _storage is None:
                _storage = StorageSynchronizer.from_config(resolve_remote_config(), get_local_cache())
    return _storage


def reset_storage() -> None:
    global _storage
    with _storage_lock:
        _storage = None


def get_session(
    x_user_id: Optional[str] = Header(default=None),
    storage: StorageSynchronizer = Depends(get_storage),
) -> SessionContext:
    """
    Session for the signed-in user named by the X-User-Id header.

    Sign-in itself happens elsewhere; this only re-checks that the account
    and its linked employee are still valid.
    """
    if not x_user_id:
        raise SessionInvalidError("Missing X-User-Id header")
    user = storage.get_user(x_user_id)
    if user is None:
        raise SessionInvalidError("Unknown user")
    session = SessionContext.for_user(user)
    employee = storage.get_employee(user.employee_id) if user.employee_id else None
    session.revalidate(user, employee)
    session.require_active()
    return session
