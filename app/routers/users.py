from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from app.core.exceptions import NotFoundError
from app.dependencies import get_storage
from app.schemas.base import CamelModel
from app.schemas.user import User, UserOut, UserRole
from app.services.storage import StorageSynchronizer

router = APIRouter()


class UserUpdate(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[UserRole] = None
    active: Optional[bool] = None
    employee_id: Optional[str] = None


class UsernameCheck(BaseModel):
    username: str
    available: bool


def _out(user: User) -> UserOut:
    return UserOut.model_validate(user)


@router.get("", response_model=List[UserOut])
def list_users(storage: StorageSynchronizer = Depends(get_storage)):
    return [_out(u) for u in storage.get_users()]


@router.get("/check-username", response_model=UsernameCheck)
def check_username(username: str, storage: StorageSynchronizer = Depends(get_storage)):
    normalized = username.strip().lower()
    return UsernameCheck(username=normalized, available=storage.get_user_by_username(normalized) is None)


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: str, storage: StorageSynchronizer = Depends(get_storage)):
    user = storage.get_user(user_id)
    if user is None:
        raise NotFoundError("user", user_id)
    return _out(user)


@router.patch("/{user_id}", response_model=UserOut)
def update_user(user_id: str, changes: UserUpdate, storage: StorageSynchronizer = Depends(get_storage)):
    user = storage.get_user(user_id)
    if user is None:
        raise NotFoundError("user", user_id)
    updated = user.model_copy(update=changes.model_dump(exclude_unset=True))
    return _out(storage.save_user(updated))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(user_id: str, storage: StorageSynchronizer = Depends(get_storage)):
    storage.delete_user(user_id)
