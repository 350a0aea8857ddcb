from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from app.core.exceptions import NotFoundError
from app.dependencies import get_storage
from app.schemas.base import CamelModel
from app.schemas.employee import Employee, active_employees
from app.schemas.user import UserOut
from app.services.accounts import AccountService
from app.services.storage import StorageSynchronizer

router = APIRouter()


class TeamChange(CamelModel):
    team_id: Optional[str] = None


class AccountCreated(BaseModel):
    user: UserOut
    password: str


class UnlinkResult(BaseModel):
    unlinked: bool
    user: Optional[UserOut] = None


@router.get("", response_model=List[Employee])
def list_employees(active_only: bool = False, storage: StorageSynchronizer = Depends(get_storage)):
    """All employees; active_only hides terminated and resigned staff."""
    employees = storage.get_employees()
    return active_employees(employees) if active_only else employees


@router.get("/{employee_id}", response_model=Employee)
def get_employee(employee_id: str, storage: StorageSynchronizer = Depends(get_storage)):
    employee = storage.get_employee(employee_id)
    if employee is None:
        raise NotFoundError("employee", employee_id)
    return employee


@router.post("", response_model=Employee, status_code=status.HTTP_201_CREATED)
def create_employee(employee: Employee, storage: StorageSynchronizer = Depends(get_storage)):
    return storage.save_employee(employee)


@router.put("/{employee_id}", response_model=Employee)
def update_employee(employee_id: str, employee: Employee, storage: StorageSynchronizer = Depends(get_storage)):
    if storage.get_employee(employee_id) is None:
        raise NotFoundError("employee", employee_id)
    return storage.save_employee(employee.model_copy(update={"id": employee_id}))


@router.patch("/{employee_id}/team", response_model=Employee)
def change_team(employee_id: str, change: TeamChange, storage: StorageSynchronizer = Depends(get_storage)):
    return storage.update_employee_team(employee_id, change.team_id)


@router.delete("/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_employee(employee_id: str, storage: StorageSynchronizer = Depends(get_storage)):
    storage.delete_employee(employee_id)


@router.post("/{employee_id}/account", response_model=AccountCreated, status_code=status.HTTP_201_CREATED)
def create_account(employee_id: str, storage: StorageSynchronizer = Depends(get_storage)):
    """Provision a login for the employee. The password is only returned here."""
    account = AccountService(storage).create_account(employee_id)
    return AccountCreated(user=UserOut.model_validate(account.user), password=account.password)


@router.delete("/{employee_id}/account", response_model=UnlinkResult)
def unlink_account(employee_id: str, storage: StorageSynchronizer = Depends(get_storage)):
    user = AccountService(storage).unlink_user(employee_id)
    return UnlinkResult(
        unlinked=user is not None,
        user=UserOut.model_validate(user) if user else None,
    )
