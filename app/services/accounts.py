"""
Login account provisioning for employees.
"""
import logging
import re
from datetime import datetime, timezone
from typing import Iterable, Optional

from pydantic import BaseModel
from tenacity import RetryError, retry, retry_if_result, stop_after_attempt, wait_fixed

from app.core.config import settings
from app.core.events import Topic
from app.core.exceptions import AppException, NotFoundError, UsernameUnavailableError
from app.core.security import generate_password, hash_password
from app.schemas.employee import Employee
from app.schemas.user import User, UserRole
from app.services.storage import StorageSynchronizer

logger = logging.getLogger(__name__)


def generate_base_username(name: str, email: Optional[str] = None) -> str:
    """Email local part when there is one, else a dotted form of the name."""
    if email and email.strip():
        local_part = email.strip().split("@")[0].lower()
        base = re.sub(r"[^a-z0-9]", "", local_part)
        if base:
            return base
    base = re.sub(r"\s+", ".", name.strip().lower())
    return re.sub(r"[^a-z0-9.]", "", base)


def choose_unique_username(base: str, existing: Iterable[str], max_attempts: Optional[int] = None) -> str:
    """
    First free candidate among base, base1, base2, ... (case-insensitive).
    Falls back to a timestamp suffix once max_attempts numbered candidates are taken.
    """
    attempts = max_attempts if max_attempts is not None else settings.username_max_attempts
    taken = {u.lower() for u in existing}
    base = base.lower()
    if base not in taken:
        return base
    for n in range(1, attempts + 1):
        candidate = f"{base}{n}"
        if candidate not in taken:
            return candidate
    return f"{base}{int(datetime.now(timezone.utc).timestamp() * 1000) % 1_000_000}"


class ProvisionedAccount(BaseModel):
    user: User
    # Shown once to the administrator, never stored
    password: str


class AccountService:
    def __init__(self, storage: StorageSynchronizer):
        self.storage = storage

    def _confirm_saved(self, employee_id: str, user_id: str) -> User:
        """
        Re-read the new account, tolerating a remote that is briefly behind
        its own writes. Falls back to a lookup by user id.
        """
        @retry(
            stop=stop_after_attempt(max(1, settings.account_lookup_retries)),
            wait=wait_fixed(settings.account_lookup_delay_seconds),
            retry=retry_if_result(lambda user: user is None),
        )
        def lookup() -> Optional[User]:
            return self.storage.get_user_by_employee_id(employee_id)

        try:
            user = lookup()
        except RetryError:
            logger.warning(f"New account for employee {employee_id} not visible by employee id yet")
            user = None
        if user is None:
            user = self.storage.get_user(user_id)
        if user is None:
            raise AppException(
                message="Account was created but could not be read back",
                status_code=500,
                error_code="ACCOUNT_VERIFY_FAILED",
                details={"employee_id": employee_id, "user_id": user_id},
            )
        return user

    def _pick_username(self, base: str) -> str:
        """
        Candidate from the merged user list, re-checked against the authoritative
        source. The merged list may lag the remote, so a name found taken there is
        added to the taken set and a new candidate chosen, for a bounded number of rounds.
        """
        taken = [u.username for u in self.storage.get_users()]
        rounds = max(1, settings.username_max_attempts)
        for _ in range(rounds):
            username = choose_unique_username(base, taken)
            if self.storage.get_user_by_username(username) is None:
                return username
            logger.info(f"Username {username} already taken on re-check; choosing another")
            taken.append(username)
        raise UsernameUnavailableError(base, rounds)

    def create_account_for_employee(self, employee: Employee) -> ProvisionedAccount:
        existing = self.storage.get_user_by_employee_id(employee.id)
        if existing is not None:
            raise AppException(
                message=f"Employee {employee.name} already has an account ({existing.username})",
                status_code=409,
                error_code="ACCOUNT_EXISTS",
            )

        base = generate_base_username(employee.name, employee.email)
        if not base:
            raise AppException(
                message="Cannot derive a username from this employee's name or email",
                status_code=400,
                error_code="USERNAME_INVALID",
            )
        username = self._pick_username(base)

        password = generate_password(8)
        user = User(
            username=username,
            password_hash=hash_password(password),
            name=employee.name,
            email=employee.email,
            role=UserRole.STAFF,
            active=True,
            employee_id=employee.id,
            must_change_password=True,
        )
        self.storage.users.save(user)
        saved = self._confirm_saved(employee.id, user.id)
        self.storage.bus.publish(Topic.USER_CREATED, {"user_id": saved.id, "employee_id": employee.id})
        logger.info(f"Created account {saved.username} for employee {employee.id}")
        return ProvisionedAccount(user=saved, password=password)

    def unlink_user(self, employee_id: str) -> Optional[User]:
        """Detach the account from the employee. The account itself is kept."""
        user = self.storage.get_user_by_employee_id(employee_id)
        if user is None:
            return None
        return self.storage.save_user(user.model_copy(update={"employee_id": None}))

    def create_account(self, employee_id: str) -> ProvisionedAccount:
        employee = self.storage.get_employee(employee_id)
        if employee is None:
            raise NotFoundError("employee", employee_id)
        return self.create_account_for_employee(employee)
