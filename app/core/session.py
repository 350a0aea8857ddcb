"""
Explicit session state.

Operations that act on behalf of a signed-in user take a SessionContext
argument instead of reading ambient globals.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from app.core.exceptions import SessionInvalidError
from app.schemas.employee import Employee, is_locked
from app.schemas.user import User, UserRole

logger = logging.getLogger(__name__)


@dataclass
class SessionContext:
    user_id: str
    username: str
    role: UserRole
    employee_id: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    active: bool = True
    invalid_reason: Optional[str] = None

    @classmethod
    def for_user(cls, user: User) -> "SessionContext":
        return cls(
            user_id=user.id,
            username=user.username,
            role=user.role,
            employee_id=user.employee_id,
        )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def invalidate(self, reason: str) -> None:
        if self.active:
            logger.info(f"Session for {self.username} invalidated: {reason}")
        self.active = False
        self.invalid_reason = reason

    def revalidate(self, user: Optional[User], employee: Optional[Employee] = None) -> bool:
        """
        Re-check the session against current records.

        A session dies when its user is gone or inactive, or when the linked
        employee is gone or has left the company.
        """
        if not self.active:
            return False
        if user is None:
            self.invalidate("user no longer exists")
        elif not user.active:
            self.invalidate("user is inactive")
        elif self.employee_id:
            if employee is None:
                self.invalidate("linked employee no longer exists")
            elif is_locked(employee):
                self.invalidate(f"linked employee is {employee.employment_status.value}")
        return self.active

    def require_active(self) -> None:
        if not self.active:
            raise SessionInvalidError(self.invalid_reason or "Session is no longer valid")
