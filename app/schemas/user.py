import enum
from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from app.schemas.base import CamelModel, new_id, utc_now


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    STAFF = "staff"


class User(CamelModel):
    id: str = Field(default_factory=new_id)
    username: str = Field(..., min_length=1)
    password_hash: str
    name: str
    email: Optional[str] = None
    role: UserRole = UserRole.STAFF
    active: bool = True
    employee_id: Optional[str] = None
    must_change_password: bool = False
    created_at: datetime = Field(default_factory=utc_now)
    last_login_at: Optional[datetime] = None

    @field_validator("username")
    @classmethod
    def _normalize_username(cls, value: str) -> str:
        # Stored lower-case so lookups are case-insensitive everywhere
        return value.strip().lower()

    @field_validator("active", "must_change_password", mode="before")
    @classmethod
    def _null_to_default(cls, value, info):
        if value is None:
            return info.field_name == "active"
        return value


class UserOut(CamelModel):
    """User as returned by the API; never carries the password hash."""
    id: str
    username: str
    name: str
    email: Optional[str] = None
    role: UserRole
    active: bool
    employee_id: Optional[str] = None
    must_change_password: bool
