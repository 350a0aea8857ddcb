from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from app.schemas.base import CamelModel, new_id, utc_now


class Team(CamelModel):
    """A department. Its leader is found by scanning employees, not stored here."""
    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    oversight_executive_id: Optional[str] = None
    leader_ids: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("leader_ids", mode="before")
    @classmethod
    def _default_leaders(cls, value):
        return value or []
