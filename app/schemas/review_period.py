import enum
from datetime import date, datetime
from typing import Optional

from pydantic import Field, model_validator

from app.schemas.base import CamelModel, new_id, utc_now


class PeriodType(str, enum.Enum):
    Q1 = "Q1"
    Q2 = "Q2"
    Q3 = "Q3"
    Q4 = "Q4"
    H1 = "H1"
    H2 = "H2"
    ANNUAL = "Annual"
    CUSTOM = "Custom"


class PeriodStatus(str, enum.Enum):
    PLANNING = "planning"
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class ReviewPeriod(CamelModel):
    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1)
    type: PeriodType
    year: int
    start_date: date
    end_date: date
    status: PeriodStatus = PeriodStatus.PLANNING
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)

    @model_validator(mode="after")
    def _check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self
