from datetime import datetime
from typing import List

from pydantic import Field

from app.schemas.base import CamelModel, utc_now
from app.schemas.template import TemplateType


class ScoreBreakdown(CamelModel):
    type: TemplateType
    score: float
    max_score: float


class PerformanceSummary(CamelModel):
    employee_id: str
    period: str
    total_score: float = 0
    max_score: float = 0
    percentage: float = 0
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    narrative: str = ""
    breakdown: List[ScoreBreakdown] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=utc_now)
