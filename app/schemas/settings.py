import enum
from typing import Optional

from pydantic import Field

from app.schemas.base import CamelModel

SETTINGS_KEY = "company"


class Theme(str, enum.Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class CompanySettings(CamelModel):
    name: str = "Your Company"
    logo: Optional[str] = None
    admin_pin: str = "1234"
    accent_color: str = "#3B82F6"
    theme: Theme = Theme.SYSTEM
    # Share of the final ranking score contributed by HR appraisals
    hr_score_weight: int = Field(default=30, ge=0, le=100)
    require_hr_for_ranking: bool = False


DEFAULT_SETTINGS = CompanySettings()
