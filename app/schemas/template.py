import enum
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from app.schemas.base import CamelModel, new_id, utc_now


class TemplateType(str, enum.Enum):
    """Which relationship category a template is written for."""
    LEADER_TO_MEMBER = "leader-to-member"
    MEMBER_TO_LEADER = "member-to-leader"
    LEADER_TO_LEADER = "leader-to-leader"
    EXEC_TO_LEADER = "exec-to-leader"
    HR_TO_ALL = "hr-to-all"


class QuestionType(str, enum.Enum):
    RATING_1_5 = "rating-1-5"
    TEXT = "text"
    MULTIPLE_CHOICE = "multiple-choice"


class CategoryItem(CamelModel):
    id: str = Field(default_factory=new_id)
    text: str
    category_name: Optional[str] = None
    type: QuestionType = QuestionType.RATING_1_5
    # Percentage-point contribution; weights need not add up to 100
    weight: float = Field(default=0, ge=0)
    required: bool = False
    options: Optional[List[str]] = None
    order: int = 0


class Category(CamelModel):
    id: str = Field(default_factory=new_id)
    category_name: str
    items: List[CategoryItem] = Field(default_factory=list)
    order: int = 0


class Template(CamelModel):
    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1)
    subtitle: Optional[str] = None
    type: TemplateType
    categories: List[Category] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    version: int = 1

    @field_validator("categories", mode="before")
    @classmethod
    def _default_categories(cls, value):
        return value or []

    def ordered_items(self) -> List[CategoryItem]:
        """All items, categories and items each in their configured order."""
        items: List[CategoryItem] = []
        for category in sorted(self.categories, key=lambda c: c.order):
            items.extend(sorted(category.items, key=lambda i: i.order))
        return items
