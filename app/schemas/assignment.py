"""Input/output shapes of the relationship resolution engine."""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from app.schemas.appraisal import RelationshipType
from app.schemas.base import CamelModel


class RelationshipOptions(CamelModel):
    include_leader_to_member: bool = True
    include_member_to_leader: bool = True
    include_leader_to_leader: bool = True
    include_exec_to_leader: bool = True
    include_hr_to_all: bool = True


class Pair(CamelModel):
    appraiser_id: str
    appraiser_name: str
    employee_id: str
    employee_name: str


class AssignmentPreview(CamelModel):
    pairs: Dict[RelationshipType, List[Pair]] = Field(default_factory=dict)
    warnings: List[str] = Field(default_factory=list)

    def pairs_for(self, relationship: RelationshipType) -> List[Pair]:
        return self.pairs.get(relationship, [])

    @property
    def total(self) -> int:
        return sum(len(p) for p in self.pairs.values())


class TemplateMapping(CamelModel):
    """One template id per automatic relationship type."""
    leader_to_member: Optional[str] = None
    member_to_leader: Optional[str] = None
    leader_to_leader: Optional[str] = None
    exec_to_leader: Optional[str] = None
    hr_to_all: Optional[str] = None

    def template_for(self, relationship: RelationshipType) -> Optional[str]:
        return getattr(self, relationship.value.replace("-", "_"), None)


class PreviewRequest(CamelModel):
    review_period_id: str
    options: RelationshipOptions = Field(default_factory=RelationshipOptions)


class GenerateRequest(PreviewRequest):
    template_mapping: TemplateMapping
    due_date: Optional[datetime] = None
