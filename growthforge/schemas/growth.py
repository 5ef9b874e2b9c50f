"""
Pydantic schemas for growth plans
"""
from typing import List, Literal, Optional

from pydantic import StrictStr, field_validator

from growthforge.schemas.common import CamelModel, NonEmptyStr


GrowthItemType = Literal["book", "course", "habit", "mission"]
GrowthItemStatus = Literal["pending", "in_progress", "done"]


class SkillGap(CamelModel):
    """Input to growth plan generation, derived from stored assessments"""
    skill: str
    area: str
    gap: int
    current_level: int
    target_level: int


# ========== AI Output Schemas ==========
class GrowthItemDraft(CamelModel):
    """A growth item as generated, before it has an id or status"""
    type: GrowthItemType
    title: NonEmptyStr
    description: NonEmptyStr
    link: Optional[StrictStr] = None

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("link", mode="before")
    @classmethod
    def blank_link_is_null(cls, value):
        if isinstance(value, str) and value.strip().lower() in ("", "null", "none", "n/a"):
            return None
        return value.strip() if isinstance(value, str) else value


class GrowthPlanDraft(CamelModel):
    growth_items: List[GrowthItemDraft]


# ========== API Request Schemas ==========
class GrowthItemStatusUpdate(CamelModel):
    status: GrowthItemStatus
