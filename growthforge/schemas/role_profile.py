"""
Pydantic schemas for role profiles (the AI generated skill map)
"""
import re
import unicodedata
from typing import Annotated, List

from pydantic import Field, field_validator, model_validator
from pydantic_core import PydanticCustomError

from growthforge.schemas.common import CamelModel, FreeText, NonEmptyStr


def slugify_skill_id(value: str) -> str:
    """'Stakeholder Management' -> 'stakeholder_management' (ASCII only)"""
    ascii_text = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^a-z0-9]+", "_", ascii_text.lower()).strip("_")


class Skill(CamelModel):
    id: NonEmptyStr
    name: NonEmptyStr
    description: NonEmptyStr
    target_level: Annotated[int, Field(ge=1, le=5, strict=True)]

    @field_validator("id")
    @classmethod
    def normalize_id(cls, value: str) -> str:
        slug = slugify_skill_id(value)
        if not slug:
            raise PydanticCustomError("skill_id", "must contain ASCII letters or digits")
        return slug


class SkillArea(CamelModel):
    area: NonEmptyStr
    skills: List[Skill] = Field(..., min_length=1)


class RoleProfile(CamelModel):
    archetype: NonEmptyStr
    skill_areas: List[SkillArea] = Field(..., min_length=1)

    @model_validator(mode="after")
    def unique_skill_ids(self):
        # Skill ids key the (user, skill) assessment upsert, so they must not collide
        seen = set()
        for area in self.skill_areas:
            for skill in area.skills:
                if skill.id in seen:
                    raise PydanticCustomError("duplicate_skill_id", "duplicate skill id '{id}'", {"id": skill.id})
                seen.add(skill.id)
        return self

    def skill_count(self) -> int:
        return sum(len(area.skills) for area in self.skill_areas)


# ========== API Request Schemas ==========
class RoleProfileRequest(CamelModel):
    role_description: FreeText
