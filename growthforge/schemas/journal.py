"""Request bodies for skill assessments, reflections and accounts"""
from typing import List, Literal, Optional

from pydantic import EmailStr, Field

from growthforge.schemas.common import CamelModel


class SkillAssessmentCreate(CamelModel):
    skill_id: str = Field(..., min_length=1, max_length=200)
    area: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    target_level: int = Field(..., ge=1, le=5)
    current_level: int = Field(..., ge=1, le=5)
    examples: Optional[str] = None
    recommended_resources: Optional[List[str]] = None


class ReflectionCreate(CamelModel):
    content: str = Field(..., min_length=1, max_length=20000)
    type: Literal["general", "weekly_review", "mental_model"] = "general"


class UserCreate(CamelModel):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=200)


class GoogleAuthRequest(CamelModel):
    code: str = Field(..., min_length=1)
    redirect_uri: str = Field(..., min_length=1)
