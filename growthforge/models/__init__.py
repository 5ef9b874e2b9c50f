# Database models package
from growthforge.models.user import User
from growthforge.models.skill_assessment import SkillAssessment
from growthforge.models.growth_item import GrowthItem
from growthforge.models.reflection import ReflectionEntry
from growthforge.models.mental_model_session import MentalModelSession

__all__ = [
    "User",
    "SkillAssessment",
    "GrowthItem",
    "ReflectionEntry",
    "MentalModelSession",
]
