"""Skill Self-Assessment Routes"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from growthforge.database import get_db
from growthforge.middleware.auth import get_principal
from growthforge.models.skill_assessment import SkillAssessment
from growthforge.routes.deps import get_persister
from growthforge.schemas.journal import SkillAssessmentCreate
from growthforge.services.persister import Persister
from growthforge.services.sessions import Principal

router = APIRouter()


@router.post("")
async def save_skill_assessment(
    data: SkillAssessmentCreate,
    principal: Principal = Depends(get_principal),
    persister: Persister = Depends(get_persister),
):
    """Save or update (keyed on skillId) the caller's rating for one skill"""
    assessment = await persister.upsert_skill_assessment(principal.user_id, data)
    return assessment.to_dict()


async def list_skill_assessments(db: AsyncSession, user_id: int) -> list:
    result = await db.execute(
        select(SkillAssessment)
        .where(SkillAssessment.user_id == user_id)
        .order_by(SkillAssessment.area, SkillAssessment.name)
    )
    return [a.to_dict() for a in result.scalars().all()]


@router.get("")
async def get_skill_assessments(
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return {"assessments": await list_skill_assessments(db, principal.user_id)}
