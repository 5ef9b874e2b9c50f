"""
Mental Models Coach Routes
Dilemma prompt -> exactly 5 mental model analyses, stored as a session
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from growthforge.database import get_db
from growthforge.middleware.auth import get_principal
from growthforge.middleware.rate_limit import limiter, GENERATION_LIMIT
from growthforge.models.mental_model_session import MentalModelSession
from growthforge.routes.deps import get_pipeline
from growthforge.schemas.mental_models import MentalModelsRequest
from growthforge.services.errors import NotFound
from growthforge.services.generation import GenerationPipeline
from growthforge.services.sessions import Principal

router = APIRouter()


@router.post("")
@limiter.limit(GENERATION_LIMIT)
async def mental_models_coach(
    request: Request,
    data: MentalModelsRequest,
    principal: Principal = Depends(get_principal),
    pipeline: GenerationPipeline = Depends(get_pipeline),
):
    result = await pipeline.coach_mental_models(principal, data.prompt)
    return result.value.to_dict()


@router.get("")
async def list_mental_model_sessions(
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(MentalModelSession)
        .where(MentalModelSession.user_id == principal.user_id)
        .order_by(MentalModelSession.created_at.desc(), MentalModelSession.id.desc())
    )
    return {"sessions": [s.to_dict() for s in result.scalars().all()]}


@router.get("/{session_id}")
async def get_mental_model_session(
    session_id: int,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    session = await db.get(MentalModelSession, session_id)
    # Other users' sessions are indistinguishable from missing ones
    if session is None or session.user_id != principal.user_id:
        raise NotFound("mental model session not found")
    return session.to_dict()
