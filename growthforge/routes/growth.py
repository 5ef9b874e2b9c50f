"""Growth Plan Routes"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from growthforge.database import get_db
from growthforge.middleware.auth import get_principal
from growthforge.middleware.rate_limit import limiter, GENERATION_LIMIT
from growthforge.models.growth_item import GrowthItem
from growthforge.routes.deps import get_pipeline, get_persister
from growthforge.schemas.growth import GrowthItemStatusUpdate
from growthforge.services.generation import GenerationPipeline
from growthforge.services.persister import Persister
from growthforge.services.sessions import Principal
from growthforge.utils.logger import get_logger

router = APIRouter()
logger = get_logger("growth")


@router.post("/growth-plan")
@limiter.limit(GENERATION_LIMIT)
async def generate_growth_plan(
    request: Request,
    principal: Principal = Depends(get_principal),
    pipeline: GenerationPipeline = Depends(get_pipeline),
):
    """
    Generate growth items for the caller's skill gaps (current < target level).
    Empty when there are no gaps; otherwise the whole batch is stored or nothing is.
    """
    result = await pipeline.generate_growth_plan(principal)
    return {"growthItems": [item.to_dict() for item in result.value]}


async def list_growth_items(db: AsyncSession, user_id: int) -> list:
    result = await db.execute(
        select(GrowthItem)
        .where(GrowthItem.user_id == user_id)
        .order_by(GrowthItem.created_at.desc(), GrowthItem.id.desc())
    )
    return [item.to_dict() for item in result.scalars().all()]


@router.get("/growth-items")
async def get_growth_items(
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return {"growthItems": await list_growth_items(db, principal.user_id)}


@router.put("/growth-items/{item_id}/status")
async def update_growth_item_status(
    item_id: int,
    data: GrowthItemStatusUpdate,
    principal: Principal = Depends(get_principal),
    persister: Persister = Depends(get_persister),
):
    """Move an item between pending / in_progress / done. Only the owner may."""
    item = await persister.update_growth_item_status(principal.user_id, item_id, data.status)
    logger.info(f"Growth item {item.id} -> {item.status}", extra={"user_id": principal.user_id})
    return item.to_dict()
