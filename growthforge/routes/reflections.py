"""Reflection Journal Routes (append-only)"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from growthforge.database import get_db
from growthforge.middleware.auth import get_principal
from growthforge.models.reflection import ReflectionEntry, REFLECTION_TYPES
from growthforge.routes.deps import get_persister
from growthforge.schemas.journal import ReflectionCreate
from growthforge.services.errors import InvalidArgument
from growthforge.services.persister import Persister
from growthforge.services.sessions import Principal

router = APIRouter()


@router.post("")
async def save_reflection(
    data: ReflectionCreate,
    principal: Principal = Depends(get_principal),
    persister: Persister = Depends(get_persister),
):
    entry = await persister.save_reflection(principal.user_id, data)
    return entry.to_dict()


async def list_reflections(db: AsyncSession, user_id: int, type: Optional[str] = None) -> list:
    query = select(ReflectionEntry).where(ReflectionEntry.user_id == user_id)
    if type:
        query = query.where(ReflectionEntry.type == type)
    query = query.order_by(ReflectionEntry.created_at.desc(), ReflectionEntry.id.desc())
    result = await db.execute(query)
    return [entry.to_dict() for entry in result.scalars().all()]


@router.get("")
async def get_reflections(
    type: Optional[str] = None,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    """Newest first, optionally filtered by type"""
    if type and type not in REFLECTION_TYPES:
        raise InvalidArgument(f"type must be one of {', '.join(REFLECTION_TYPES)}")
    return {"reflections": await list_reflections(db, principal.user_id, type)}
