"""Profile overview: everything the dashboard needs in one call"""
import asyncio

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import async_sessionmaker

from growthforge.database import get_session_factory
from growthforge.middleware.auth import get_principal
from growthforge.routes.growth import list_growth_items
from growthforge.routes.reflections import list_reflections
from growthforge.routes.skills import list_skill_assessments
from growthforge.services.sessions import Principal
from growthforge.utils.metrics import track_duration

router = APIRouter()


@router.get("/overview")
async def profile_overview(
    principal: Principal = Depends(get_principal),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    """
    Skills, growth items and reflections read concurrently.
    An AsyncSession cannot run queries in parallel, so each read gets its own.
    """

    async def read(lister):
        async with session_factory() as session:
            return await lister(session, principal.user_id)

    async with track_duration("profile", "overview"):
        skills, growth_items, reflections = await asyncio.gather(
            read(list_skill_assessments),
            read(list_growth_items),
            read(list_reflections),
        )

    return {
        "skills": skills,
        "growthItems": growth_items,
        "reflections": reflections,
    }
