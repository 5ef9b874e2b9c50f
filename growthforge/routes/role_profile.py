"""
Role Profile Routes
Role description -> AI skill map, stored on the user (overwrites any previous one)
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from growthforge.database import get_db
from growthforge.middleware.auth import get_principal
from growthforge.middleware.rate_limit import limiter, GENERATION_LIMIT
from growthforge.models.user import User
from growthforge.routes.deps import get_pipeline
from growthforge.schemas.role_profile import RoleProfileRequest
from growthforge.services.errors import NotFound
from growthforge.services.generation import GenerationPipeline
from growthforge.services.sessions import Principal

router = APIRouter()


@router.post("")
@limiter.limit(GENERATION_LIMIT)
async def generate_role_profile(
    request: Request,
    data: RoleProfileRequest,
    principal: Principal = Depends(get_principal),
    pipeline: GenerationPipeline = Depends(get_pipeline),
):
    """
    Generate a role profile (archetype + skill areas) from a free-text role description.

    Returns the validated, stored RoleProfile.
    """
    result = await pipeline.generate_role_profile(principal, data.role_description)
    return result.value.to_wire()


@router.get("")
async def get_role_profile(
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    user = await db.get(User, principal.user_id)
    if user is None:
        raise NotFound("user not found")
    return {
        "roleDescription": user.role_description,
        "targetProfile": user.target_profile,
    }
