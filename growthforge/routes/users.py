from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from growthforge.database import get_db
from growthforge.middleware.auth import get_principal
from growthforge.middleware.rate_limit import limiter, AUTH_LIMIT
from growthforge.models.user import User
from growthforge.routes.auth import set_session_cookie
from growthforge.schemas.journal import UserCreate
from growthforge.services.errors import InvalidArgument, NotFound
from growthforge.services.sessions import Principal, issue_session_token
from growthforge.utils.logger import logger

router = APIRouter()


async def email_taken(db: AsyncSession, email: str) -> bool:
    result = await db.execute(select(User.id).where(User.email == email))
    return result.scalar_one_or_none() is not None


@router.post("")
@limiter.limit(AUTH_LIMIT)
async def create_user(
    request: Request,
    response: Response,
    user_data: UserCreate,
    db: AsyncSession = Depends(get_db),
):
    """
    Create an account with email + name and start a session for it.
    The only endpoint besides the OAuth exchange that needs no session.
    """
    if await email_taken(db, user_data.email):
        raise InvalidArgument("Email already registered")

    user = User(email=user_data.email, name=user_data.name.strip())
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent signup for the same email
        await db.rollback()
        raise InvalidArgument("Email already registered") from e
    await db.refresh(user)
    logger.info(f"Created user {user.id}")

    set_session_cookie(response, issue_session_token(user))
    return user.to_dict()


@router.get("/me")
async def get_me(
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    """Current user, including role description and target profile"""
    user = await db.get(User, principal.user_id)
    if user is None:
        raise NotFound("user not found")
    return user.to_dict()
