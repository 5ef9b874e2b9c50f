from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from growthforge.config import get_settings
from growthforge.database import get_db, utcnow
from growthforge.middleware.auth import get_principal
from growthforge.middleware.rate_limit import limiter, AUTH_LIMIT
from growthforge.models.user import User
from growthforge.routes.deps import get_oauth_client
from growthforge.schemas.journal import GoogleAuthRequest
from growthforge.services.errors import InvalidArgument
from growthforge.services.google_oauth import GoogleOAuthClient
from growthforge.services.sessions import Principal, issue_session_token
from growthforge.utils.logger import logger

router = APIRouter()
settings = get_settings()


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )


@router.post("/google")
@limiter.limit(AUTH_LIMIT)
async def google_auth(
    request: Request,
    response: Response,
    data: GoogleAuthRequest,
    db: AsyncSession = Depends(get_db),
    oauth: GoogleOAuthClient = Depends(get_oauth_client),
):
    """
    Exchange a Google OAuth code for a session.

    Finds the user by Google id, then by email (creating one on first
    sign-in), refreshes name/picture from Google and sets the session cookie.
    An email already linked to a different Google account is rejected.
    """
    identity = await oauth.exchange_code(data.code, data.redirect_uri)

    result = await db.execute(select(User).where(User.google_id == identity.id))
    user = result.scalar_one_or_none()
    if user is None:
        result = await db.execute(select(User).where(User.email == identity.email))
        user = result.scalar_one_or_none()
        if user is not None and user.google_id and user.google_id != identity.id:
            raise InvalidArgument("Email is linked to a different Google account")

    if user is None:
        user = User(
            email=identity.email,
            name=identity.name,
            google_id=identity.id,
            picture=identity.picture,
        )
        db.add(user)
        logger.info(f"[Auth] Creating user for Google account {identity.email}")
    else:
        user.name = identity.name
        user.picture = identity.picture
        user.google_id = identity.id
        user.updated_at = utcnow()

    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.warning(f"[Auth] Google sign-in conflict for {identity.email}: {type(e).__name__}")
        raise InvalidArgument("Email is already registered to another account") from e
    await db.refresh(user)

    set_session_cookie(response, issue_session_token(user))
    logger.info(f"[Auth] Google sign-in succeeded for user {user.id}")

    return {
        "user": {
            "id": user.id,
            "email": user.email,
            "name": user.name,
            "picture": user.picture,
        }
    }


@router.post("/logout")
async def logout(response: Response):
    """Expire the session cookie"""
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    return {"success": True}


@router.get("/me")
async def session_info(principal: Principal = Depends(get_principal)):
    """Who the session belongs to, straight from the token"""
    return {
        "user": {
            "id": principal.user_id,
            "email": principal.email,
            "name": principal.name,
            "picture": principal.picture,
        }
    }
