"""
Session tokens: HS256 JWTs carried in the session cookie or an
Authorization: Bearer header.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from growthforge.config import Settings, get_settings
from growthforge.services.errors import Unauthenticated

ALGORITHM = "HS256"


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, passed explicitly into every pipeline entry point"""
    user_id: int
    email: str
    name: str
    picture: Optional[str] = None


def issue_session_token(user, settings: Optional[Settings] = None) -> str:
    """Create a signed session token for a User row"""
    settings = settings or get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "name": user.name,
        "picture": user.picture,
        "iat": now,
        "exp": now + timedelta(days=settings.session_ttl_days),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=ALGORITHM)


def decode_session_token(token: str, settings: Optional[Settings] = None) -> Principal:
    """Verify signature and expiry; raise Unauthenticated on anything off."""
    settings = settings or get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise Unauthenticated("Session expired. Please sign in again.")
    except jwt.InvalidTokenError:
        raise Unauthenticated("invalid authentication token")

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise Unauthenticated("invalid authentication token")

    return Principal(
        user_id=user_id,
        email=payload.get("email") or "",
        name=payload.get("name") or "",
        picture=payload.get("picture"),
    )
