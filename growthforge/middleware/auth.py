from typing import Optional

from fastapi import Header, Request

from growthforge.config import get_settings
from growthforge.services.errors import Unauthenticated
from growthforge.services.sessions import Principal, decode_session_token
from growthforge.utils.logger import logger


def _token_from_request(request: Request, authorization: Optional[str]) -> Optional[str]:
    """Authorization: Bearer <token> wins over the session cookie"""
    if authorization:
        parts = authorization.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            raise Unauthenticated("Invalid authorization header format. Expected: Bearer <token>")
        return parts[1]
    return request.cookies.get(get_settings().session_cookie_name)


async def get_principal(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> Principal:
    """
    Dependency resolving the authenticated caller from the session token.

    Verification is purely cryptographic: no database access happens here,
    so unauthenticated requests never reach storage.

    Usage:
        @router.get("/endpoint")
        async def endpoint(principal: Principal = Depends(get_principal), db: AsyncSession = Depends(get_db)):
            # principal must be declared before db
    """
    token = _token_from_request(request, authorization)
    if not token:
        raise Unauthenticated("missing authentication token")

    principal = decode_session_token(token)
    logger.debug(f"[Auth] Session verified for user {principal.user_id}")
    return principal
