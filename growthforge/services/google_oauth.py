"""
Google OAuth authorization-code exchange.

code -> access token (oauth2.googleapis.com/token) -> userinfo. Only the
identity fields we store are kept.
"""
from dataclasses import dataclass
from typing import Optional

import httpx

from growthforge.config import Settings, get_settings
from growthforge.services.errors import Unauthenticated, UpstreamUnavailable
from growthforge.utils.logger import get_logger

logger = get_logger("oauth")

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"


@dataclass(frozen=True)
class GoogleIdentity:
    id: str
    email: str
    name: str
    picture: Optional[str] = None


class GoogleOAuthClient:
    def __init__(self, settings: Optional[Settings] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings or get_settings()
        self._transport = transport

    async def exchange_code(self, code: str, redirect_uri: str) -> GoogleIdentity:
        logger.info(f"[OAuth] Exchanging Google code {code[:10]}...")
        try:
            async with httpx.AsyncClient(timeout=10.0, transport=self._transport) as client:
                token_response = await client.post(
                    GOOGLE_TOKEN_URL,
                    data={
                        "client_id": self.settings.google_client_id,
                        "client_secret": self.settings.google_client_secret,
                        "code": code,
                        "grant_type": "authorization_code",
                        "redirect_uri": redirect_uri,
                    },
                )
                if token_response.status_code != 200:
                    logger.warning(f"[OAuth] Token exchange failed: {token_response.status_code} {token_response.text[:300]}")
                    raise Unauthenticated("Google sign-in failed. Please try again.")

                token_body = token_response.json()
                access_token = token_body.get("access_token") if isinstance(token_body, dict) else None
                if not access_token:
                    raise Unauthenticated("Google sign-in failed. Please try again.")

                user_response = await client.get(
                    GOOGLE_USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                if user_response.status_code != 200:
                    logger.warning(f"[OAuth] Userinfo fetch failed: {user_response.status_code}")
                    raise Unauthenticated("Could not read your Google profile.")
                info = user_response.json()
        except ValueError as e:
            logger.warning(f"[OAuth] Google returned a non-JSON body: {e}")
            raise Unauthenticated("Google sign-in failed. Please try again.") from e
        except httpx.HTTPError as e:
            logger.error(f"[OAuth] Google unreachable: {type(e).__name__}: {e}")
            raise UpstreamUnavailable("Google sign-in is temporarily unavailable.") from e

        if not isinstance(info, dict) or not info.get("id") or not info.get("email"):
            raise Unauthenticated("Google profile is missing id or email.")

        logger.info(f"[OAuth] Google identity resolved for {info['email']}")
        return GoogleIdentity(
            id=str(info["id"]),
            email=info["email"],
            name=info.get("name") or info["email"].split("@")[0],
            picture=info.get("picture"),
        )
