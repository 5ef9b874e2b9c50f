"""
slowapi limiter shared by every router.

Generation endpoints are the expensive ones (each is at least one LLM call),
auth endpoints are limited against account/sign-in spam.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from growthforge.config import get_settings

settings = get_settings()

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)

GENERATION_LIMIT = settings.generation_rate_limit
AUTH_LIMIT = settings.auth_rate_limit
