"""
Chat-completion client with failure classification, timeout and bounded retry.

Every call:
  1. Sends one chat completion request with an explicit timeout
  2. Classifies any failure as an LLMError (unauthorized, rate_limited,
     service_unavailable, transport, malformed)
  3. Retries with exponential backoff + jitter, only for rate_limited and
     service_unavailable

Usage:
    client = get_llm_client()
    text = await client.complete(prompt, temperature=0.7, max_tokens=1500, operation="role_profile")
"""
import asyncio
import random
from typing import Any, Optional

import openai
from openai import AsyncOpenAI

from growthforge.config import Settings, get_settings
from growthforge.services.errors import LLMError, LLMFailure
from growthforge.services.prompt_builder import Prompt
from growthforge.utils.logger import get_logger
from growthforge.utils.metrics import inc, track_duration

logger = get_logger("llm")

_UNAVAILABLE_STATUS_CODES = {500, 502, 503, 504, 529}


def classify_exception(exc: BaseException) -> LLMError:
    """Map an SDK / asyncio exception onto the LLM failure taxonomy."""
    if isinstance(exc, LLMError):
        return exc
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return LLMError(LLMFailure.UNAUTHORIZED, "AI service credential rejected", exc.status_code)
    if isinstance(exc, openai.RateLimitError):
        return LLMError(LLMFailure.RATE_LIMITED, "AI service rate limit exceeded", exc.status_code)
    # APITimeoutError subclasses APIConnectionError
    if isinstance(exc, (openai.APIConnectionError, asyncio.TimeoutError, TimeoutError)):
        return LLMError(LLMFailure.TRANSPORT, f"AI service unreachable: {type(exc).__name__}")
    if isinstance(exc, openai.APIStatusError):
        if exc.status_code in _UNAVAILABLE_STATUS_CODES or exc.status_code >= 500:
            return LLMError(LLMFailure.SERVICE_UNAVAILABLE, "AI service temporarily unavailable", exc.status_code)
        return LLMError(LLMFailure.MALFORMED, f"AI service rejected the request ({exc.status_code})", exc.status_code)
    return LLMError(LLMFailure.TRANSPORT, f"AI service call failed: {type(exc).__name__}")


def extract_content(response: Any) -> str:
    """Pull choices[0].message.content out of a completion, or fail as malformed."""
    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError, KeyError, TypeError):
        raise LLMError(LLMFailure.MALFORMED, "AI response has no choices[0].message.content")
    if not isinstance(content, str) or not content.strip():
        raise LLMError(LLMFailure.MALFORMED, "AI response content is empty")
    return content


class LLMClient:
    """Thin async wrapper around the chat-completions API."""

    def __init__(self, client: Optional[Any] = None, settings: Optional[Settings] = None, sleep=asyncio.sleep):
        self.settings = settings or get_settings()
        self._client = client
        self._sleep = sleep

    def _get_client(self):
        if self._client is None:
            if not self.settings.openai_api_key:
                raise LLMError(LLMFailure.UNAUTHORIZED, "OPENAI_API_KEY is not configured")
            self._client = AsyncOpenAI(
                api_key=self.settings.openai_api_key,
                timeout=self.settings.llm_timeout_seconds,
                max_retries=0,  # retry policy lives in complete()
            )
        return self._client

    async def _complete_once(self, prompt: Prompt, temperature: float, max_tokens: int, model: str) -> str:
        client = self._get_client()
        try:
            response = await asyncio.wait_for(
                client.chat.completions.create(
                    model=model,
                    messages=prompt.to_messages(),
                    temperature=temperature,
                    max_tokens=max_tokens,
                    response_format={"type": "json_object"},
                ),
                timeout=self.settings.llm_timeout_seconds,
            )
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            classified = classify_exception(exc)
            # Upstream bodies go to the log only, never to the caller
            logger.warning(
                "llm.call_error",
                extra={
                    "error_kind": classified.failure.value,
                    "error_type": type(exc).__name__,
                    "error": str(exc)[:500],
                },
            )
            raise classified from exc
        return extract_content(response)

    async def complete(
        self,
        prompt: Prompt,
        *,
        temperature: float = 0.7,
        max_tokens: int = 1500,
        model: Optional[str] = None,
        operation: str = "chat",
    ) -> str:
        model = model or self.settings.openai_model
        max_retries = max(0, self.settings.llm_max_retries)

        for attempt in range(1 + max_retries):
            try:
                async with track_duration("llm", operation):
                    return await self._complete_once(prompt, temperature, max_tokens, model)
            except LLMError as exc:
                if exc.retryable and attempt < max_retries:
                    backoff = self.settings.llm_backoff_seconds * (2 ** attempt)
                    wait = backoff + random.uniform(0, backoff * 0.5)
                    inc(f"llm.{operation}.retry")
                    logger.warning(
                        "llm.retry",
                        extra={
                            "operation": operation,
                            "attempt": attempt + 1,
                            "error_kind": exc.failure.value,
                            "wait_seconds": round(wait, 2),
                        },
                    )
                    await self._sleep(wait)
                    continue
                logger.error(
                    "llm.failed",
                    extra={"operation": operation, "attempt": attempt + 1, "error_kind": exc.failure.value},
                )
                raise

        # Loop always returns or raises
        raise LLMError(LLMFailure.TRANSPORT, "AI service call failed")


# Singleton
_llm_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    global _llm_client
    if _llm_client is None:
        _llm_client = LLMClient()
    return _llm_client
