"""
Error taxonomy shared by the generation pipeline and the REST layer.

LLMError covers what can go wrong talking to the chat-completion API.
ForgeError subclasses are what callers see; each maps to one HTTP status
and one stable `error` code in the response body.
"""
from enum import Enum
from typing import List, Optional


# ---------------------------------------------------------------------------
# LLM call failures
# ---------------------------------------------------------------------------

class LLMFailure(str, Enum):
    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    SERVICE_UNAVAILABLE = "service_unavailable"
    TRANSPORT = "transport"
    MALFORMED = "malformed"


RETRYABLE_LLM_FAILURES = frozenset({LLMFailure.RATE_LIMITED, LLMFailure.SERVICE_UNAVAILABLE})


class LLMError(Exception):
    """A classified failure of a single chat-completion call"""

    def __init__(self, failure: LLMFailure, message: str, status_code: Optional[int] = None):
        self.failure = failure
        self.status_code = status_code
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        return self.failure in RETRYABLE_LLM_FAILURES


# ---------------------------------------------------------------------------
# Caller-facing errors
# ---------------------------------------------------------------------------

class ErrorKind(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    INVALID_ARGUMENT = "invalid_argument"
    NOT_FOUND = "not_found"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    UPSTREAM_AUTH = "upstream_auth"
    INVALID_AI_RESPONSE = "invalid_ai_response"
    STORAGE_ERROR = "storage_error"


class ForgeError(Exception):
    kind: ErrorKind = ErrorKind.STORAGE_ERROR
    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": self.kind.value, "detail": self.message}


class Unauthenticated(ForgeError):
    kind = ErrorKind.UNAUTHENTICATED
    status_code = 401


class InvalidArgument(ForgeError):
    kind = ErrorKind.INVALID_ARGUMENT
    status_code = 400


class NotFound(ForgeError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404


class UpstreamUnavailable(ForgeError):
    kind = ErrorKind.UPSTREAM_UNAVAILABLE
    status_code = 503


class UpstreamAuth(ForgeError):
    kind = ErrorKind.UPSTREAM_AUTH
    status_code = 502


class InvalidAIResponse(ForgeError):
    kind = ErrorKind.INVALID_AI_RESPONSE
    status_code = 502


class InvalidJSON(InvalidAIResponse):
    """The model's output is not a JSON object or array"""

    def __init__(self, message: str, excerpt: str = ""):
        self.excerpt = excerpt
        super().__init__(message)


class SchemaViolation(InvalidAIResponse):
    """The model's output parsed but does not have the expected shape"""

    def __init__(self, field: str, reason: str, violations: Optional[List[dict]] = None):
        self.field = field
        self.reason = reason
        self.violations = violations or [{"field": field, "reason": reason}]
        super().__init__(f"{field}: {reason}" if field else reason)


class StorageError(ForgeError):
    kind = ErrorKind.STORAGE_ERROR
    status_code = 500


def from_llm_error(exc: LLMError) -> ForgeError:
    """Translate an LLM call failure into the caller-facing taxonomy"""
    if exc.failure == LLMFailure.UNAUTHORIZED:
        return UpstreamAuth("The AI service rejected our credentials. Please contact support.")
    if exc.failure == LLMFailure.MALFORMED:
        return InvalidAIResponse("The AI service returned an unusable response. Please try again.")
    if exc.failure == LLMFailure.RATE_LIMITED:
        return UpstreamUnavailable("The AI service is busy right now. Please try again in a minute.")
    return UpstreamUnavailable("The AI service is temporarily unavailable. Please try again later.")
