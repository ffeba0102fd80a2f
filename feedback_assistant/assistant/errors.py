"""Error taxonomy for assistant calls and the classifier that maps failures onto it."""
from __future__ import annotations

import enum
import unicodedata
from typing import Any, Mapping, Optional, Type

import httpx


class ErrorCategory(enum.Enum):
    SESSION_EXPIRED = "session_expired"
    QUOTA_EXCEEDED = "quota_exceeded"
    INSUFFICIENT_DATA = "insufficient_data"
    SERVER_ERROR = "server_error"
    MALFORMED_RESPONSE = "malformed_response"


class AssistantError(RuntimeError):
    """Base error raised for AI endpoint failures."""

    category: Optional[ErrorCategory] = None

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class SessionExpiredError(AssistantError):
    """Raised when no valid session token is available."""

    category = ErrorCategory.SESSION_EXPIRED


class QuotaExceededError(AssistantError):
    """Raised when the backend reports its generation quota is used up."""

    category = ErrorCategory.QUOTA_EXCEEDED


class InsufficientDataError(AssistantError):
    """Raised when there is not enough feedback to analyse."""

    category = ErrorCategory.INSUFFICIENT_DATA


class AssistantServerError(AssistantError):
    """Raised for any other non-OK response, transport failure or timeout."""

    category = ErrorCategory.SERVER_ERROR

    def __init__(self, message: str, *, status: Optional[int] = None, detail: Optional[str] = None) -> None:
        super().__init__(message, status=status)
        self.detail = detail or message


class MalformedResponseError(AssistantError):
    """Raised when a non-OK response body could not be decoded."""

    category = ErrorCategory.MALFORMED_RESPONSE


class RequestAbandonedError(AssistantError):
    """Raised when the owning session ended before the call finished."""


class ConfigurationError(AssistantError):
    """Raised when the endpoint URL or public key is missing or invalid."""


SESSION_EXPIRED_MESSAGE = "Tu sesión ha expirado. Por favor, vuelve a iniciar sesión."

_QUOTA_MARKERS = ("limite", "limit", "quota", "cuota")
_INSUFFICIENT_MARKERS = ("suficientes", "insufficient", "not enough")

_CODE_MAP: Mapping[str, Type[AssistantError]] = {
    "session_expired": SessionExpiredError,
    "quota_exceeded": QuotaExceededError,
    "insufficient_data": InsufficientDataError,
}


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()


def has_quota_marker(message: Optional[str]) -> bool:
    folded = _fold(message or "")
    return any(marker in folded for marker in _QUOTA_MARKERS)


def has_insufficient_marker(message: Optional[str]) -> bool:
    folded = _fold(message or "")
    return any(marker in folded for marker in _INSUFFICIENT_MARKERS)


def session_expired() -> SessionExpiredError:
    return SessionExpiredError(SESSION_EXPIRED_MESSAGE)


def classify_response(
    status: int,
    body: Mapping[str, Any],
    *,
    parse_failed: bool = False,
) -> AssistantError:
    """Map a failed response onto the error taxonomy.

    A machine-readable ``code`` wins when present; otherwise the localized
    ``error`` text is matched against quota and insufficient-data markers
    before falling back to status-derived categories.
    """

    message = body.get("error") if isinstance(body.get("error"), str) else None
    details = body.get("details") if isinstance(body.get("details"), str) else None
    code = body.get("code")

    if isinstance(code, str) and code in _CODE_MAP:
        return _CODE_MAP[code](message or code.replace("_", " "), status=status)

    if has_quota_marker(message):
        return QuotaExceededError(message or "", status=status)
    if has_insufficient_marker(message):
        return InsufficientDataError(message or "", status=status)
    if status == 429:
        return QuotaExceededError(message or "AI request limit reached (429)", status=status)
    if status == 401:
        return SessionExpiredError(SESSION_EXPIRED_MESSAGE, status=status)
    if parse_failed and not 200 <= status < 300:
        return MalformedResponseError(f"AI endpoint returned a non-JSON error response ({status})", status=status)

    text = message or f"AI endpoint request failed ({status})"
    return AssistantServerError(text, status=status, detail=details or text)


def classify_transport_error(exc: httpx.HTTPError) -> AssistantServerError:
    if isinstance(exc, httpx.TimeoutException):
        return AssistantServerError("AI endpoint request timed out", detail=str(exc) or "timeout")
    return AssistantServerError("AI endpoint could not be reached", detail=str(exc) or type(exc).__name__)
