"""
Error taxonomy for the Chloride client.

Every failure surfaced to the presentation layer is a ChlorideError subclass
carrying an ErrorCode, a user-facing message (server-provided when available)
and the HTTP status that produced it, if any. Raw transport exceptions never
leave the service router.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from chloride.core.constants import MIN_PASSWORD_LENGTH, MSG_PASSWORD_MISMATCH, MSG_WEAK_PASSWORD


class ErrorCode(str, Enum):
    """Application-specific error codes for categorization."""

    # Authentication errors (1xxx)
    INVALID_CREDENTIALS = "AUTH_1001"
    DUPLICATE_EMAIL = "AUTH_1002"
    UNAUTHORIZED = "AUTH_1003"
    LOGIN_REQUIRED = "AUTH_1004"
    ADMIN_REQUIRED = "AUTH_1005"
    SESSION_CHANGED = "AUTH_1006"

    # Validation errors (2xxx)
    PASSWORD_MISMATCH = "VAL_2001"
    WEAK_PASSWORD = "VAL_2002"

    # File errors (5xxx)
    QUOTA_EXCEEDED = "FILE_5001"
    UPLOAD_REJECTED = "FILE_5002"

    # External service errors (7xxx)
    SERVICE_UNAVAILABLE = "EXT_7001"
    MALFORMED_RESPONSE = "EXT_7002"
    REQUEST_REJECTED = "EXT_7003"


class ChlorideError(Exception):
    """Base class for every error raised by the client core."""

    code: ErrorCode = ErrorCode.REQUEST_REJECTED
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None, *, status_code: int | None = None) -> None:
        #: Message supplied by the raiser (usually the server), None when defaulted
        self.detail = message
        self.message = message or self.default_message
        self.status_code = status_code
        super().__init__(self.message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(code=self.code, message=self.message, status_code=self.status_code)


class InvalidCredentials(ChlorideError):
    code = ErrorCode.INVALID_CREDENTIALS
    default_message = "Invalid email or password"


class DuplicateEmail(ChlorideError):
    code = ErrorCode.DUPLICATE_EMAIL
    default_message = "Email already registered"


class PasswordMismatch(ChlorideError):
    code = ErrorCode.PASSWORD_MISMATCH
    default_message = MSG_PASSWORD_MISMATCH


class WeakPassword(ChlorideError):
    code = ErrorCode.WEAK_PASSWORD

    def __init__(self, min_length: int = MIN_PASSWORD_LENGTH, message: str | None = None) -> None:
        self.min_length = min_length
        super().__init__(message or MSG_WEAK_PASSWORD.format(min_length=min_length))


class Unauthorized(ChlorideError):
    """401/403 from a service, or an authorized call attempted without a session."""

    code = ErrorCode.UNAUTHORIZED
    default_message = "Not authorized"


class LoginRequired(Unauthorized):
    """Guard signal: no session, the caller must navigate to ``redirect_to``."""

    code = ErrorCode.LOGIN_REQUIRED
    default_message = "Please log in to continue"

    def __init__(self, redirect_to: str, message: str | None = None) -> None:
        self.redirect_to = redirect_to
        super().__init__(message)


class AdminRequired(Unauthorized):
    """Guard signal: session lacks the ADMIN role, navigate to ``redirect_to``."""

    code = ErrorCode.ADMIN_REQUIRED
    default_message = "Administrator access required"

    def __init__(self, redirect_to: str, message: str | None = None) -> None:
        self.redirect_to = redirect_to
        super().__init__(message)


class SessionChanged(ChlorideError):
    """The session was replaced or cleared while the call was in flight; result discarded."""

    code = ErrorCode.SESSION_CHANGED
    default_message = "Session changed while the request was in progress"


class QuotaExceeded(ChlorideError):
    code = ErrorCode.QUOTA_EXCEEDED
    default_message = "Storage quota exceeded"


class UploadRejected(ChlorideError):
    code = ErrorCode.UPLOAD_REJECTED
    default_message = "Upload failed. Please try again."


class ServiceUnavailable(ChlorideError):
    """Network/transport failure, or a 5xx from the service."""

    code = ErrorCode.SERVICE_UNAVAILABLE
    default_message = "Network error. Please check your connection."


class MalformedResponse(ChlorideError):
    code = ErrorCode.MALFORMED_RESPONSE
    default_message = "Unexpected response from server"


class RequestRejected(ChlorideError):
    """Any other non-2xx response."""

    code = ErrorCode.REQUEST_REJECTED
    default_message = "Request failed"


class ErrorResponse(BaseModel):
    """Serializable form of a ChlorideError for rendering.

    Example:
    {
        "error": {
            "code": "AUTH_1001",
            "message": "Invalid email or password",
            "status_code": 401,
            "timestamp": "2025-01-15T10:30:00Z"
        }
    }
    """

    code: ErrorCode
    message: str
    status_code: int | None = None
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.model_dump(mode="json", exclude_none=True)}


def extract_server_message(data: Any) -> str | None:
    """Pull a human-readable message out of an error body.

    Candidate shapes are tried in order: ``{"message": ...}``, ``{"error": "..."}``,
    ``{"error": {"message": ...}}``, ``{"detail": "..."}``. Returns None when no
    candidate matches or the value is blank.
    """
    if isinstance(data, str):
        return data.strip() or None
    if not isinstance(data, dict):
        return None

    candidates: list[Any] = [data.get("message")]
    error = data.get("error")
    if isinstance(error, dict):
        candidates.append(error.get("message"))
    else:
        candidates.append(error)
    candidates.append(data.get("detail"))

    for candidate in candidates:
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()
    return None
