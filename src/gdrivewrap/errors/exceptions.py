"""Exception hierarchy and HTTP error mapping for gdrivewrap."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


class GDriveWrapError(Exception):
    """
    Base exception for gdrivewrap.

    Attributes:
        details: Optional structured information (e.g., HTTP status, reason,
            the attempted operation and its target).
        cause: Optional original exception that triggered this error.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}
        self.cause = cause

    @property
    def operation(self) -> Optional[str]:
        """Facade operation that failed (e.g. 'upload'), if known."""
        return self.details.get("operation")

    @property
    def target(self) -> Optional[str]:
        """Name, path or id the failed operation was addressing, if known."""
        return self.details.get("target")


class InvalidInputError(GDriveWrapError, ValueError):
    """Raised for malformed caller input, before any remote call is made."""


class NotFoundError(GDriveWrapError):
    """Raised when a name/path/id does not resolve (or HTTP 404)."""


class RemoteFailure(GDriveWrapError):
    """Base for failures reported by (or on the way to) the Drive service."""


class AuthError(RemoteFailure):
    """Raised when OAuth authentication/refresh fails (HTTP 401)."""


class PermissionError(RemoteFailure):
    """Raised when access is denied (HTTP 403 non-quota)."""


class InvalidArgumentError(RemoteFailure):
    """Raised when the service rejects request arguments (HTTP 400)."""


class ConflictError(RemoteFailure):
    """Raised when a conflict occurs (HTTP 409/412)."""


class RateLimitError(RemoteFailure):
    """Raised when rate-limited (HTTP 429)."""


class QuotaExceededError(RemoteFailure):
    """Raised when quota is exceeded (HTTP 403 with quota-related reason)."""


class NetworkError(RemoteFailure):
    """Raised when network/timeout issues prevent the request."""


class ApiError(RemoteFailure):
    """Raised for unclassified API errors (5xx, unknown 4xx, etc.)."""


@dataclass(frozen=True)
class HttpErrorInfo:
    """Lightweight HTTP error information for mapping to gdrivewrap exceptions."""

    status_code: int
    reason: str | None = None
    message: str | None = None
    details: dict[str, Any] | None = None


_QUOTA_REASON_KEYWORDS: tuple[str, ...] = (
    "quota",
    "dailyLimitExceeded",
    "usageLimits",
    "storageQuotaExceeded",
)


# Drive reports per-user rate limiting as 403; these are retryable.
_RATE_LIMIT_REASONS: tuple[str, ...] = ("rateLimitExceeded", "userRateLimitExceeded")


def _is_quota_reason(reason: str | None) -> bool:
    if not reason:
        return False
    return any(key.lower() in reason.lower() for key in _QUOTA_REASON_KEYWORDS)


def map_http_error(
    info: HttpErrorInfo,
    *,
    cause: Optional[BaseException] = None,
) -> GDriveWrapError:
    """
    Map an HTTP error to a gdrivewrap exception.

    Policy:
        - 400 -> InvalidArgumentError
        - 401 -> AuthError
        - 403 -> PermissionError (default), RateLimitError for per-user rate
          limits, QuotaExceededError if quota-related
        - 404 -> NotFoundError
        - 409/412 -> ConflictError
        - 429 -> RateLimitError
        - otherwise (5xx included) -> ApiError
    """
    details: dict[str, Any] = {
        "status_code": info.status_code,
        "reason": info.reason,
    }
    if info.details:
        details.update(info.details)

    message = info.message or f"HTTP error {info.status_code}"

    if info.status_code == 400:
        return InvalidArgumentError(message, details=details, cause=cause)
    if info.status_code == 401:
        return AuthError(message, details=details, cause=cause)
    if info.status_code == 403:
        if info.reason in _RATE_LIMIT_REASONS:
            return RateLimitError(message, details=details, cause=cause)
        if _is_quota_reason(info.reason):
            return QuotaExceededError(message, details=details, cause=cause)
        return PermissionError(message, details=details, cause=cause)
    if info.status_code == 404:
        return NotFoundError(message, details=details, cause=cause)
    if info.status_code in (409, 412):
        return ConflictError(message, details=details, cause=cause)
    if info.status_code == 429:
        return RateLimitError(message, details=details, cause=cause)

    return ApiError(message, details=details, cause=cause)


def with_context(exc: GDriveWrapError, operation: str, target: str) -> GDriveWrapError:
    """
    Return an error of the same class carrying the attempted operation and target.

    The message becomes "Failed to <operation> <target>: <original message>".
    An error that already carries an operation is returned unchanged.
    """
    if exc.operation is not None:
        return exc

    details = dict(exc.details)
    details["operation"] = operation
    details["target"] = target
    return type(exc)(
        f"Failed to {operation} {target}: {exc}",
        details=details,
        cause=exc,
    )
