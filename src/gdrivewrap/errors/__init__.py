"""Public error exports for gdrivewrap."""

from __future__ import annotations

from .exceptions import (
    ApiError,
    AuthError,
    ConflictError,
    GDriveWrapError,
    HttpErrorInfo,
    InvalidArgumentError,
    InvalidInputError,
    NetworkError,
    NotFoundError,
    PermissionError,
    QuotaExceededError,
    RateLimitError,
    RemoteFailure,
    map_http_error,
    with_context,
)

__all__ = [
    "GDriveWrapError",
    "InvalidInputError",
    "NotFoundError",
    "RemoteFailure",
    "AuthError",
    "PermissionError",
    "InvalidArgumentError",
    "ConflictError",
    "RateLimitError",
    "QuotaExceededError",
    "NetworkError",
    "ApiError",
    "HttpErrorInfo",
    "map_http_error",
    "with_context",
]
