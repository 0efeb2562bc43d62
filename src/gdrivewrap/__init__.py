"""gdrivewrap public API."""

from __future__ import annotations

import logging

from gdrivewrap.auth import DriveCredentials, OAuthClient, run_consent_flow
from gdrivewrap.builder import GoogleDriveBuilder
from gdrivewrap.controller import GoogleDriveController
from gdrivewrap.errors import (
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
from gdrivewrap.manager import GoogleDriveManager
from gdrivewrap.models import BatchItemResult, DriveEntity, DriveFile, DriveFolder
from gdrivewrap.resolver import IdentifierCache, PathResolver
from gdrivewrap.util.names import sanitize_filename

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # High-level
    "GoogleDriveManager",
    "GoogleDriveBuilder",
    "GoogleDriveController",
    "PathResolver",
    "IdentifierCache",
    # Auth
    "DriveCredentials",
    "OAuthClient",
    "run_consent_flow",
    # Models
    "DriveEntity",
    "DriveFile",
    "DriveFolder",
    "BatchItemResult",
    "sanitize_filename",
    # Errors
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
