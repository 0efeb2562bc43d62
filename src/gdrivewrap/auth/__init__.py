"""Public auth exports for gdrivewrap."""

from __future__ import annotations

from .credentials import (
    DEFAULT_ENV_PREFIX,
    SCOPE_FILE,
    SCOPE_FULL,
    SCOPE_READONLY,
    DriveCredentials,
    load_client_config,
)
from .oauth_client import OAuthClient, run_consent_flow

__all__ = [
    "DriveCredentials",
    "OAuthClient",
    "run_consent_flow",
    "load_client_config",
    "DEFAULT_ENV_PREFIX",
    "SCOPE_FULL",
    "SCOPE_READONLY",
    "SCOPE_FILE",
]
