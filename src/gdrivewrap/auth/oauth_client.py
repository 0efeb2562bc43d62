"""OAuth client utilities for gdrivewrap."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from gdrivewrap.errors import AuthError, InvalidInputError

from .credentials import DEFAULT_TOKEN_URI, SCOPE_FULL, DriveCredentials

logger = logging.getLogger(__name__)


class OAuthClient:
    """Create OAuth credentials and Drive API service objects."""

    def __init__(self, credentials: DriveCredentials) -> None:
        if not isinstance(credentials, DriveCredentials):
            raise InvalidInputError("OAuthClient requires DriveCredentials")
        self._credentials = credentials

    @property
    def scopes(self) -> tuple[str, ...]:
        return self._credentials.scopes

    def get_credentials(self, ensure_valid: bool = True):
        """
        Return OAuth credentials built from the configured tokens.

        Args:
            ensure_valid: If True, refresh credentials when they are not valid
                and a refresh token is available.

        Returns:
            google.oauth2.credentials.Credentials

        Raises:
            AuthError: on refresh failures, or when the credentials cannot be
                made valid.
        """
        try:
            from google.auth.transport.requests import Request
            from google.oauth2.credentials import Credentials
        except Exception as exc:  # pragma: no cover
            raise AuthError(
                "Google auth libraries are not available",
                details={"hint": "Install google-auth"},
                cause=exc,
            ) from exc

        info = self._credentials
        creds = Credentials(
            token=info.access_token,
            refresh_token=info.refresh_token,
            token_uri=info.token_uri,
            client_id=info.client_id,
            client_secret=info.client_secret,
            scopes=list(info.scopes),
        )

        if not ensure_valid:
            return creds

        if not creds.valid and creds.refresh_token:
            try:
                creds.refresh(Request())
            except Exception as exc:
                raise AuthError(
                    "Failed to refresh OAuth credentials",
                    details={"client_id": info.client_id},
                    cause=exc,
                ) from exc
            logger.debug("Refreshed OAuth access token for client %s", info.client_id)

        if not creds.valid:
            raise AuthError(
                "OAuth credentials are not valid and cannot be refreshed",
                details={"client_id": info.client_id},
            )
        return creds

    def build_drive_service(self, ensure_valid: bool = True, credentials=None):
        """
        Build a Drive API service resource.

        Returns:
            googleapiclient.discovery.Resource
        """
        try:
            from googleapiclient.discovery import build
        except Exception as exc:  # pragma: no cover
            raise AuthError(
                "google-api-python-client is not available",
                details={"hint": "Install google-api-python-client"},
                cause=exc,
            ) from exc

        creds = credentials or self.get_credentials(ensure_valid=ensure_valid)
        try:
            return build("drive", "v3", credentials=creds, cache_discovery=False)
        except Exception as exc:
            raise AuthError("Failed to build Drive service", cause=exc) from exc


def run_consent_flow(
    client_id: str,
    client_secret: str,
    *,
    scopes: Optional[Sequence[str]] = None,
    port: int = 0,
    token_uri: str = DEFAULT_TOKEN_URI,
):
    """
    Run the installed-app consent flow in a local browser.

    The returned credentials carry the refresh token to store in
    GOOGLE_DRIVE_REFRESH_TOKEN.

    Raises:
        AuthError: when the flow fails.
    """
    try:
        from google_auth_oauthlib.flow import InstalledAppFlow
    except Exception as exc:  # pragma: no cover
        raise AuthError(
            "google-auth-oauthlib is not available",
            details={"hint": "Install google-auth-oauthlib"},
            cause=exc,
        ) from exc

    client_config = {
        "installed": {
            "client_id": client_id,
            "client_secret": client_secret,
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": token_uri,
            "redirect_uris": ["http://localhost"],
        }
    }
    use_scopes = list(scopes) if scopes else [SCOPE_FULL]

    try:
        flow = InstalledAppFlow.from_client_config(client_config, scopes=use_scopes)
        return flow.run_local_server(
            port=port,
            access_type="offline",
            prompt="consent",
        )
    except Exception as exc:
        raise AuthError(
            "OAuth authorization flow failed",
            details={"client_id": client_id},
            cause=exc,
        ) from exc
