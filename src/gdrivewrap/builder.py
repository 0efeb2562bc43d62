"""Fluent construction of GoogleDriveManager instances."""

from __future__ import annotations

from typing import Optional, Sequence

from gdrivewrap.auth import (
    DEFAULT_ENV_PREFIX,
    SCOPE_FILE,
    SCOPE_FULL,
    SCOPE_READONLY,
    DriveCredentials,
    load_client_config,
)
from gdrivewrap.auth.credentials import DEFAULT_TOKEN_URI
from gdrivewrap.errors import InvalidInputError
from gdrivewrap.manager import GoogleDriveManager
from gdrivewrap.resolver import ROOT_ID


class GoogleDriveBuilder:
    """
    Collects settings step by step, then builds the manager.

    Example:
        drive = (
            GoogleDriveBuilder()
            .with_client_credentials(client_id, client_secret)
            .with_refresh_token(token)
            .with_read_only_access()
            .build()
        )

    Client credentials given directly take precedence over a client secrets
    file.
    """

    def __init__(self) -> None:
        self._client_id: Optional[str] = None
        self._client_secret: Optional[str] = None
        self._client_secrets_file: Optional[str] = None
        self._refresh_token: Optional[str] = None
        self._access_token: Optional[str] = None
        self._scopes: tuple[str, ...] = (SCOPE_FULL,)
        self._root_id: str = ROOT_ID
        self._supports_all_drives: bool = True

    @classmethod
    def from_env(cls, prefix: str = DEFAULT_ENV_PREFIX) -> GoogleDriveManager:
        return GoogleDriveManager(DriveCredentials.from_env(prefix))

    @classmethod
    def from_credentials(
        cls,
        client_id: str,
        client_secret: str,
        refresh_token: Optional[str] = None,
        access_token: Optional[str] = None,
    ) -> GoogleDriveManager:
        builder = cls().with_client_credentials(client_id, client_secret, refresh_token)
        if access_token is not None:
            builder.with_access_token(access_token)
        return builder.build()

    def with_client_credentials(
        self,
        client_id: str,
        client_secret: str,
        refresh_token: Optional[str] = None,
    ) -> "GoogleDriveBuilder":
        self._client_id = client_id
        self._client_secret = client_secret
        if refresh_token is not None:
            self._refresh_token = refresh_token
        return self

    def with_client_secrets_file(self, path: str) -> "GoogleDriveBuilder":
        self._client_secrets_file = path
        return self

    def with_refresh_token(self, refresh_token: str) -> "GoogleDriveBuilder":
        self._refresh_token = refresh_token
        return self

    def with_access_token(self, access_token: str) -> "GoogleDriveBuilder":
        self._access_token = access_token
        return self

    def with_scopes(self, scopes: Sequence[str]) -> "GoogleDriveBuilder":
        if isinstance(scopes, str):
            scopes = [scopes]
        self._scopes = tuple(scopes)
        return self

    def with_full_access(self) -> "GoogleDriveBuilder":
        return self.with_scopes([SCOPE_FULL])

    def with_read_only_access(self) -> "GoogleDriveBuilder":
        return self.with_scopes([SCOPE_READONLY])

    def with_file_access(self) -> "GoogleDriveBuilder":
        return self.with_scopes([SCOPE_FILE])

    def with_root_id(self, root_id: str) -> "GoogleDriveBuilder":
        """Resolve paths below this folder instead of 'My Drive'."""
        self._root_id = root_id
        return self

    def with_supports_all_drives(self, enabled: bool = True) -> "GoogleDriveBuilder":
        self._supports_all_drives = enabled
        return self

    def build_credentials(self) -> DriveCredentials:
        """Validate the collected settings without contacting Google."""
        client_id = self._client_id
        client_secret = self._client_secret
        token_uri = DEFAULT_TOKEN_URI

        if client_id is None or client_secret is None:
            if self._client_secrets_file is None:
                raise InvalidInputError(
                    "Client credentials or a client secrets file are required"
                )
            config = load_client_config(self._client_secrets_file)
            client_id = config.get("client_id", "")
            client_secret = config.get("client_secret", "")
            token_uri = config.get("token_uri") or DEFAULT_TOKEN_URI

        return DriveCredentials(
            client_id=client_id,
            client_secret=client_secret,
            refresh_token=self._refresh_token,
            access_token=self._access_token,
            scopes=self._scopes,
            token_uri=token_uri,
        )

    def build(self) -> GoogleDriveManager:
        return GoogleDriveManager(
            self.build_credentials(),
            supports_all_drives=self._supports_all_drives,
            root_id=self._root_id,
        )
