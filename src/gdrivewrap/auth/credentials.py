"""OAuth credential settings for gdrivewrap."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

from gdrivewrap.errors import InvalidInputError

DEFAULT_ENV_PREFIX: str = "GOOGLE_DRIVE"
DEFAULT_TOKEN_URI: str = "https://oauth2.googleapis.com/token"

SCOPE_FULL: str = "https://www.googleapis.com/auth/drive"
SCOPE_READONLY: str = "https://www.googleapis.com/auth/drive.readonly"
SCOPE_FILE: str = "https://www.googleapis.com/auth/drive.file"


@dataclass(slots=True, frozen=True)
class DriveCredentials:
    """
    OAuth client settings plus a refresh and/or access token.

    client_id and client_secret are required, together with at least one of
    refresh_token (long-lived, preferred) or access_token (short-lived).
    """

    client_id: str
    client_secret: str
    refresh_token: Optional[str] = None
    access_token: Optional[str] = None
    scopes: tuple[str, ...] = (SCOPE_FULL,)
    token_uri: str = DEFAULT_TOKEN_URI

    def __post_init__(self) -> None:
        for key in ("client_id", "client_secret"):
            value = getattr(self, key)
            if not isinstance(value, str) or not value.strip():
                raise InvalidInputError(f"DriveCredentials.{key} must be a non-empty string")

        if not (self.refresh_token or self.access_token):
            raise InvalidInputError(
                "DriveCredentials needs a refresh_token or an access_token"
            )

        if not self.scopes or not all(isinstance(s, str) and s.strip() for s in self.scopes):
            raise InvalidInputError("scopes must be a non-empty sequence of strings")

    @classmethod
    def from_env(
        cls,
        prefix: str = DEFAULT_ENV_PREFIX,
        *,
        environ: Optional[Mapping[str, str]] = None,
        load_dotenv: bool = True,
        scopes: Optional[Sequence[str]] = None,
    ) -> "DriveCredentials":
        """
        Read <prefix>_CLIENT_ID, <prefix>_CLIENT_SECRET, <prefix>_REFRESH_TOKEN
        and <prefix>_ACCESS_TOKEN.

        When `environ` is not given, a `.env` file in the working directory is
        loaded first (variables already set in the process win).

        Raises:
            InvalidInputError: listing the missing variable names in
                details["missing"].
        """
        if environ is None:
            if load_dotenv:
                from dotenv import load_dotenv as _load_dotenv

                _load_dotenv(override=False)
            environ = os.environ

        def read(suffix: str) -> Optional[str]:
            value = environ.get(f"{prefix}_{suffix}", "")
            value = value.strip() if isinstance(value, str) else ""
            return value or None

        client_id = read("CLIENT_ID")
        client_secret = read("CLIENT_SECRET")
        refresh_token = read("REFRESH_TOKEN")
        access_token = read("ACCESS_TOKEN")

        missing = [
            f"{prefix}_{suffix}"
            for suffix, value in (("CLIENT_ID", client_id), ("CLIENT_SECRET", client_secret))
            if value is None
        ]
        if refresh_token is None and access_token is None:
            missing.append(f"{prefix}_REFRESH_TOKEN")

        if missing:
            raise InvalidInputError(
                "Missing required environment variables: " + ", ".join(missing),
                details={"missing": missing},
            )

        return cls(
            client_id=client_id,  # type: ignore[arg-type]
            client_secret=client_secret,  # type: ignore[arg-type]
            refresh_token=refresh_token,
            access_token=access_token,
            scopes=tuple(scopes) if scopes else (SCOPE_FULL,),
        )

    @classmethod
    def from_client_secrets_file(
        cls,
        path: str,
        refresh_token: Optional[str] = None,
        access_token: Optional[str] = None,
        *,
        scopes: Optional[Sequence[str]] = None,
    ) -> "DriveCredentials":
        """Load client id/secret from a Google client secrets JSON ('installed' or 'web')."""
        config = load_client_config(path)
        return cls(
            client_id=config.get("client_id", ""),
            client_secret=config.get("client_secret", ""),
            refresh_token=refresh_token,
            access_token=access_token,
            scopes=tuple(scopes) if scopes else (SCOPE_FULL,),
            token_uri=config.get("token_uri") or DEFAULT_TOKEN_URI,
        )


def load_client_config(path: str) -> dict[str, Any]:
    """Return the 'installed' (or 'web') section of a client secrets file."""
    if not os.path.exists(path):
        raise InvalidInputError(
            "Client secrets file not found",
            details={"client_secrets_file": path},
        )

    try:
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
    except (OSError, ValueError) as exc:
        raise InvalidInputError(
            "Failed to read client secrets file",
            details={"client_secrets_file": path},
            cause=exc,
        ) from exc

    section = None
    if isinstance(payload, dict):
        section = payload.get("installed") or payload.get("web")
    if not isinstance(section, dict):
        raise InvalidInputError(
            "Invalid client secrets file format (expected 'installed' or 'web')",
            details={"client_secrets_file": path},
        )
    return section
