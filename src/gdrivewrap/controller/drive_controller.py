"""Google Drive API controller."""

from __future__ import annotations

import io
import json
import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

from gdrivewrap.auth import DriveCredentials, OAuthClient
from gdrivewrap.errors import (
    ApiError,
    AuthError,
    GDriveWrapError,
    HttpErrorInfo,
    InvalidInputError,
    NetworkError,
    RateLimitError,
    map_http_error,
)
from gdrivewrap.models import Entity, entity_from_api
from gdrivewrap.util.mime import DEFAULT_MIME, FOLDER_MIME

from . import query as q
from .fields import FILE_FIELDS, LIST_FIELDS, MAX_PAGE_SIZE, PERMISSION_FIELDS

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _RetryPolicy:
    max_retries: int = 3
    initial_delay_sec: float = 1.0


class GoogleDriveController:
    """
    Thin layer over the Drive v3 `service` object.

    Notes:
        - Every request goes through `_execute` (retry + error mapping).
        - `supports_all_drives` is applied to all requests consistently.
        - `timeout` (seconds) on any call is forwarded to the HTTP transport
          for that request only.
    """

    def __init__(
        self,
        credentials: DriveCredentials,
        *,
        supports_all_drives: bool = True,
    ) -> None:
        self._supports_all_drives = supports_all_drives
        self._retry_policy = _RetryPolicy()

        client = OAuthClient(credentials)
        self._credentials = client.get_credentials(ensure_valid=True)
        self._service = client.build_drive_service(credentials=self._credentials)

    @classmethod
    def from_service(
        cls,
        service: Any,
        *,
        credentials: Any = None,
        supports_all_drives: bool = True,
    ) -> "GoogleDriveController":
        """
        Create controller from a pre-built Drive service (useful for tests).

        `credentials` (google.auth credentials) is only needed for per-call
        timeouts.
        """
        obj = cls.__new__(cls)
        obj._supports_all_drives = supports_all_drives
        obj._retry_policy = _RetryPolicy()
        obj._service = service
        obj._credentials = credentials
        return obj

    @property
    def service(self) -> Any:
        """The underlying Drive service resource, for calls this class does not wrap."""
        return self._service

    # ----------------------------
    # Metadata / content
    # ----------------------------
    def get(self, file_id: str, *, timeout: Optional[float] = None) -> Entity:
        req = self._service.files().get(
            fileId=file_id,
            fields=FILE_FIELDS,
            **self._common_get_kwargs(),
        )
        data = self._execute(req, timeout=timeout)
        return entity_from_api(data)

    def get_content(self, file_id: str, *, timeout: Optional[float] = None) -> bytes:
        """Return the media content of a (non Google-apps) file."""
        req = self._service.files().get_media(
            fileId=file_id,
            **self._common_get_kwargs(),
        )
        data = self._execute(req, timeout=timeout)
        if isinstance(data, str):
            return data.encode("utf-8")
        return bytes(data)

    def download_file(
        self,
        file_id: str,
        local_path: str,
        *,
        overwrite: bool = False,
        timeout: Optional[float] = None,
    ) -> None:
        """Stream a file's content to local_path in chunks."""
        if not overwrite and os.path.exists(local_path):
            raise InvalidInputError(
                "Destination file exists and overwrite is False",
                details={"local_path": local_path},
            )

        try:
            from googleapiclient.http import MediaIoBaseDownload
        except Exception as exc:  # pragma: no cover
            raise AuthError(
                "google-api-python-client is not available",
                cause=exc,
            ) from exc

        req = self._service.files().get_media(
            fileId=file_id,
            **self._common_get_kwargs(),
        )
        if timeout is not None:
            req.http = self._http_with_timeout(timeout)

        parent_dir = os.path.dirname(local_path)
        if parent_dir:
            os.makedirs(parent_dir, exist_ok=True)

        with open(local_path, "wb") as f:
            downloader = MediaIoBaseDownload(f, req)
            done = False
            while not done:
                _, done = self._call(downloader.next_chunk)

    # ----------------------------
    # Listing / lookup
    # ----------------------------
    def find(
        self,
        query: Optional[str],
        *,
        parent_id: Optional[str] = None,
        include_trashed: bool = False,
        limit: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> list[Entity]:
        """
        List entities matching a Drive query expression, in service order.

        Args:
            query: Drive query (None/empty matches everything).
            parent_id: Restrict to direct children of this folder.
            limit: Stop after this many results (None: all pages).
        """
        clauses = [query]
        if parent_id is not None:
            clauses.append(q.in_parents(parent_id))
        if not include_trashed:
            clauses.append("trashed = false")

        return self._find_by_query(q.and_(*clauses), limit=limit, timeout=timeout)

    def list_children(
        self,
        parent_id: str,
        *,
        kind: Optional[str] = None,
        limit: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> list[Entity]:
        return self.find(
            q.kind_filter(kind),
            parent_id=parent_id,
            limit=limit,
            timeout=timeout,
        )

    def find_by_name(
        self,
        name: str,
        *,
        parent_id: Optional[str] = None,
        folders_only: bool = False,
        limit: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> list[Entity]:
        clauses = [q.name_equals(name)]
        if folders_only:
            clauses.append(q.mime_equals(FOLDER_MIME))
        return self.find(
            q.and_(*clauses),
            parent_id=parent_id,
            limit=limit,
            timeout=timeout,
        )

    def search(
        self,
        substring: str,
        *,
        limit: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> list[Entity]:
        return self.find(q.name_contains(substring), limit=limit, timeout=timeout)

    # ----------------------------
    # Mutations
    # ----------------------------
    def create_file(
        self,
        name: str,
        content: bytes,
        *,
        parent_id: Optional[str] = None,
        mime_type: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> Entity:
        """Create a file from in-memory content (multipart upload)."""
        try:
            from googleapiclient.http import MediaIoBaseUpload
        except Exception as exc:  # pragma: no cover
            raise AuthError(
                "google-api-python-client is not available",
                cause=exc,
            ) from exc

        media = MediaIoBaseUpload(
            io.BytesIO(content),
            mimetype=mime_type or DEFAULT_MIME,
            resumable=False,
        )
        req = self._service.files().create(
            body=_create_body(name, parent_id),
            media_body=media,
            fields=FILE_FIELDS,
            **self._common_write_kwargs(),
        )
        data = self._execute(req, timeout=timeout)
        return entity_from_api(data)

    def upload_file(
        self,
        local_path: str,
        parent_id: Optional[str] = None,
        *,
        name: Optional[str] = None,
        mime_type: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> Entity:
        """Create a file from a local path (resumable upload)."""
        if not local_path or not isinstance(local_path, str):
            raise InvalidInputError("local_path must be a non-empty string")

        try:
            from googleapiclient.http import MediaFileUpload
        except Exception as exc:  # pragma: no cover
            raise AuthError(
                "google-api-python-client is not available",
                cause=exc,
            ) from exc

        filename = name if name is not None else os.path.basename(local_path)
        media = MediaFileUpload(local_path, mimetype=mime_type, resumable=True)

        req = self._service.files().create(
            body=_create_body(filename, parent_id),
            media_body=media,
            fields=FILE_FIELDS,
            **self._common_write_kwargs(),
        )
        data = self._execute(req, timeout=timeout)
        return entity_from_api(data)

    def create_folder(
        self,
        name: str,
        parent_id: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
    ) -> Entity:
        body = _create_body(name, parent_id)
        body["mimeType"] = FOLDER_MIME
        req = self._service.files().create(
            body=body,
            fields=FILE_FIELDS,
            **self._common_write_kwargs(),
        )
        data = self._execute(req, timeout=timeout)
        return entity_from_api(data)

    def rename(
        self,
        file_id: str,
        new_name: str,
        *,
        timeout: Optional[float] = None,
    ) -> Entity:
        req = self._service.files().update(
            fileId=file_id,
            body={"name": new_name},
            fields=FILE_FIELDS,
            **self._common_write_kwargs(),
        )
        data = self._execute(req, timeout=timeout)
        return entity_from_api(data)

    def move(
        self,
        file_id: str,
        new_parent_id: str,
        *,
        timeout: Optional[float] = None,
    ) -> Entity:
        """
        Replace all current parents with new_parent_id.
        """
        current = self._service.files().get(
            fileId=file_id,
            fields="parents",
            **self._common_get_kwargs(),
        )
        current_data = self._execute(current, timeout=timeout)
        old_parents = current_data.get("parents", []) or []
        remove_parents = ",".join(p for p in old_parents if p != new_parent_id)

        req = self._service.files().update(
            fileId=file_id,
            addParents=new_parent_id,
            removeParents=remove_parents or None,
            fields=FILE_FIELDS,
            **self._common_write_kwargs(),
        )
        data = self._execute(req, timeout=timeout)
        return entity_from_api(data)

    def copy(
        self,
        file_id: str,
        new_parent_id: Optional[str] = None,
        *,
        new_name: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> Entity:
        body: dict[str, Any] = {}
        if new_parent_id is not None:
            body["parents"] = [new_parent_id]
        if new_name is not None:
            body["name"] = new_name

        req = self._service.files().copy(
            fileId=file_id,
            body=body,
            fields=FILE_FIELDS,
            **self._common_write_kwargs(),
        )
        data = self._execute(req, timeout=timeout)
        return entity_from_api(data)

    def delete(self, file_id: str, *, timeout: Optional[float] = None) -> None:
        """Delete permanently (skips the trash)."""
        req = self._service.files().delete(
            fileId=file_id,
            **self._common_write_kwargs(),
        )
        self._execute(req, timeout=timeout)

    def create_permission(
        self,
        file_id: str,
        *,
        role: str,
        type: str,
        email_address: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> dict[str, Any]:
        """Grant `role` to a user/group (email_address) or to 'anyone'."""
        body: dict[str, Any] = {"type": type, "role": role}
        if email_address is not None:
            body["emailAddress"] = email_address

        kwargs = self._common_write_kwargs()
        if role == "owner":
            kwargs["transferOwnership"] = True

        req = self._service.permissions().create(
            fileId=file_id,
            body=body,
            fields=PERMISSION_FIELDS,
            **kwargs,
        )
        return self._execute(req, timeout=timeout)

    # ----------------------------
    # Internals
    # ----------------------------
    def _common_get_kwargs(self) -> dict[str, Any]:
        if not self._supports_all_drives:
            return {}
        return {"supportsAllDrives": True}

    def _common_list_kwargs(self) -> dict[str, Any]:
        if not self._supports_all_drives:
            return {}
        return {"supportsAllDrives": True, "includeItemsFromAllDrives": True}

    def _common_write_kwargs(self) -> dict[str, Any]:
        if not self._supports_all_drives:
            return {}
        return {"supportsAllDrives": True}

    def _find_by_query(
        self,
        query: str,
        *,
        limit: Optional[int],
        timeout: Optional[float],
    ) -> list[Entity]:
        all_files: list[Entity] = []
        page_token: Optional[str] = None

        while True:
            page_size = MAX_PAGE_SIZE
            if limit is not None:
                page_size = max(1, min(MAX_PAGE_SIZE, limit - len(all_files)))

            req = self._service.files().list(
                q=query or None,
                fields=LIST_FIELDS,
                pageSize=page_size,
                pageToken=page_token,
                **self._common_list_kwargs(),
            )
            data = self._execute(req, timeout=timeout)
            for f in data.get("files", []) or []:
                all_files.append(entity_from_api(f))

            if limit is not None and len(all_files) >= limit:
                return all_files[:limit]

            page_token = data.get("nextPageToken")
            if not page_token:
                break

        return all_files

    def _execute(self, request: Any, *, timeout: Optional[float] = None) -> Any:
        kwargs: dict[str, Any] = {}
        if timeout is not None:
            kwargs["http"] = self._http_with_timeout(timeout)
        return self._call(lambda: request.execute(**kwargs))

    def _http_with_timeout(self, timeout: float) -> Any:
        if self._credentials is None:
            raise InvalidInputError(
                "A per-call timeout needs a controller built with credentials",
                details={"timeout": timeout},
            )

        try:
            import httplib2
            from google_auth_httplib2 import AuthorizedHttp
        except Exception as exc:  # pragma: no cover
            raise AuthError(
                "google-auth-httplib2 is not available",
                details={"hint": "Install google-auth-httplib2"},
                cause=exc,
            ) from exc

        return AuthorizedHttp(self._credentials, http=httplib2.Http(timeout=timeout))

    def _call(self, func: Callable[[], T]) -> T:
        delay = self._retry_policy.initial_delay_sec
        for attempt in range(self._retry_policy.max_retries + 1):
            try:
                return func()
            except Exception as exc:
                mapped = self._map_exception(exc)
                if self._should_retry(mapped) and attempt < self._retry_policy.max_retries:
                    logger.warning(
                        "Drive request failed (%s), retry %d/%d in %.1fs",
                        mapped.__class__.__name__,
                        attempt + 1,
                        self._retry_policy.max_retries,
                        delay,
                    )
                    time.sleep(delay)
                    delay *= 2
                    continue
                if mapped is exc:
                    raise
                raise mapped from exc

        raise ApiError("Unexpected retry loop termination")

    def _should_retry(self, exc: Exception) -> bool:
        if isinstance(exc, RateLimitError):
            return True
        if isinstance(exc, NetworkError):
            return True
        if isinstance(exc, ApiError):
            status_code = getattr(exc, "details", {}).get("status_code")
            return isinstance(status_code, int) and 500 <= status_code <= 599
        return False

    def _map_exception(self, exc: Exception) -> Exception:
        if isinstance(exc, GDriveWrapError):
            return exc

        try:
            from googleapiclient.errors import HttpError
        except Exception:  # pragma: no cover
            HttpError = None  # type: ignore[assignment]

        if HttpError is not None and isinstance(exc, HttpError):
            info = _http_error_to_info(exc)
            return map_http_error(info, cause=exc)

        try:
            from httplib2 import HttpLib2Error
        except Exception:  # pragma: no cover
            HttpLib2Error = None  # type: ignore[assignment]

        if HttpLib2Error is not None and isinstance(exc, HttpLib2Error):
            return NetworkError("Network error", cause=exc)

        if isinstance(exc, (OSError, TimeoutError)):
            return NetworkError("Network error", cause=exc)

        return ApiError("Drive API error", cause=exc)


def _create_body(name: str, parent_id: Optional[str]) -> dict[str, Any]:
    body: dict[str, Any] = {"name": name}
    if parent_id:
        body["parents"] = [parent_id]
    return body


def _http_error_to_info(exc: Any) -> HttpErrorInfo:
    status_code = getattr(getattr(exc, "resp", None), "status", None)
    reason = getattr(getattr(exc, "resp", None), "reason", None)

    message = None
    details: dict[str, Any] = {}

    content = getattr(exc, "content", None)
    if isinstance(content, (bytes, bytearray)):
        try:
            payload = json.loads(content.decode("utf-8"))
        except ValueError:
            payload = None
        err = payload.get("error", {}) if isinstance(payload, dict) else {}
        if isinstance(err, dict):
            message = err.get("message") or None
            errors = err.get("errors") or []
            if errors and isinstance(errors, list) and isinstance(errors[0], dict):
                details["domain"] = errors[0].get("domain")
                details["reason_detail"] = errors[0].get("reason")
                if isinstance(errors[0].get("reason"), str):
                    reason = errors[0]["reason"]

    if not isinstance(status_code, int):
        status_code = 0

    return HttpErrorInfo(
        status_code=status_code,
        reason=reason if isinstance(reason, str) else None,
        message=message,
        details=details or None,
    )
