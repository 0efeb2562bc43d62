"""GoogleDriveManager: name- and path-based file operations on Google Drive."""

from __future__ import annotations

import logging
import os
from collections import deque
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterable, Iterator, Mapping, Optional, Union

from gdrivewrap.auth import DEFAULT_ENV_PREFIX, DriveCredentials
from gdrivewrap.controller import GoogleDriveController
from gdrivewrap.errors import (
    GDriveWrapError,
    InvalidInputError,
    NotFoundError,
    with_context,
)
from gdrivewrap.models import BatchItemResult, Entity, summarize
from gdrivewrap.resolver import ROOT_ID, IdentifierCache, PathResolver
from gdrivewrap.util.mime import guess_mime_type, is_google_docs_download_disallowed
from gdrivewrap.util.names import (
    generate_unique_filename,
    is_path,
    join_path,
    leaf_name,
    normalize_path,
    sanitize_filename,
    sanitize_path,
)

logger = logging.getLogger(__name__)

Content = Union[bytes, bytearray, str]

SHARE_ROLES: tuple[str, ...] = ("reader", "commenter", "writer", "owner")
ANYONE: str = "anyone"
_LIST_KINDS: tuple[Optional[str], ...] = (None, "file", "folder")


class GoogleDriveManager:
    """
    File operations addressed by name, virtual path ("a/b/c.txt") or id.

    Holds the controller, the path resolver and its cache; nothing is global.
    Every method accepts `timeout` (seconds), forwarded to the HTTP transport.

    Error policy:
        - Read-style calls (get, exists, get_file_info...) return None/False
          when the target does not resolve.
        - Calls that need an existing source (copy, move, rename, share...)
          raise NotFoundError.
        - Any other failure is raised with the operation and target attached
          (see GDriveWrapError.operation / .target).
        - Batch calls never raise for a single item.
    """

    def __init__(
        self,
        credentials: DriveCredentials,
        *,
        supports_all_drives: bool = True,
        root_id: str = ROOT_ID,
        cache: Optional[IdentifierCache] = None,
    ) -> None:
        self._controller = GoogleDriveController(
            credentials,
            supports_all_drives=supports_all_drives,
        )
        self._resolver = PathResolver(self._controller, cache, root_id=root_id)

    @classmethod
    def from_controller(
        cls,
        controller: GoogleDriveController,
        *,
        root_id: str = ROOT_ID,
        cache: Optional[IdentifierCache] = None,
    ) -> "GoogleDriveManager":
        """Create manager with an injected controller (useful for tests)."""
        obj = cls.__new__(cls)
        obj._controller = controller
        obj._resolver = PathResolver(controller, cache, root_id=root_id)
        return obj

    @classmethod
    def from_credentials(
        cls,
        client_id: str,
        client_secret: str,
        refresh_token: Optional[str] = None,
        access_token: Optional[str] = None,
        **kwargs: Any,
    ) -> "GoogleDriveManager":
        credentials = DriveCredentials(
            client_id=client_id,
            client_secret=client_secret,
            refresh_token=refresh_token,
            access_token=access_token,
        )
        return cls(credentials, **kwargs)

    @classmethod
    def from_env(cls, prefix: str = DEFAULT_ENV_PREFIX, **kwargs: Any) -> "GoogleDriveManager":
        """Build from <prefix>_CLIENT_ID / _CLIENT_SECRET / _REFRESH_TOKEN / _ACCESS_TOKEN."""
        return cls(DriveCredentials.from_env(prefix), **kwargs)

    @property
    def controller(self) -> GoogleDriveController:
        """The controller, for subclasses and calls this class does not wrap."""
        return self._controller

    @property
    def resolver(self) -> PathResolver:
        return self._resolver

    @property
    def cache(self) -> IdentifierCache:
        return self._resolver.cache

    def clear_cache(self) -> None:
        self._resolver.cache.clear()

    # ----------------------------
    # Upload
    # ----------------------------
    def put(
        self,
        name: str,
        content: Content,
        folder_id: Optional[str] = None,
        *,
        mime_type: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """
        Upload content as `name` and return the new file id.

        `name` may be a virtual path; missing folders are created. Each
        segment is sanitized before it reaches Drive. With folder_id the path
        is resolved below that folder instead of the root.
        """
        _require_name(name, "name")
        data = _to_bytes(content)

        with _operation("upload", name):
            path, parent_id, leaf = self._place(name, folder_id, timeout=timeout)
            entity = self._controller.create_file(
                leaf,
                data,
                parent_id=parent_id,
                mime_type=mime_type or guess_mime_type(leaf),
                timeout=timeout,
            )
            self._remember_created(entity, name, path, folder_id)

        logger.info("Uploaded %s (%s, %d bytes)", path, entity.id, len(data))
        return entity.id

    def put_file(
        self,
        local_path: str,
        name: Optional[str] = None,
        folder_id: Optional[str] = None,
        *,
        mime_type: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """Upload a local file (resumable); `name` defaults to its basename."""
        if not isinstance(local_path, str) or not os.path.isfile(local_path):
            raise InvalidInputError(
                f"Local file not found: {local_path}",
                details={"local_path": local_path},
            )
        target = name or os.path.basename(local_path)
        _require_name(target, "name")

        with _operation("upload", target):
            path, parent_id, leaf = self._place(target, folder_id, timeout=timeout)
            entity = self._controller.upload_file(
                local_path,
                parent_id,
                name=leaf,
                mime_type=mime_type or guess_mime_type(leaf),
                timeout=timeout,
            )
            self._remember_created(entity, target, path, folder_id)

        logger.info("Uploaded %s from %s (%s)", path, local_path, entity.id)
        return entity.id

    # ----------------------------
    # Download
    # ----------------------------
    def get(self, name: str, *, timeout: Optional[float] = None) -> Optional[bytes]:
        """Return the file content, or None when `name` does not resolve."""
        _require_name(name, "name")
        with _operation("download", name):
            entity = self._resolver.lookup(name, timeout=timeout)
            if entity is None:
                return None
            _ensure_downloadable(entity)
            return self._controller.get_content(entity.id, timeout=timeout)

    def get_by_id(self, file_id: str, *, timeout: Optional[float] = None) -> Optional[bytes]:
        """Return the content of file_id, or None when Drive reports it missing."""
        with _operation("download", file_id):
            try:
                return self._controller.get_content(file_id, timeout=timeout)
            except NotFoundError:
                return None

    def download_to_file(
        self,
        name: str,
        local_path: str,
        *,
        overwrite: bool = True,
        timeout: Optional[float] = None,
    ) -> bool:
        """Stream `name` to local_path. False when `name` does not resolve."""
        _require_name(name, "name")
        with _operation("download", name):
            entity = self._resolver.lookup(name, timeout=timeout)
            if entity is None:
                return False
            _ensure_downloadable(entity)
            self._controller.download_file(
                entity.id,
                local_path,
                overwrite=overwrite,
                timeout=timeout,
            )
        return True

    # ----------------------------
    # Delete
    # ----------------------------
    def delete(self, name: str, *, timeout: Optional[float] = None) -> bool:
        """Delete permanently. False when `name` does not resolve."""
        return self._delete(name, folders_only=False, timeout=timeout)

    def delete_dir(self, name: str, *, timeout: Optional[float] = None) -> bool:
        """Delete a folder (and, on Drive, everything inside it)."""
        return self._delete(name, folders_only=True, timeout=timeout)

    def delete_by_id(self, file_id: str, *, timeout: Optional[float] = None) -> bool:
        """Delete by id. Raises NotFoundError when Drive does not know the id."""
        with _operation("delete", file_id):
            self._controller.delete(file_id, timeout=timeout)
        # The cache does not know what file_id contained.
        self._resolver.cache.clear()
        logger.info("Deleted %s", file_id)
        return True

    # ----------------------------
    # Copy / move / rename
    # ----------------------------
    def copy(
        self,
        source: str,
        destination: str,
        folder_id: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
    ) -> str:
        """
        Copy `source` to `destination` and return the new id.

        A bare destination name without folder_id keeps the source's parents.
        """
        _require_name(destination, "destination")

        with _operation("copy", source):
            entity = self._require(source, timeout=timeout)
            if is_path(destination) or folder_id:
                path, parent_id, leaf = self._place(destination, folder_id, timeout=timeout)
            else:
                path = leaf = sanitize_filename(leaf_name(destination))
                parent_id = None
            copied = self._controller.copy(
                entity.id,
                parent_id,
                new_name=leaf,
                timeout=timeout,
            )
            self._remember_created(copied, destination, path, folder_id)

        logger.info("Copied %s to %s (%s)", source, path, copied.id)
        return copied.id

    def move(
        self,
        name: str,
        folder_id: str,
        *,
        timeout: Optional[float] = None,
    ) -> bool:
        """Move `name` into folder_id, replacing its current parents."""
        _require_name(folder_id, "folder_id")

        with _operation("move", name):
            entity = self._require(name, timeout=timeout)
            self._resolver.forget(entity)
            self._controller.move(entity.id, folder_id, timeout=timeout)

        logger.info("Moved %s (%s) to %s", name, entity.id, folder_id)
        return True

    def move_to(
        self,
        source: str,
        destination: str,
        folder_id: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
    ) -> str:
        """
        Move `source` to the virtual path `destination` and return its id.

        Missing folders of the destination are created, and the entity is
        renamed when the last segment differs from its current name. A bare
        destination name lands in the root, or in folder_id when given.
        """
        _require_name(destination, "destination")

        with _operation("move", source):
            entity = self._require(source, timeout=timeout)
            path, parent_id, leaf = self._place(destination, folder_id, timeout=timeout)
            self._resolver.forget(entity)
            if entity.parents != [parent_id]:
                entity = self._controller.move(entity.id, parent_id, timeout=timeout)
            if entity.name != leaf:
                entity = self._controller.rename(entity.id, leaf, timeout=timeout)
            self._remember_created(entity, destination, path, folder_id)

        logger.info("Moved %s (%s) to %s", source, entity.id, path)
        return entity.id

    def rename(
        self,
        old_name: str,
        new_name: str,
        *,
        timeout: Optional[float] = None,
    ) -> bool:
        """Rename in place. The new name is sanitized (it cannot contain '/')."""
        _require_name(new_name, "new_name")

        with _operation("rename", old_name):
            entity = self._require(old_name, timeout=timeout)
            self._resolver.forget(entity)
            self._controller.rename(
                entity.id,
                sanitize_filename(new_name),
                timeout=timeout,
            )

        logger.info("Renamed %s (%s) to %s", old_name, entity.id, new_name)
        return True

    # ----------------------------
    # Info
    # ----------------------------
    def exists(self, name: str, *, timeout: Optional[float] = None) -> bool:
        _require_name(name, "name")
        with _operation("look up", name):
            return self._resolver.lookup(name, timeout=timeout) is not None

    def get_file_info(
        self,
        name: str,
        *,
        timeout: Optional[float] = None,
    ) -> Optional[dict[str, Any]]:
        _require_name(name, "name")
        with _operation("look up", name):
            entity = self._resolver.lookup(name, timeout=timeout)
        return entity.to_dict() if entity is not None else None

    def size(self, name: str, *, timeout: Optional[float] = None) -> int:
        with _operation("look up", name):
            entity = self._require(name, timeout=timeout)
        return entity.size or 0

    def last_modified(self, name: str, *, timeout: Optional[float] = None) -> Optional[datetime]:
        with _operation("look up", name):
            entity = self._require(name, timeout=timeout)
        return entity.modified_time

    # ----------------------------
    # Listing / search
    # ----------------------------
    def list_contents(
        self,
        folder_id: Optional[str] = None,
        limit: Optional[int] = 100,
        *,
        directory: Optional[str] = None,
        kind: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> list[dict[str, Any]]:
        """
        Direct children of folder_id, or of `directory` (name or path), or of
        the root. `kind` narrows to 'file' or 'folder'.
        """
        if kind not in _LIST_KINDS:
            raise InvalidInputError(
                f"kind must be 'file', 'folder' or None, not {kind!r}",
                details={"kind": kind},
            )

        target = directory or folder_id or self._resolver.root_id
        with _operation("list", target):
            parent_id = folder_id or self._resolver.root_id
            prefix = ""
            if directory:
                folder = self._require(directory, folders_only=True, timeout=timeout)
                parent_id = folder.id
                prefix = normalize_path(directory)

            entities = self._controller.list_children(
                parent_id,
                kind=kind,
                limit=limit,
                timeout=timeout,
            )

        records = []
        for entity in entities:
            entity.path = join_path([prefix, entity.name]) if prefix else entity.name
            records.append(entity.to_dict())
        return records

    def files(
        self,
        folder_id: Optional[str] = None,
        limit: Optional[int] = 100,
        **kwargs: Any,
    ) -> list[dict[str, Any]]:
        return self.list_contents(folder_id, limit, kind="file", **kwargs)

    def folders(
        self,
        folder_id: Optional[str] = None,
        limit: Optional[int] = 100,
        **kwargs: Any,
    ) -> list[dict[str, Any]]:
        return self.list_contents(folder_id, limit, kind="folder", **kwargs)

    def list_all(
        self,
        folder_id: Optional[str] = None,
        *,
        recursive: bool = False,
        timeout: Optional[float] = None,
    ) -> list[dict[str, Any]]:
        """
        Files and folders under folder_id (root by default).

        With recursive=True, descendants are listed breadth-first and each
        record's path is relative to folder_id.
        """
        root_id = folder_id or self._resolver.root_id
        results: list[Entity] = []
        queue: deque[tuple[str, str]] = deque([(root_id, "")])
        seen_folders: set[str] = set()

        with _operation("list", root_id):
            while queue:
                parent_id, prefix = queue.popleft()
                if parent_id in seen_folders:
                    continue
                seen_folders.add(parent_id)

                for child in self._controller.list_children(parent_id, timeout=timeout):
                    child.path = join_path([prefix, child.name]) if prefix else child.name
                    results.append(child)
                    if recursive and child.is_folder:
                        queue.append((child.id, child.path))

        return [entity.to_dict() for entity in results]

    def search(
        self,
        substring: str,
        limit: Optional[int] = 100,
        *,
        timeout: Optional[float] = None,
    ) -> list[dict[str, Any]]:
        """Entities whose name contains `substring`, in the order Drive lists them."""
        _require_name(substring, "substring")
        with _operation("search", substring):
            entities = self._controller.search(substring, limit=limit, timeout=timeout)
        return [entity.to_dict() for entity in entities]

    # ----------------------------
    # Folders
    # ----------------------------
    def make_dir(
        self,
        name: str,
        parent_id: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
    ) -> str:
        """
        Create a folder and return its id.

        The last segment is always created, so calling this twice creates two
        folders with the same name. Missing intermediate folders of a path
        are found or created. Use ensure_dir for find-or-create semantics.
        """
        _require_name(name, "name")

        with _operation("create folder", name):
            path, parent, leaf = self._place(name, parent_id, timeout=timeout)
            folder = self._controller.create_folder(leaf, parent, timeout=timeout)

        logger.info("Created folder %s (%s)", path, folder.id)
        return folder.id

    def ensure_dir(
        self,
        path: str,
        parent_id: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
    ) -> str:
        """Return the id of folder `path`, creating any missing folder on the way."""
        _require_name(path, "path")
        with _operation("create folder", path):
            return self._resolver.ensure_path(
                sanitize_path(path),
                root_id=parent_id,
                timeout=timeout,
            )

    def find_folder_id(self, name: str, *, timeout: Optional[float] = None) -> Optional[str]:
        _require_name(name, "name")
        with _operation("look up", name):
            folder = self._resolver.lookup(name, folders_only=True, timeout=timeout)
        return folder.id if folder is not None else None

    # ----------------------------
    # Sharing
    # ----------------------------
    def share(
        self,
        name: str,
        principal: str,
        role: str = "reader",
        *,
        timeout: Optional[float] = None,
    ) -> bool:
        """Grant `role` to an email address, or to everyone with principal='anyone'."""
        if role not in SHARE_ROLES:
            raise InvalidInputError(
                f"role must be one of {', '.join(SHARE_ROLES)}",
                details={"role": role},
            )
        if not isinstance(principal, str) or (principal != ANYONE and "@" not in principal):
            raise InvalidInputError(
                "principal must be an email address or 'anyone'",
                details={"principal": principal},
            )

        with _operation("share", name):
            entity = self._require(name, timeout=timeout)
            if principal == ANYONE:
                self._controller.create_permission(
                    entity.id, role=role, type=ANYONE, timeout=timeout
                )
            else:
                self._controller.create_permission(
                    entity.id,
                    role=role,
                    type="user",
                    email_address=principal,
                    timeout=timeout,
                )

        logger.info("Shared %s (%s) with %s as %s", name, entity.id, principal, role)
        return True

    def share_with_email(
        self,
        name: str,
        email: str,
        role: str = "reader",
        *,
        timeout: Optional[float] = None,
    ) -> bool:
        return self.share(name, email, role, timeout=timeout)

    def make_public(self, name: str, *, timeout: Optional[float] = None) -> str:
        """Let anyone with the link read `name`; returns the link."""
        self.share(name, ANYONE, "reader", timeout=timeout)
        link = self.get_shareable_link(name, timeout=timeout)
        return link  # type: ignore[return-value]

    def get_shareable_link(self, name: str, *, timeout: Optional[float] = None) -> Optional[str]:
        _require_name(name, "name")
        with _operation("look up", name):
            entity = self._resolver.lookup(name, timeout=timeout)
        if entity is None:
            return None
        return entity.web_view_link or f"https://drive.google.com/file/d/{entity.id}/view"

    # ----------------------------
    # Batch
    # ----------------------------
    def put_multiple(
        self,
        files: Mapping[str, Content],
        folder_id: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
    ) -> list[BatchItemResult]:
        """Upload every item; one result per item, in input order."""
        results: list[BatchItemResult] = []
        for name, content in files.items():
            try:
                file_id = self.put(name, content, folder_id, timeout=timeout)
            except GDriveWrapError as exc:
                logger.warning("Batch upload of %s failed: %s", name, exc)
                results.append(BatchItemResult.failed(_label(name), exc))
                continue
            results.append(BatchItemResult(name=name, success=True, file_id=file_id))

        logger.info("Batch upload finished: %s", summarize(results))
        return results

    def delete_multiple(
        self,
        names: Iterable[str],
        *,
        timeout: Optional[float] = None,
    ) -> list[BatchItemResult]:
        """Delete every name; one result per name, in input order."""
        results: list[BatchItemResult] = []
        for name in names:
            try:
                deleted = self.delete(name, timeout=timeout)
            except GDriveWrapError as exc:
                logger.warning("Batch delete of %s failed: %s", name, exc)
                results.append(BatchItemResult.failed(_label(name), exc))
                continue

            if deleted:
                results.append(BatchItemResult(name=name, success=True))
            else:
                results.append(
                    BatchItemResult.failed(_label(name), NotFoundError(f"File not found: {name}"))
                )

        logger.info("Batch delete finished: %s", summarize(results))
        return results

    def backup_folder(
        self,
        folder_id: Optional[str] = None,
        local_path: str = "./backup",
        *,
        timeout: Optional[float] = None,
    ) -> list[BatchItemResult]:
        """
        Download every file directly inside folder_id (root by default) into
        local_path. Local names are sanitized and made unique.
        """
        source_id = folder_id or self._resolver.root_id
        os.makedirs(local_path, exist_ok=True)

        with _operation("back up", source_id):
            entries = self._controller.list_children(source_id, kind="file", timeout=timeout)

        results: list[BatchItemResult] = []
        used_names: set[str] = set()
        for entry in entries:
            local_name = generate_unique_filename(sanitize_filename(entry.name), used_names)
            used_names.add(local_name)
            destination = os.path.join(local_path, local_name)

            try:
                _ensure_downloadable(entry)
                content = self._controller.get_content(entry.id, timeout=timeout)
                with open(destination, "wb") as f:
                    f.write(content)
            except (GDriveWrapError, OSError) as exc:
                logger.warning("Backup of %s failed: %s", entry.name, exc)
                failed = BatchItemResult.failed(entry.name, exc)
                failed.file_id = entry.id
                results.append(failed)
                continue

            results.append(
                BatchItemResult(
                    name=entry.name,
                    success=True,
                    file_id=entry.id,
                    local_path=destination,
                )
            )

        logger.info("Backup of %s finished: %s", source_id, summarize(results))
        return results

    # ----------------------------
    # Internals
    # ----------------------------
    def _require(
        self,
        name: str,
        *,
        folders_only: bool = False,
        timeout: Optional[float],
    ) -> Entity:
        _require_name(name, "name")
        entity = self._resolver.lookup(name, folders_only=folders_only, timeout=timeout)
        if entity is None:
            what = "Folder" if folders_only else "File"
            raise NotFoundError(f"{what} not found: {name}", details={"name": name})
        return entity

    def _delete(self, name: str, *, folders_only: bool, timeout: Optional[float]) -> bool:
        _require_name(name, "name")
        with _operation("delete", name):
            entity = self._resolver.lookup(name, folders_only=folders_only, timeout=timeout)
            if entity is None:
                return False

            self._resolver.forget(entity)
            try:
                self._controller.delete(entity.id, timeout=timeout)
            except NotFoundError:
                # Stale cache entry: already gone on Drive.
                return False

        logger.info("Deleted %s (%s)", name, entity.id)
        return True

    def _place(
        self,
        name: str,
        root_id: Optional[str],
        *,
        timeout: Optional[float],
    ) -> tuple[str, str, str]:
        """Sanitize `name` and find-or-create its parent folders."""
        path = sanitize_path(name)
        parent_id, leaf = self._resolver.resolve_parent(
            path,
            create=True,
            root_id=root_id,
            timeout=timeout,
        )
        return path, parent_id, leaf  # type: ignore[return-value]

    def _remember_created(
        self,
        entity: Entity,
        name: str,
        path: str,
        root_id: Optional[str],
    ) -> None:
        entity.path = path
        self._resolver.remember(entity, name, path, root_id=root_id)


@contextmanager
def _operation(operation: str, target: str) -> Iterator[None]:
    """Attach the operation and its target to any gdrivewrap error raised inside."""
    try:
        yield
    except GDriveWrapError as exc:
        if exc.operation is not None:
            raise
        raise with_context(exc, operation, target) from exc


def _require_name(value: Any, field_name: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(
            f"{field_name} must be a non-empty string",
            details={field_name: value},
        )


def _label(name: Any) -> str:
    return name if isinstance(name, str) else repr(name)


def _to_bytes(content: Content) -> bytes:
    if isinstance(content, str):
        return content.encode("utf-8")
    if isinstance(content, (bytes, bytearray)):
        return bytes(content)
    raise InvalidInputError(
        "content must be bytes or str",
        details={"type": type(content).__name__},
    )


def _ensure_downloadable(entity: Entity) -> None:
    if is_google_docs_download_disallowed(entity.mime_type):
        raise InvalidInputError(
            "Folders and Google Docs types cannot be downloaded as content",
            details={"mime_type": entity.mime_type, "file_id": entity.id},
        )
