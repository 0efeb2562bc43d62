"""Resolve virtual slash-delimited paths and bare names to Drive entities."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from gdrivewrap.errors import InvalidInputError
from gdrivewrap.models import Entity
from gdrivewrap.util.names import (
    clean_name,
    clean_path,
    is_path,
    join_path,
    leaf_name,
    normalize_path,
    split_path,
)

from .cache import IdentifierCache

if TYPE_CHECKING:
    from gdrivewrap.controller import GoogleDriveController

logger = logging.getLogger(__name__)

ROOT_ID: str = "root"


class PathResolver:
    """
    Maps virtual paths ("reports/2024/summary.txt") and bare names onto
    Drive's parent-referenced object graph.

    Notes:
        - Intermediate path segments only match folders; the last segment
          matches any entity.
        - When several children share a name, the first one Drive returns is
          used. Which one that is is undefined; address by id to disambiguate.
        - Folder creation is check-then-create and not atomic. Concurrent
          callers may each create a folder with the same name.
        - Not-found is reported as None. Controller errors propagate as-is.
    """

    def __init__(
        self,
        controller: "GoogleDriveController",
        cache: Optional[IdentifierCache] = None,
        *,
        root_id: str = ROOT_ID,
    ) -> None:
        self._controller = controller
        self._cache = cache if cache is not None else IdentifierCache()
        self._root_id = root_id

    @property
    def cache(self) -> IdentifierCache:
        return self._cache

    @property
    def root_id(self) -> str:
        return self._root_id

    # ----------------------------
    # Lookup
    # ----------------------------
    def lookup(
        self,
        name_or_path: str,
        *,
        folders_only: bool = False,
        timeout: Optional[float] = None,
    ) -> Optional[Entity]:
        """
        Resolve `a/b/c` through folders, or a bare name anywhere in Drive.

        Uploads store every segment sanitized, so when the path as written does
        not resolve its sanitized spelling is tried as well.
        """
        if is_path(name_or_path):
            entity = self.resolve(name_or_path, timeout=timeout)
            if entity is None:
                cleaned = clean_path(name_or_path)
                if cleaned and cleaned != normalize_path(name_or_path):
                    entity = self.resolve(cleaned, timeout=timeout)
            if entity is not None and folders_only and not entity.is_folder:
                return None
            return entity
        return self.find_by_name_flat(
            leaf_name(name_or_path),
            folders_only=folders_only,
            timeout=timeout,
        )

    def resolve(
        self,
        path: str,
        *,
        create: bool = False,
        root_id: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> Optional[Entity]:
        """
        Resolve a virtual path starting at root_id (default: the resolver root).

        With create=True, missing intermediate folders are created; the last
        segment is never created.
        """
        segments = split_path(path)
        if not segments:
            return None
        return self._walk(
            segments,
            root_id or self._root_id,
            create=create,
            leaf_is_container=False,
            timeout=timeout,
        )

    def resolve_parent(
        self,
        path: str,
        *,
        create: bool = False,
        root_id: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> tuple[Optional[str], str]:
        """
        Resolve the folder that holds the last segment of `path`.

        Returns:
            (parent_id or None when a folder is missing, leaf name)
        """
        segments = split_path(path)
        if not segments:
            raise InvalidInputError("path must contain at least one name", details={"path": path})

        root = root_id or self._root_id
        leaf = segments[-1]
        if len(segments) == 1:
            return root, leaf

        parent = self._walk(
            segments[:-1],
            root,
            create=create,
            leaf_is_container=True,
            timeout=timeout,
        )
        return (parent.id if parent is not None else None), leaf

    def ensure_container(
        self,
        parent_id: str,
        name: str,
        *,
        timeout: Optional[float] = None,
    ) -> str:
        """Return the id of folder `name` under parent_id, creating it if absent."""
        return self._ensure_container_entity(parent_id, name, timeout=timeout).id

    def ensure_path(
        self,
        path: str,
        *,
        root_id: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """Find-or-create every folder of `path`; returns the last folder's id."""
        segments = split_path(path)
        root = root_id or self._root_id
        if not segments:
            return root

        folder = self._walk(
            segments,
            root,
            create=True,
            leaf_is_container=True,
            timeout=timeout,
        )
        return folder.id  # type: ignore[union-attr]

    def find_by_name_flat(
        self,
        name: str,
        *,
        folders_only: bool = False,
        timeout: Optional[float] = None,
    ) -> Optional[Entity]:
        """
        Any non-trashed entity with exactly this name, whatever its parent.

        Falls back to the sanitized spelling of the name, since uploads store
        names sanitized. A blank name never matches.
        """
        if not name.strip():
            return None

        cached = self._cache.get(name)
        if cached is not None and (cached.is_folder or not folders_only):
            return cached

        candidates = [name]
        cleaned = clean_name(name)
        if cleaned != name:
            candidates.append(cleaned)

        for candidate in candidates:
            matches = self._controller.find_by_name(
                candidate,
                folders_only=folders_only,
                limit=2,
                timeout=timeout,
            )
            if matches:
                entity = _first(matches, candidate, parent_id=None)
                self._cache.put(entity, name, candidate)
                return entity

        logger.debug("Name not found: %s", name)
        return None

    # ----------------------------
    # Cache maintenance
    # ----------------------------
    def remember(self, entity: Entity, *keys: str, root_id: Optional[str] = None) -> None:
        """Cache a freshly created/fetched entity under bare-name or path keys."""
        root = root_id or self._root_id
        for key in keys:
            if is_path(key):
                path = normalize_path(key)
                self._cache.put(entity, self._path_key(root, path), leaf_name(path))
            else:
                self._cache.put(entity, key)

    def forget(self, entity: Entity) -> None:
        """
        Evict everything that may point at an entity being mutated or deleted.

        For a folder every cached descendant is stale as well, and those are
        not tracked by id, so the whole cache is dropped.
        """
        if entity.is_folder:
            logger.debug("Clearing cache after folder change: %s", entity.id)
            self._cache.clear()
            return
        evicted = self._cache.evict_id(entity.id)
        if evicted:
            logger.debug("Evicted cache keys for %s: %s", entity.id, evicted)

    # ----------------------------
    # Internals
    # ----------------------------
    def _walk(
        self,
        segments: list[str],
        root_id: str,
        *,
        create: bool,
        leaf_is_container: bool,
        timeout: Optional[float],
    ) -> Optional[Entity]:
        parent_id = root_id
        entity: Optional[Entity] = None
        last_index = len(segments) - 1

        for index, segment in enumerate(segments):
            partial = join_path(segments[: index + 1])
            key = self._path_key(root_id, partial)
            folders_only = index < last_index or leaf_is_container

            cached = self._cache.get(key)
            if cached is not None and (cached.is_folder or not folders_only):
                entity = cached
                parent_id = cached.id
                continue

            if create and folders_only:
                entity = self._ensure_container_entity(parent_id, segment, timeout=timeout)
            else:
                entity = self._find_child(
                    parent_id,
                    segment,
                    folders_only=folders_only,
                    timeout=timeout,
                )
                if entity is None:
                    logger.debug("Path segment not found: %s in parent %s", segment, parent_id)
                    return None

            entity.path = partial
            self._cache.put(entity, key)
            parent_id = entity.id

        if entity is not None:
            self._cache.put(entity, segments[-1])
        return entity

    def _find_child(
        self,
        parent_id: str,
        name: str,
        *,
        folders_only: bool,
        timeout: Optional[float],
    ) -> Optional[Entity]:
        matches = self._controller.find_by_name(
            name,
            parent_id=parent_id,
            folders_only=folders_only,
            limit=2,
            timeout=timeout,
        )
        if not matches:
            return None
        return _first(matches, name, parent_id=parent_id)

    def _ensure_container_entity(
        self,
        parent_id: str,
        name: str,
        *,
        timeout: Optional[float],
    ) -> Entity:
        existing = self._find_child(parent_id, name, folders_only=True, timeout=timeout)
        if existing is not None:
            return existing

        folder = self._controller.create_folder(name, parent_id, timeout=timeout)
        logger.info("Created folder %s (%s) under %s", name, folder.id, parent_id)
        return folder

    def _path_key(self, root_id: str, path: str) -> str:
        # Leading '/' keeps path keys apart from bare-name keys.
        if root_id == self._root_id:
            return f"/{path}"
        return f"{root_id}:/{path}"


def _first(matches: list[Entity], name: str, *, parent_id: Optional[str]) -> Entity:
    if len(matches) > 1:
        logger.warning(
            "Several entities named %r (parent=%s); using the first one (%s)",
            name,
            parent_id or "*",
            matches[0].id,
        )
    return matches[0]
