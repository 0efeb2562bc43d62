"""In-process lookup cache for resolved Drive entities."""

from __future__ import annotations

import logging
from typing import Iterator, Optional

from gdrivewrap.models import DriveEntity

logger = logging.getLogger(__name__)


class IdentifierCache:
    """
    Maps a lookup key (bare name, sanitized name or virtual path) to the last
    entity resolved for it.

    Notes:
        - Not authoritative: Drive is the source of truth and another process
          may change it at any time.
        - Unsynchronized and process-local; it is a latency optimization, not
          a concurrency-control mechanism.
    """

    def __init__(self) -> None:
        self._entries: dict[str, DriveEntity] = {}

    def get(self, key: str) -> Optional[DriveEntity]:
        entity = self._entries.get(key)
        if entity is not None:
            logger.debug("Cache hit: %s -> %s", key, entity.id)
        return entity

    def put(self, entity: DriveEntity, *keys: str) -> None:
        for key in keys:
            if key:
                self._entries[key] = entity

    def evict(self, *keys: str) -> None:
        for key in keys:
            self._entries.pop(key, None)

    def evict_id(self, file_id: str) -> list[str]:
        """Drop every key that points at file_id. Returns the evicted keys."""
        stale = [key for key, entity in self._entries.items() if entity.id == file_id]
        for key in stale:
            del self._entries[key]
        return stale

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> list[str]:
        return list(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))
