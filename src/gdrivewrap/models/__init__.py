"""Public model exports for gdrivewrap."""

from __future__ import annotations

from .entity import DriveEntity, DriveFile, DriveFolder, Entity, entity_from_api
from .results import BatchItemResult, summarize

__all__ = [
    "DriveEntity",
    "DriveFile",
    "DriveFolder",
    "Entity",
    "entity_from_api",
    "BatchItemResult",
    "summarize",
]
