"""Path resolution exports for gdrivewrap."""

from __future__ import annotations

from .cache import IdentifierCache
from .path_resolver import ROOT_ID, PathResolver

__all__ = ["IdentifierCache", "PathResolver", "ROOT_ID"]
