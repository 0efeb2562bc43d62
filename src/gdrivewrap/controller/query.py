"""Builders for Drive `files.list` query expressions."""

from __future__ import annotations

from typing import Optional

from gdrivewrap.util.mime import FOLDER_MIME


def escape_value(value: str) -> str:
    """Escape a string literal for use inside single quotes in a Drive query."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def name_equals(name: str) -> str:
    return f"name = '{escape_value(name)}'"


def name_contains(substring: str) -> str:
    return f"name contains '{escape_value(substring)}'"


def in_parents(parent_id: str) -> str:
    return f"'{escape_value(parent_id)}' in parents"


def mime_equals(mime_type: str) -> str:
    return f"mimeType = '{escape_value(mime_type)}'"


def mime_not_equals(mime_type: str) -> str:
    return f"mimeType != '{escape_value(mime_type)}'"


def kind_filter(kind: Optional[str]) -> Optional[str]:
    """'folder' / 'file' / None (both)."""
    if kind is None:
        return None
    if kind == "folder":
        return mime_equals(FOLDER_MIME)
    if kind == "file":
        return mime_not_equals(FOLDER_MIME)
    raise ValueError(f"Unknown kind: {kind!r} (expected 'file', 'folder' or None)")


def and_(*clauses: Optional[str]) -> str:
    """Join non-empty clauses with 'and', parenthesizing each one."""
    parts = [c for c in clauses if c]
    if len(parts) == 1:
        return parts[0]
    return " and ".join(f"({c})" for c in parts)
