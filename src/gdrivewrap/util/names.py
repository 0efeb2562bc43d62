"""Name and virtual path helpers."""

from __future__ import annotations

import re
from typing import Iterable

from .time import compact_timestamp

PATH_SEPARATOR: str = "/"
PLACEHOLDER_CHAR: str = "_"

_DISALLOWED = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def clean_name(name: str) -> str:
    """Replace path-control characters with '_' and strip whitespace. May return ''."""
    return _DISALLOWED.sub(PLACEHOLDER_CHAR, name).strip()


def sanitize_filename(filename: str) -> str:
    """
    Make a name safe for a Drive create/rename call.

    Same as clean_name, except that an empty result becomes
    'untitled_<YYYYmmddHHMMSS>'. Applying it twice gives the same result as
    applying it once.
    """
    cleaned = clean_name(filename)
    if not cleaned:
        cleaned = f"untitled_{compact_timestamp()}"
    return cleaned


def split_path(path: str) -> list[str]:
    """Split a virtual path into its non-empty segments."""
    return [segment for segment in path.split(PATH_SEPARATOR) if segment.strip()]


def join_path(segments: Iterable[str]) -> str:
    return PATH_SEPARATOR.join(segments)


def normalize_path(path: str) -> str:
    """'/a//b/' -> 'a/b'."""
    return join_path(split_path(path))


def is_path(name_or_path: str) -> bool:
    """True when the argument addresses an entity through containers."""
    return len(split_path(name_or_path)) > 1


def sanitize_path(path: str) -> str:
    """Sanitize each segment of a virtual path, keeping the separators."""
    segments = split_path(path)
    if not segments:
        return sanitize_filename(path)
    return join_path(sanitize_filename(segment) for segment in segments)


def clean_path(path: str) -> str:
    """The spelling sanitize_path gives a path, without the empty-name placeholder."""
    return join_path(filter(None, (clean_name(segment) for segment in split_path(path))))


def leaf_name(path: str) -> str:
    segments = split_path(path)
    return segments[-1] if segments else path


def generate_unique_filename(filename: str, existing: Iterable[str]) -> str:
    """Append '_1', '_2', ... before the extension until the name is unused."""
    taken = set(existing)
    if filename not in taken:
        return filename

    stem, dot, ext = filename.rpartition(".")
    if not dot or not stem:
        stem, suffix = filename, ""
    else:
        suffix = f".{ext}"

    counter = 1
    candidate = f"{stem}_{counter}{suffix}"
    while candidate in taken:
        counter += 1
        candidate = f"{stem}_{counter}{suffix}"
    return candidate
