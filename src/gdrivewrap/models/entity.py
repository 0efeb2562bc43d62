"""Data model for Drive items (files and folders)."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Union

from gdrivewrap.errors import ApiError
from gdrivewrap.util.mime import FOLDER_MIME, is_folder
from gdrivewrap.util.time import optional_rfc3339, parse_optional


@dataclass(slots=True)
class DriveEntity:
    """
    A Drive item as seen by this library.

    Notes:
        - `is_folder` is computed once, from `mime_type`, at construction.
        - `path` is the virtual path used to resolve the item; Drive does not
          store it.
    """

    id: str
    name: str
    mime_type: str = ""
    parents: list[str] = field(default_factory=list)

    size: Optional[int] = None
    modified_time: Optional[datetime] = None
    created_time: Optional[datetime] = None
    path: str = ""
    web_view_link: Optional[str] = None
    web_content_link: Optional[str] = None

    is_folder: bool = field(init=False, default=False)

    def __post_init__(self) -> None:
        self.is_folder = is_folder(self.mime_type)

    @property
    def extension(self) -> Optional[str]:
        """Extension without the dot, or None. Hidden files like '.env' have none."""
        _, ext = posixpath.splitext(self.name)
        return ext[1:] or None

    @property
    def basename(self) -> str:
        """Name without its extension."""
        stem, _ = posixpath.splitext(self.name)
        return stem

    def to_dict(self) -> dict[str, Any]:
        """
        Flat record returned from listing and search operations.

        Keys: id, name, path, size, mime_type, modified_time, created_time
        (RFC3339 strings or None), parents, web_view_link, web_content_link,
        is_folder, extension, basename.
        """
        return {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "size": self.size,
            "mime_type": self.mime_type,
            "modified_time": optional_rfc3339(self.modified_time),
            "created_time": optional_rfc3339(self.created_time),
            "parents": list(self.parents),
            "web_view_link": self.web_view_link,
            "web_content_link": self.web_content_link,
            "is_folder": self.is_folder,
            "extension": self.extension,
            "basename": self.basename,
        }


@dataclass(slots=True)
class DriveFile(DriveEntity):
    """A regular (non-container) Drive item."""


@dataclass(slots=True)
class DriveFolder(DriveEntity):
    """A container. The folder MIME type is forced whatever the caller passes."""

    def __post_init__(self) -> None:
        self.mime_type = FOLDER_MIME
        self.size = None
        DriveEntity.__post_init__(self)


Entity = Union[DriveFile, DriveFolder]


def entity_from_api(data: dict[str, Any], path: str = "") -> Entity:
    """
    Build a DriveFile or DriveFolder from a Drive API file resource.

    Raises:
        ApiError: the resource has no id.
    """
    file_id = data.get("id")
    if not isinstance(file_id, str) or not file_id:
        raise ApiError("Drive returned a file resource without an id", details={"resource": data})
    name = data.get("name", "")
    mime_type = data.get("mimeType", "")
    parents = data.get("parents", []) or []

    kwargs: dict[str, Any] = {
        "id": file_id,
        "name": name if isinstance(name, str) else "",
        "mime_type": mime_type if isinstance(mime_type, str) else "",
        "parents": list(parents) if isinstance(parents, list) else [],
        "modified_time": parse_optional(data.get("modifiedTime")),
        "created_time": parse_optional(data.get("createdTime")),
        "size": _parse_size(data.get("size")),
        "path": path,
        "web_view_link": _optional_str(data.get("webViewLink")),
        "web_content_link": _optional_str(data.get("webContentLink")),
    }

    if is_folder(kwargs["mime_type"]):
        return DriveFolder(**kwargs)
    return DriveFile(**kwargs)


def _parse_size(value: Any) -> Optional[int]:
    if isinstance(value, str) and value.isdigit():
        return int(value)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def _optional_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None
