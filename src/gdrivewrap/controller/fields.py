"""`fields` selectors sent with Drive requests."""

from __future__ import annotations

# Every attribute DriveEntity is built from.
ENTITY_FIELDS: tuple[str, ...] = (
    "id",
    "name",
    "mimeType",
    "parents",
    "size",
    "createdTime",
    "modifiedTime",
    "webViewLink",
    "webContentLink",
)

FILE_FIELDS: str = ",".join(ENTITY_FIELDS)
LIST_FIELDS: str = f"nextPageToken,files({FILE_FIELDS})"
PERMISSION_FIELDS: str = "id,type,role,emailAddress"

# Drive rejects larger page sizes.
MAX_PAGE_SIZE: int = 1000
