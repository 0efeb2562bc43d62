from __future__ import annotations

import mimetypes

FOLDER_MIME: str = "application/vnd.google-apps.folder"
DEFAULT_MIME: str = "application/octet-stream"

GOOGLE_APP_MIMES: set[str] = {
    "application/vnd.google-apps.document",
    "application/vnd.google-apps.spreadsheet",
    "application/vnd.google-apps.presentation",
    "application/vnd.google-apps.drawing",
    "application/vnd.google-apps.form",
    "application/vnd.google-apps.script",
    "application/vnd.google-apps.site",
}

# Used when the platform mimetypes table has no entry for the extension.
_FALLBACK_MIMES: dict[str, str] = {
    "txt": "text/plain",
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "zip": "application/zip",
    "json": "application/json",
    "xml": "application/xml",
    "csv": "text/csv",
}


def is_folder(mime_type: str | None) -> bool:
    return mime_type == FOLDER_MIME


def is_google_app(mime_type: str) -> bool:
    """
    Returns True if the MIME type is a Google 'apps' type.

    Unlisted Google apps types are detected by their common prefix.
    """
    if mime_type in GOOGLE_APP_MIMES:
        return True
    return mime_type.startswith("application/vnd.google-apps.")


def is_google_docs_download_disallowed(mime_type: str) -> bool:
    """
    Google Docs/Sheets/Slides (and other Google-apps types) cannot be fetched
    via standard media download; export handling is out of scope.
    Folders are also not downloadable.
    """
    return is_folder(mime_type) or is_google_app(mime_type)


def guess_mime_type(filename: str) -> str:
    """Guess a content type from the file name's extension."""
    guessed, _ = mimetypes.guess_type(filename, strict=False)
    if guessed:
        return guessed

    _, dot, ext = filename.rpartition(".")
    if dot:
        return _FALLBACK_MIMES.get(ext.lower(), DEFAULT_MIME)
    return DEFAULT_MIME
