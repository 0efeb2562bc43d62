from .mime import (
    DEFAULT_MIME,
    FOLDER_MIME,
    GOOGLE_APP_MIMES,
    guess_mime_type,
    is_folder,
    is_google_app,
    is_google_docs_download_disallowed,
)
from .names import (
    clean_name,
    clean_path,
    generate_unique_filename,
    is_path,
    join_path,
    leaf_name,
    normalize_path,
    sanitize_filename,
    sanitize_path,
    split_path,
)
from .time import (
    compact_timestamp,
    parse_optional,
    require_aware,
    now_utc,
    optional_rfc3339,
    parse_rfc3339,
    to_rfc3339,
)

__all__ = [
    "FOLDER_MIME",
    "DEFAULT_MIME",
    "GOOGLE_APP_MIMES",
    "is_folder",
    "is_google_app",
    "is_google_docs_download_disallowed",
    "guess_mime_type",
    "clean_name",
    "clean_path",
    "sanitize_filename",
    "sanitize_path",
    "split_path",
    "join_path",
    "normalize_path",
    "is_path",
    "leaf_name",
    "generate_unique_filename",
    "now_utc",
    "parse_rfc3339",
    "to_rfc3339",
    "optional_rfc3339",
    "parse_optional",
    "require_aware",
    "compact_timestamp",
]
