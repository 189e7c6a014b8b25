"""
=============================================================================
CONTENT-TYPE RESOLUTION
=============================================================================

Maps a file extension to the MIME type sent in the Content-Type header.

Unlike a general purpose server, this one is an ALLOWLIST: files whose
extension is not in the table are refused with 415 Unsupported Media Type
instead of being served as application/octet-stream.

    ┌────────────────────────────────────────────────────────────────────┐
    │                    LOOKUP RULES                                    │
    ├────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   extension        result                                          │
    │   ─────────        ──────                                          │
    │   ".png"           "image/png"                                     │
    │   None             "text/html"   (directory request, index.html)   │
    │   ".PNG"           UnsupportedMediaType  (exact, case-sensitive)   │
    │   ".xyz"           UnsupportedMediaType                            │
    │                                                                     │
    └────────────────────────────────────────────────────────────────────┘

The table is built once at import time and wrapped in a MappingProxyType,
so every thread can read it without a lock and nobody can mutate it.

=============================================================================
"""

from types import MappingProxyType
from typing import Optional

from .errors import UnsupportedMediaType


# =============================================================================
# MIME TYPE TABLE
# =============================================================================
#
# Keys include the leading dot. Matching is exact: no lowercasing, no
# stripping. ".ogg" is served as video since this table targets web media.
#
# =============================================================================

MIME_TYPES = MappingProxyType({
    # Documents
    ".html": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",

    # Images
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",

    # Video
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".ogg": "video/ogg",
    ".avi": "video/x-msvideo",
    ".mpeg": "video/mpeg",
})

# Extension assumed for directory-style requests (served from index.html)
DIRECTORY_EXTENSION = ".html"


def get_mime_type(extension: Optional[str]) -> str:
    """
    Resolve the MIME type for a file extension.

    Args:
        extension: Extension including the leading dot, or None when the
                   request target has no extension.

    Returns:
        The MIME type string.

    Raises:
        UnsupportedMediaType: If the extension is not in the table.

    Examples:
        >>> get_mime_type(".css")
        'text/css'

        >>> get_mime_type(None)
        'text/html'
    """
    if extension is None:
        extension = DIRECTORY_EXTENSION

    try:
        return MIME_TYPES[extension]
    except KeyError:
        raise UnsupportedMediaType(f"Unsupported extension: {extension}") from None


def is_supported(extension: Optional[str]) -> bool:
    """Check whether an extension would be served."""
    return extension is None or extension in MIME_TYPES
