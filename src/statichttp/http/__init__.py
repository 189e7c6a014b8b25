"""
=============================================================================
HTTP PROTOCOL PIECES
=============================================================================

Everything between "bytes arrived on a socket" and "bytes to send back":

    ┌─────────────────────────────────────────────────────────────────────┐
    │ REQUEST PARSER (request.py)                                         │
    │   b"GET /a.png HTTP/1.1\r\n..."  →  HTTPRequest("GET", "/a.png")     │
    ├─────────────────────────────────────────────────────────────────────┤
    │ PATH RESOLVER (paths.py)                                            │
    │   "/a.png"  →  ResolvedTarget(<root>/a.png, ".png", "image/png")    │
    ├─────────────────────────────────────────────────────────────────────┤
    │ CONTENT-TYPE RESOLVER (mime_types.py)                               │
    │   ".png"  →  "image/png"      ".xyz"  →  UnsupportedMediaType       │
    ├─────────────────────────────────────────────────────────────────────┤
    │ RESPONSE BUILDER (response.py)                                      │
    │   (200, "OK", "image/png", 5120)  →  b"HTTP/1.1 200 OK\r\n..."      │
    ├─────────────────────────────────────────────────────────────────────┤
    │ STATUS CODES / ERRORS (status_codes.py, errors.py)                  │
    └─────────────────────────────────────────────────────────────────────┘

None of these touch a socket; they can be unit tested with plain bytes
and a temporary directory.

=============================================================================
"""

from .errors import (
    ServerError,
    StartupFailure,
    AcceptFailure,
    HTTPError,
    MalformedRequest,
    RequestTooLarge,
    PathTraversal,
    MethodNotAllowed,
    UnsupportedMediaType,
    ResourceNotFound,
    ErrorPageUnavailable,
    ResponseHeaderTooLarge,
)
from .request import HTTPRequest, RequestParser, parse_request
from .response import HTTPResponse, ResponseBuilder, render_header
from .paths import PathResolver, ResolvedTarget, extension_of
from .status_codes import HTTPStatus
from .mime_types import MIME_TYPES, get_mime_type, is_supported

__all__ = [
    # Errors
    "ServerError",
    "StartupFailure",
    "AcceptFailure",
    "HTTPError",
    "MalformedRequest",
    "RequestTooLarge",
    "PathTraversal",
    "MethodNotAllowed",
    "UnsupportedMediaType",
    "ResourceNotFound",
    "ErrorPageUnavailable",
    "ResponseHeaderTooLarge",

    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "parse_request",

    # Response building
    "HTTPResponse",
    "ResponseBuilder",
    "render_header",

    # Path resolution
    "PathResolver",
    "ResolvedTarget",
    "extension_of",

    # Status codes
    "HTTPStatus",

    # MIME types
    "MIME_TYPES",
    "get_mime_type",
    "is_supported",
]
