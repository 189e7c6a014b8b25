"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The subset of RFC 9110 status codes this server can emit.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    STATUS LINE ANATOMY                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │      HTTP/1.1 404 Not Found                                         │
    │      ──────── ─── ─────────                                         │
    │         │      │      │                                              │
    │         │      │      └── Reason phrase (for humans)                │
    │         │      └───────── Status code (for machines)                │
    │         └──────────────── Protocol version                          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Only the codes the request handler can actually produce are listed.
Adding one means adding its phrase to _STATUS_PHRASES as well.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    This enum extends IntEnum, so status codes can be used as integers:

        >>> HTTPStatus.OK == 200
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    # 2xx SUCCESS
    OK = 200                        # File found and streamed

    # 4xx CLIENT ERRORS
    BAD_REQUEST = 400               # Request line unusable
    NOT_FOUND = 404                 # File cannot be opened
    METHOD_NOT_ALLOWED = 405        # Only GET is served
    UNSUPPORTED_MEDIA_TYPE = 415    # Extension not in the MIME table

    # 5xx SERVER ERRORS
    INTERNAL_SERVER_ERROR = 500     # Never sent, default for HTTPError

    @property
    def phrase(self) -> str:
        """Reason phrase used in the status line."""
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_success(self) -> bool:
        return 200 <= self < 300

    @property
    def is_client_error(self) -> bool:
        return 400 <= self < 500

    @property
    def error_page(self) -> str:
        """File name of the on-disk page served with this status."""
        return f"{int(self)}.html"


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.UNSUPPORTED_MEDIA_TYPE: "Unsupported Media Type",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
}
