"""
=============================================================================
ERROR TAXONOMY
=============================================================================

Every failure the server can hit, grouped by where it is handled:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    WHO HANDLES WHAT                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   PROCESS LEVEL (fatal)                                             │
    │   StartupFailure          socket/setsockopt/bind/listen failed      │
    │                                                                      │
    │   ACCEPT LOOP (logged, loop continues)                              │
    │   AcceptFailure           accept() raised                           │
    │                                                                      │
    │   CONNECTION BOUNDARY (answered with an error page)                 │
    │   MalformedRequest        400  missing method or target             │
    │   RequestTooLarge         400  request line exceeds the buffer      │
    │   PathTraversal           400  target escapes the sandbox root      │
    │   ResourceNotFound        404  file cannot be opened                │
    │   MethodNotAllowed        405  anything but GET                     │
    │   UnsupportedMediaType    415  extension not in the MIME table      │
    │                                                                      │
    │   CONNECTION BOUNDARY (connection closed, nothing sent)             │
    │   ErrorPageUnavailable    the 404 fallback page cannot be opened    │
    │   ResponseHeaderTooLarge  header block exceeds the buffer limit     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Request errors carry the HTTP status they map to, so the handler never
needs a lookup table from exception type to status code.

=============================================================================
"""

from .status_codes import HTTPStatus


class ServerError(Exception):
    """Base class for everything raised by statichttp."""


class StartupFailure(ServerError):
    """
    The listening socket could not be created, configured, bound or put
    into listening mode. The process cannot serve anything.
    """


class AcceptFailure(ServerError):
    """accept() failed for one incoming connection."""


class HTTPError(ServerError):
    """
    A request-level error that is answered with an HTTP status.

    Custom exceptions with metadata (the status) keep the handler flat:

        try:
            ...
        except HTTPError as e:
            return self._error_response(e.status)
    """

    status: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str = ""):
        super().__init__(message or self.status.phrase)


class MalformedRequest(HTTPError):
    """Empty, undecodable, or missing the method/target tokens."""

    status = HTTPStatus.BAD_REQUEST


class RequestTooLarge(MalformedRequest):
    """The request line did not fit in the receive buffer."""


class PathTraversal(MalformedRequest):
    """The target resolves to a path outside the sandbox root."""


class MethodNotAllowed(HTTPError):
    status = HTTPStatus.METHOD_NOT_ALLOWED


class UnsupportedMediaType(HTTPError):
    status = HTTPStatus.UNSUPPORTED_MEDIA_TYPE


class ResourceNotFound(HTTPError):
    status = HTTPStatus.NOT_FOUND


class ErrorPageUnavailable(ServerError):
    """The 404 page, the last fallback, could not be opened."""


class ResponseHeaderTooLarge(ServerError):
    """The rendered header block exceeded the buffer limit."""
