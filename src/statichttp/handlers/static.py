"""
=============================================================================
STATIC FILE HANDLER
=============================================================================

Turns one parsed request into one file-backed response. Every outcome,
success or failure, is a file on disk:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    OUTCOME → FILE                                    │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   unparseable request        400 Bad Request        <err>/400.html  │
    │   method other than GET      405 Method Not Allowed <err>/405.html  │
    │   path escapes the root      400 Bad Request        <err>/400.html  │
    │   extension not in table     415 Unsupported ...    <err>/415.html  │
    │   file cannot be opened      404 Not Found          <err>/404.html  │
    │   file opened                200 OK                 <root>/<target> │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
THE STATE MACHINE
=============================================================================

    ReceiveRequest ──► ValidateMethod ──► ResolvePath ──► ResolveContentType
          │                 │                  │                  │
          ▼ 400             ▼ 405              ▼ 400 / 404        ▼ 415
                                                                  │
                                                        Transfer ◄┘ (200)

The checks run in this order and the first one that fails decides the
status. A POST to a .xyz file is a 405, not a 415.

=============================================================================
ERROR PAGE FALLBACK
=============================================================================

Error pages are opened fresh from disk for every response, so editing
them takes effect without a restart. If a page is missing:

    400/405/415 page missing  ──►  serve 404.html with status 404
    404 page missing          ──►  ErrorPageUnavailable, nothing is sent

The 404 page is the last resort; without it the connection is closed
with no response at all.

=============================================================================
"""

import logging
from pathlib import Path
from typing import BinaryIO, Optional, Union

from ..config import ServerConfig
from ..http.errors import (
    ErrorPageUnavailable,
    HTTPError,
    MethodNotAllowed,
    UnsupportedMediaType,
)
from ..http.paths import PathResolver
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)

# Error pages are always HTML, whatever the request asked for
ERROR_CONTENT_TYPE = "text/html"

ALLOWED_METHOD = "GET"


class StaticFileHandler:
    """
    Serves files from a document root, with on-disk error pages.

    Usage:
        handler = StaticFileHandler("./public", "./err")

        response = handler.handle(request)        # parsed request
        response = handler.handle(parse_error)    # MalformedRequest
        with response:
            ...send header, stream response.body...

    The caller owns the returned response and must close() it.
    """

    def __init__(
        self,
        root_dir: Union[str, Path],
        error_dir: Union[str, Path] = "./err",
        index_file: str = "index.html",
    ):
        """
        Args:
            root_dir: Directory requests are served from. Nothing outside
                      it is ever opened.
            error_dir: Directory holding 400.html, 404.html, 405.html and
                       415.html.
            index_file: File served for extensionless targets.
        """
        self.resolver = PathResolver(root_dir, index_file=index_file)
        self.error_dir = Path(error_dir)

    @classmethod
    def from_config(cls, config: ServerConfig) -> "StaticFileHandler":
        return cls(
            root_dir=config.root_dir,
            error_dir=config.error_dir,
            index_file=config.index_file,
        )

    @property
    def root_dir(self) -> Path:
        return self.resolver.root_dir

    def handle(self, request: Union[HTTPRequest, HTTPError]) -> HTTPResponse:
        """
        Produce the response for a request, or for a request that failed
        to parse.

        Args:
            request: The parsed request, or the HTTPError raised while
                     receiving/parsing it.

        Returns:
            A response with an open body file.

        Raises:
            ErrorPageUnavailable: If even the 404 page cannot be opened.
        """
        if isinstance(request, HTTPError):
            logger.debug(f"Request rejected before handling: {request}")
            return self.error_response(request.status)

        try:
            return self._serve(request)
        except HTTPError as e:
            logger.debug(f"{request.method} {request.target} -> {int(e.status)}: {e}")
            return self.error_response(e.status)

    def _serve(self, request: HTTPRequest) -> HTTPResponse:
        # ─────────────────────────────────────────────────────────────────
        # VALIDATE METHOD
        # ─────────────────────────────────────────────────────────────────
        if request.method != ALLOWED_METHOD:
            raise MethodNotAllowed(f"Method {request.method!r} not allowed")

        # ─────────────────────────────────────────────────────────────────
        # RESOLVE PATH (PathTraversal / ResourceNotFound propagate)
        # ─────────────────────────────────────────────────────────────────
        target = self.resolver.resolve(request.target)

        # ─────────────────────────────────────────────────────────────────
        # RESOLVE CONTENT TYPE
        # ─────────────────────────────────────────────────────────────────
        if target.content_type is None:
            raise UnsupportedMediaType(f"No content type for {target.extension!r}")

        # ─────────────────────────────────────────────────────────────────
        # OPEN THE FILE
        # ─────────────────────────────────────────────────────────────────
        # Directories, missing files and permission errors all land here
        try:
            handle = open(target.filesystem_path, "rb")
        except OSError as e:
            logger.debug(f"Cannot open {target.filesystem_path}: {e}")
            return self.error_response(HTTPStatus.NOT_FOUND)

        return (ResponseBuilder()
            .status(HTTPStatus.OK)
            .content_type(target.content_type)
            .file(handle)
            .build())

    def error_page_path(self, status: HTTPStatus) -> Path:
        return self.error_dir / status.error_page

    def error_response(self, status: HTTPStatus) -> HTTPResponse:
        """
        Response carrying the error page for a status.

        Raises:
            ErrorPageUnavailable: If the 404 page is needed and missing.
        """
        handle = self._open_page(status)
        if handle is None:
            if status == HTTPStatus.NOT_FOUND:
                raise ErrorPageUnavailable(
                    f"Cannot open {self.error_page_path(HTTPStatus.NOT_FOUND)}"
                )

            logger.warning(
                f"Error page {self.error_page_path(status)} unavailable, "
                f"falling back to 404"
            )
            return self.error_response(HTTPStatus.NOT_FOUND)

        return (ResponseBuilder()
            .status(status)
            .content_type(ERROR_CONTENT_TYPE)
            .file(handle)
            .build())

    def _open_page(self, status: HTTPStatus) -> Optional[BinaryIO]:
        try:
            return open(self.error_page_path(status), "rb")
        except OSError:
            return None
