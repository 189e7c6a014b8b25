"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the static file server.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── statichttp --port 3000                                     │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── HTTP_PORT=3000 statichttp                                  │
    │                                                                      │
    │   3. Default values (in this dataclass)                             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The defaults reproduce the classic layout the server was written for:

    ./public/        document root, served read-only
    ./err/400.html   error pages, read from disk per request
    ./err/404.html
    ./err/405.html
    ./err/415.html

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


TRANSFER_MODES = ("auto", "sendfile", "copy")
LOG_FORMATS = ("text", "json")


@dataclass
class ServerConfig:
    """
    Configuration for the static file server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, timeout

    FILES
    - root_dir, error_dir, index_file

    CONCURRENCY
    - workers, queue_size

    TRANSFER
    - transfer

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """Address to bind to. "0.0.0.0" listens on all interfaces."""

    port: int = 8080
    """TCP port. 0 lets the OS pick a free port (handy in tests)."""

    backlog: int = 10
    """Pending connections the kernel queues before refusing new ones."""

    buffer_size: int = 4096
    """
    Receive limit for one request, in bytes. Also the limit for the
    rendered response header and the chunk size of the copy transfer.
    """

    max_method_length: int = 15
    """Method tokens longer than this are truncated."""

    timeout: Optional[float] = 30.0
    """
    Receive timeout per connection, in seconds.
    None = block forever; one silent client then stalls a serial server.
    """

    # ─────────────────────────────────────────────────────────────────────
    # FILES
    # ─────────────────────────────────────────────────────────────────────

    root_dir: str = "./public"
    """Sandbox root. Nothing outside it is ever served."""

    error_dir: str = "./err"
    """Directory holding 400.html, 404.html, 405.html and 415.html."""

    index_file: str = "index.html"
    """Served for extensionless targets ("/", "/docs")."""

    # ─────────────────────────────────────────────────────────────────────
    # CONCURRENCY
    # ─────────────────────────────────────────────────────────────────────

    workers: int = 1
    """
    1 = strictly serial: accept, serve, close, then accept again.
    >1 = a bounded pool of worker threads serves connections.
    """

    queue_size: int = 10
    """Accepted connections allowed to wait for a worker (workers > 1)."""

    # ─────────────────────────────────────────────────────────────────────
    # TRANSFER
    # ─────────────────────────────────────────────────────────────────────

    transfer: str = "auto"
    """
    How file bodies reach the socket:
    - "sendfile": kernel zero-copy
    - "copy": read/write loop in user space
    - "auto": sendfile where the platform has it, copy otherwise
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR)."""

    log_format: str = "text"
    """Access log format: "text" or "json"."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTP_HOST        Bind address (default: 0.0.0.0)
        HTTP_PORT        Port (default: 8080)
        HTTP_BACKLOG     Listen backlog (default: 10)
        HTTP_TIMEOUT     Receive timeout in seconds, "none" to disable
        HTTP_ROOT        Document root (default: ./public)
        HTTP_ERROR_DIR   Error page directory (default: ./err)
        HTTP_WORKERS     Worker threads (default: 1, serial)
        HTTP_TRANSFER    auto | sendfile | copy
        HTTP_LOG_LEVEL   Logging level (default: INFO)
        HTTP_LOG_FORMAT  text | json

        =====================================================================
        """
        timeout = os.getenv("HTTP_TIMEOUT", "30")
        return cls(
            host=os.getenv("HTTP_HOST", "0.0.0.0"),
            port=int(os.getenv("HTTP_PORT", "8080")),
            backlog=int(os.getenv("HTTP_BACKLOG", "10")),
            timeout=None if timeout.lower() == "none" else float(timeout),
            root_dir=os.getenv("HTTP_ROOT", "./public"),
            error_dir=os.getenv("HTTP_ERROR_DIR", "./err"),
            workers=int(os.getenv("HTTP_WORKERS", "1")),
            transfer=os.getenv("HTTP_TRANSFER", "auto"),
            log_level=os.getenv("HTTP_LOG_LEVEL", "INFO"),
            log_format=os.getenv("HTTP_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Fail fast at startup rather than on the first request.

        Raises:
            ValueError: On the first invalid value found.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 256:
            raise ValueError("buffer_size must be >= 256")

        if self.max_method_length < 1:
            raise ValueError("max_method_length must be >= 1")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0 (or None to disable)")

        if self.workers < 1:
            raise ValueError("workers must be >= 1")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if self.transfer not in TRANSFER_MODES:
            raise ValueError(
                f"Invalid transfer mode: {self.transfer}. "
                f"Must be one of {', '.join(TRANSFER_MODES)}."
            )

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"Invalid log format: {self.log_format}")
