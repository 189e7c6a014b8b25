"""
=============================================================================
STATIC FILE SERVER
=============================================================================

Ties the pieces together: one listening socket, one handler, and either
inline (serial) or pooled connection processing.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    STATIC SERVER ARCHITECTURE                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │                        ┌─────────────────┐                          │
    │                        │  StaticServer   │                          │
    │                        │ (Orchestrator)  │                          │
    │                        └────────┬────────┘                          │
    │                                 │                                    │
    │         ┌───────────────┬───────┴────────┬────────────────┐         │
    │         ▼               ▼                ▼                ▼         │
    │  ┌─────────────┐ ┌─────────────┐ ┌──────────────┐ ┌─────────────┐   │
    │  │SocketServer │ │RequestParser│ │StaticFile-   │ │  Transfer   │   │
    │  │ (accept)    │ │ (bytes→req) │ │Handler       │ │ (file→sock) │   │
    │  └─────────────┘ └─────────────┘ └──────────────┘ └─────────────┘   │
    │                                                                      │
    │         ThreadPool only when workers > 1                             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
CONNECTION LIFECYCLE
=============================================================================

    1. ACCEPT          SocketServer hands over a Connection
    2. RECEIVE         read until the request line is complete
    3. PARSE           bytes → HTTPRequest, or a MalformedRequest
    4. HANDLE          request (or error) → HTTPResponse with open file
    5. SEND HEADER     status line + Content-Type/Length + Connection: close
    6. TRANSFER        stream exactly Content-Length bytes of the file
    7. CLOSE           file handle, then socket (graceful)
    8. ACCESS LOG      one line per connection

With workers=1 all of this happens on the accept thread, so the next
client is not accepted until step 7 is done. Responses therefore leave
the server in accept order.

=============================================================================
FAILURE HANDLING
=============================================================================

Nothing that goes wrong inside one connection stops the server:

    ErrorPageUnavailable    → logged, connection closed, nothing sent
    ResponseHeaderTooLarge  → logged, connection closed, nothing sent
    send/transfer OSError   → logged, connection closed, no retry
    anything else           → logged with traceback, connection closed

Only a StartupFailure (bind/listen) escapes run().

=============================================================================
"""

import logging
from typing import Optional, Tuple

from .access_log import AccessLogEntry, AccessLogger
from .config import ServerConfig
from .core import Connection, SocketServer, ThreadPool, select_transfer
from .handlers import StaticFileHandler
from .http import (
    ErrorPageUnavailable,
    HTTPRequest,
    MalformedRequest,
    RequestParser,
    ResponseHeaderTooLarge,
)


logger = logging.getLogger(__name__)


class StaticServer:
    """
    Static file server over raw TCP sockets.

    =========================================================================
    USAGE
    =========================================================================

        config = ServerConfig(port=8080, root_dir="./public", error_dir="./err")
        server = StaticServer(config)
        server.run()  # Blocks until SIGINT/SIGTERM or shutdown()

    Embedded (e.g. in tests):

        server = StaticServer(ServerConfig(port=0))
        thread = threading.Thread(target=server.run, daemon=True)
        thread.start()
        server.wait_until_listening(timeout=5)
        host, port = server.server_address
        ...
        server.shutdown()
        thread.join()

    =========================================================================
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Args:
            config: Server configuration. Defaults to ServerConfig().

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()  # Fail fast, before any socket exists

        self._socket_server = SocketServer(self.config)

        self._thread_pool: Optional[ThreadPool] = None
        if self.config.workers > 1:
            self._thread_pool = ThreadPool(
                workers=self.config.workers,
                queue_size=self.config.queue_size,
            )

        self._parser = RequestParser(
            max_request_size=self.config.buffer_size,
            max_method_length=self.config.max_method_length,
        )
        self._handler = StaticFileHandler.from_config(self.config)
        self._transfer = select_transfer(self.config.transfer, self.config.buffer_size)
        self._access_log = AccessLogger(log_format=self.config.log_format)

    @property
    def server_address(self) -> Tuple[str, int]:
        """Bound (host, port); the real port once listening on port 0."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._socket_server.is_running

    def run(self, configure_logging: bool = True):
        """
        Start the server (blocking).

        Args:
            configure_logging: Set up root logging from the config. Pass
                               False when the host application already
                               configures logging.

        Raises:
            StartupFailure: If the listening socket cannot be set up.
        """
        if configure_logging:
            self._setup_logging()

        logger.info(
            f"Serving {self._handler.root_dir} "
            f"(errors: {self._handler.error_dir}, transfer: {self._transfer.name}, "
            f"workers: {self.config.workers})"
        )

        if self._thread_pool is not None:
            self._thread_pool.start()

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._stop_pool()

    def shutdown(self):
        """Stop accepting connections. run() returns within about a second."""
        self._socket_server.shutdown()

    def wait_until_listening(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening. False on timeout."""
        return self._socket_server.wait_until_listening(timeout)

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("statichttp").setLevel(level)

    def _stop_pool(self):
        if self._thread_pool is not None:
            # Let queued connections finish; each is bounded by the timeout
            self._thread_pool.shutdown(wait=True, timeout=self.config.timeout)
        logger.info("Server stopped")

    # =========================================================================
    # CONNECTION PROCESSING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """
        Called by SocketServer for each accepted connection.

        workers=1: serve inline, so accept() waits until this one is done.
        workers>1: queue for the pool; a full queue drops the connection.
        """
        if self._thread_pool is None:
            self._process_connection(conn)
            return

        if not self._thread_pool.submit(self._process_connection, args=(conn,)):
            logger.warning(
                f"[{conn.id}] Worker queue full, dropping connection "
                f"from {conn.client_ip}"
            )
            conn.close()

    def _process_connection(self, conn: Connection):
        """
        Serve exactly one request on a connection, then close it.

        Every exception stops at this boundary. The access log line is
        written after the socket is closed, whatever happened.
        """
        started = self._access_log.start()
        subject = None
        status = 0

        try:
            with conn:
                subject = self._receive(conn)
                status = self._respond(conn, subject)
        except Exception as e:
            logger.exception(f"[{conn.id}] Unexpected error: {e}")
        finally:
            entry = AccessLogEntry.for_request(
                conn.client_ip,
                subject if isinstance(subject, HTTPRequest) else None,
            )
            entry.status = status
            entry.bytes_sent = conn.bytes_sent
            self._access_log.log(entry, started)

    def _receive(self, conn: Connection):
        """
        Read and parse the request.

        Returns:
            The HTTPRequest, or the MalformedRequest describing why there
            is none. Both are valid input for the handler.
        """
        try:
            raw = conn.read_request()
            return self._parser.parse(raw, conn.address)
        except MalformedRequest as e:
            # RequestTooLarge is a MalformedRequest too
            logger.debug(f"[{conn.id}] Bad request from {conn.client_ip}: {e}")
            return e

    def _respond(self, conn: Connection, request) -> int:
        """
        Build and send the response.

        Returns:
            The status code sent, or 0 if nothing was sent.
        """
        try:
            response = self._handler.handle(request)
        except ErrorPageUnavailable as e:
            logger.error(f"[{conn.id}] {e}, closing without a response")
            return 0

        with response:
            try:
                header = response.header_bytes(self.config.buffer_size)
            except ResponseHeaderTooLarge as e:
                logger.error(f"[{conn.id}] {e}, closing without a response")
                return 0

            if not conn.send_response(header):
                return int(response.status)

            if response.body is not None:
                conn.send_body(self._transfer, response.body, response.content_length)

            return int(response.status)
