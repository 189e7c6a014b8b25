"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

Owns the listening socket and nothing else. It accepts connections and
hands each one to a callback; what happens to the connection afterwards
is the HTTP layer's business.

SOCKET LIFECYCLE (Server Side):
────────────────────────────────

    1. socket()    Create a TCP socket
    2. setsockopt  SO_REUSEADDR, so a restart does not hit TIME_WAIT
    3. bind()      Reserve HOST:PORT
    4. listen()    Start queueing connections (backlog = 10)
    5. accept()    Wait for a client, get a NEW socket for it
    6. close()     Release the listening socket on shutdown

Any failure in steps 1-4 is a StartupFailure: the server cannot serve
anything and the process should exit with a failure code.

=============================================================================
SERIAL ACCEPT
=============================================================================

The accept loop calls the connection handler synchronously. If the
handler serves the connection inline, the next accept() is not called
until that connection is closed:

    accept(A) ──► serve A ──► close A ──► accept(B) ──► serve B ──► ...

Connections that arrive meanwhile wait in the kernel backlog. A handler
that queues the connection to a worker pool returns immediately instead,
and the loop goes straight back to accept().

=============================================================================
SIGNAL HANDLING
=============================================================================

SIGINT (Ctrl+C) and SIGTERM stop the accept loop. Python only allows
installing signal handlers from the main thread, so a server started in a
background thread (tests, embedding) skips this and is stopped with
shutdown() instead.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from ..http.errors import AcceptFailure, StartupFailure
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Low-level TCP socket server.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      SocketServer Internals                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    start(handler)                                                    │
    │        ├──► _create_socket()   socket() + setsockopt()              │
    │        ├──► bind() / listen()  (StartupFailure on error)            │
    │        ├──► _setup_signals()   main thread only                      │
    │        └──► _accept_loop()     blocks until shutdown()              │
    │                 └──► accept() → Connection → handler(conn)          │
    │                                                                      │
    │    shutdown()        stop the loop within ~1 second                  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Usage:
        def handle_connection(conn: Connection):
            with conn:
                ...

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown
    """

    # accept() wakes up this often to notice shutdown()
    ACCEPT_POLL_INTERVAL = 1.0

    def __init__(self, config: ServerConfig):
        """
        Args:
            config: Server configuration (host, port, backlog, timeouts).

        The socket is created lazily in start().
        """
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._running = False

        # Set once the socket is listening; cleared again on cleanup
        self._listening = threading.Event()

        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """
        The bound (host, port). With port 0 in the config this is the
        port the OS actually assigned, once listening.
        """
        if self._socket is not None:
            host, port = self._socket.getsockname()[:2]
            return (host, port)
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        """
        Create and configure the listening socket.

        Raises:
            StartupFailure: If the socket cannot be created or configured.
        """
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        except OSError as e:
            raise StartupFailure(f"Failed to create server socket: {e}") from e

        try:
            # Restart without waiting for TIME_WAIT to expire
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        except OSError as e:
            sock.close()
            raise StartupFailure(f"Failed to set socket options: {e}") from e

        # Lets the accept loop check self._running periodically
        sock.settimeout(self.ACCEPT_POLL_INTERVAL)

        return sock

    def _setup_signals(self):
        """Install SIGTERM/SIGINT handlers that trigger shutdown()."""
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not in main thread, skipping signal handlers")
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def listen(self):
        """
        Create, bind and listen, without entering the accept loop.

        Raises:
            StartupFailure: If any step fails. The socket is released.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            self._close_socket()
            raise StartupFailure(
                f"Failed to bind to {self.config.host}:{self.config.port}: {e}"
            ) from e

        try:
            self._socket.listen(self.config.backlog)
        except OSError as e:
            self._close_socket()
            raise StartupFailure(f"Failed to listen on server socket: {e}") from e

        self._running = True
        self._listening.set()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Listen and accept connections until shutdown() is called.

        Args:
            connection_handler: Called with each accepted Connection.

        Raises:
            StartupFailure: If the socket cannot be set up.
        """
        if self._socket is None:
            self.listen()

        self._setup_signals()

        host, port = self.address
        logger.info(f"Server is running on port {port} ({host})")

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept(self) -> Tuple[socket.socket, Tuple[str, int]]:
        """
        accept() one client.

        Raises:
            socket.timeout: Poll interval elapsed with no client.
            AcceptFailure: accept() itself failed.
        """
        try:
            return self._socket.accept()
        except socket.timeout:
            raise
        except OSError as e:
            raise AcceptFailure(str(e)) from e

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """
        Main loop: accept, wrap, hand off.

        An AcceptFailure is logged and the loop goes on to the next
        client. Only shutdown() ends the loop.
        """
        while self._running:
            try:
                client_socket, client_address = self._accept()
            except socket.timeout:
                continue  # Poll interval elapsed, re-check _running
            except AcceptFailure as e:
                if not self._running:
                    break
                logger.error(f"Failed to accept client connection: {e}")
                continue

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
            )

            connection_handler(conn)

    def shutdown(self):
        """
        Stop accepting connections.

        Safe to call from a signal handler, another thread, or twice.
        The loop exits within one poll interval.
        """
        logger.info("Shutting down socket server...")
        self._running = False

    def wait_until_listening(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the socket is listening.

        Returns:
            True if listening, False on timeout.
        """
        return self._listening.wait(timeout)

    def _close_socket(self):
        if self._socket is not None:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

    def _cleanup(self):
        self._restore_signals()
        self._close_socket()
        self._listening.clear()
        logger.info("Socket server stopped")
