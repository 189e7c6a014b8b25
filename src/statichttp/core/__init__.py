"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking plumbing underneath the HTTP layer:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         SOCKET SERVER                                │
    │  • Creates the listening socket, binds HOST:PORT, listens           │
    │  • Runs the accept() loop                                           │
    │  • Stops on SIGINT/SIGTERM or shutdown()                            │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ one Connection per client
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │  CONNECTION                      THREAD POOL (workers > 1 only)     │
    │  • Reads the request line        • Bounded queue of connections    │
    │  • Sends header and body         • Fixed set of worker threads     │
    │  • Graceful close                                                   │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                            TRANSFER                                  │
    │  • Streams the opened file to the socket                            │
    │  • sendfile (zero-copy) or a portable copy loop                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState
from .thread_pool import ThreadPool
from .transfer import (
    Transfer,
    SendfileTransfer,
    CopyTransfer,
    select_transfer,
    sendfile_available,
)

__all__ = [
    "SocketServer",       # Listening socket and accept loop
    "Connection",         # One client socket, one request
    "ConnectionState",    # Lifecycle states for logging
    "ThreadPool",         # Optional worker pool
    "Transfer",           # File-to-socket strategy interface
    "SendfileTransfer",
    "CopyTransfer",
    "select_transfer",
    "sendfile_available",
]
