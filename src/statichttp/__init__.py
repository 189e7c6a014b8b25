"""
=============================================================================
STATICHTTP - A Minimal Static File Server Over Raw Sockets
=============================================================================

Serves files from a document root over HTTP/1.1, one request per TCP
connection, with error pages read from disk.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    WHAT IT DOES                                      │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   GET /a.png        ──►  200 image/png   <root>/a.png               │
    │   GET /             ──►  200 text/html   <root>/index.html          │
    │   GET /missing.css  ──►  404 text/html   <err>/404.html             │
    │   GET /data.xyz     ──►  415 text/html   <err>/415.html             │
    │   POST /            ──►  405 text/html   <err>/405.html             │
    │   garbage           ──►  400 text/html   <err>/400.html             │
    │                                                                      │
    │   Every response: Content-Length, Connection: close, then close.    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    statichttp/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m statichttp)
    ├── server.py            # StaticServer orchestrator
    ├── config.py            # ServerConfig dataclass
    ├── access_log.py        # One line per connection
    ├── core/                # Sockets and threads
    │   ├── socket_server.py # Listening socket, accept loop
    │   ├── connection.py    # One client, one request
    │   ├── thread_pool.py   # Optional bounded worker pool
    │   └── transfer.py      # sendfile / copy loop
    ├── http/                # Protocol pieces, no sockets
    │   ├── request.py       # Request line parsing
    │   ├── response.py      # Header rendering
    │   ├── paths.py         # Target → sandboxed file path
    │   ├── mime_types.py    # Extension → Content-Type
    │   ├── status_codes.py  # Status enum
    │   └── errors.py        # Error taxonomy
    └── handlers/
        └── static.py        # Request → response state machine

=============================================================================
QUICK START
=============================================================================

    from statichttp import StaticServer, ServerConfig

    server = StaticServer(ServerConfig(port=8080, root_dir="./public"))
    server.run()

=============================================================================
"""

__version__ = "1.0.0"

from .server import StaticServer
from .config import ServerConfig

__all__ = ["StaticServer", "ServerConfig", "__version__"]
