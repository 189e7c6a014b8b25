"""
=============================================================================
STATICHTTP CLI ENTRY POINT
=============================================================================

    # Serve ./public with error pages from ./err on port 8080
    python -m statichttp

    # Custom port and document root
    python -m statichttp --port 3000 --root ./site

    # Four worker threads instead of strict serial processing
    python -m statichttp --workers 4

    # JSON access log, portable copy transfer
    python -m statichttp --log-format json --transfer copy

Every option falls back to its HTTP_* environment variable, then to the
built-in default (see ServerConfig.from_env).

EXIT CODES:
    0   stopped by SIGINT/SIGTERM
    1   invalid configuration, or the socket could not be set up

=============================================================================
"""

import argparse
import logging
import sys
from typing import Optional, Sequence

from . import __version__
from .config import LOG_FORMATS, TRANSFER_MODES, ServerConfig
from .http.errors import StartupFailure
from .server import StaticServer


logger = logging.getLogger("statichttp")


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="statichttp",
        description="Serve static files over HTTP/1.1, one request per connection",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m statichttp                          # ./public on port 8080
  python -m statichttp --port 3000              # Custom port
  python -m statichttp --root ./site -e ./pages # Custom directories
  python -m statichttp --workers 4              # Thread pool
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host})"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on, 0 for any free port (default: {defaults.port})"
    )

    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=defaults.timeout if defaults.timeout is not None else 0,
        help="Receive timeout in seconds, 0 to wait forever (default: %(default)s)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # FILE ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--root", "-r",
        default=defaults.root_dir,
        help=f"Document root (default: {defaults.root_dir})"
    )

    parser.add_argument(
        "--error-dir", "-e",
        default=defaults.error_dir,
        help=f"Directory with 400/404/405/415.html (default: {defaults.error_dir})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # PERFORMANCE ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=defaults.workers,
        help=f"Worker threads, 1 = serial (default: {defaults.workers})"
    )

    parser.add_argument(
        "--transfer",
        choices=TRANSFER_MODES,
        default=defaults.transfer,
        help=f"File transfer strategy (default: {defaults.transfer})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        default=defaults.log_level.upper(),
        help=f"Logging level (default: {defaults.log_level})"
    )

    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=defaults.log_format,
        help=f"Access log format (default: {defaults.log_format})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # META ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"statichttp {__version__}"
    )

    return parser


def config_from_args(args: argparse.Namespace, defaults: ServerConfig) -> ServerConfig:
    """Overlay parsed arguments on the environment-derived defaults."""
    return ServerConfig(
        host=args.host,
        port=args.port,
        backlog=defaults.backlog,
        timeout=args.timeout or None,  # 0 disables the timeout
        root_dir=args.root,
        error_dir=args.error_dir,
        workers=args.workers,
        transfer=args.transfer,
        log_level=args.log_level,
        log_format=args.log_format,
    )


def main(argv: Optional[Sequence[str]] = None):
    """
    Main CLI entry point.

    Exits with status 1 on invalid configuration or StartupFailure.
    """
    try:
        defaults = ServerConfig.from_env()
    except ValueError as e:
        print(f"Error: invalid environment configuration: {e}", file=sys.stderr)
        sys.exit(1)

    args = build_parser(defaults).parse_args(argv)

    try:
        server = StaticServer(config_from_args(args, defaults))
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        server.run()
    except StartupFailure as e:
        # run() has configured logging by now; the root handler writes to stderr
        logger.error(f"Startup failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
