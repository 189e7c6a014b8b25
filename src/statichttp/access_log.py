"""
=============================================================================
ACCESS LOG
=============================================================================

One line per served connection, written through the "statichttp.access"
logger so it can be routed, filtered or silenced independently of the
server's diagnostic logging:

    logging.getLogger("statichttp.access").setLevel(logging.WARNING)

TEXT FORMAT (default):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ 127.0.0.1 "GET /a.png" 200 5120 0.84ms                              │
    │ ─────────  ──────────  ─── ──── ──────                              │
    │ client     request     status bytes duration                        │
    └─────────────────────────────────────────────────────────────────────┘

JSON FORMAT:
    {"client_ip": "127.0.0.1", "method": "GET", "target": "/a.png",
     "status": 200, "bytes": 5120, "duration_ms": 0.84}

A request that never parsed has no method or target; both are logged as
"<invalid>". "bytes" counts header and body bytes actually written, so a
transfer cut short by the client shows up as a short count.

=============================================================================
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Optional

from .http.request import HTTPRequest


logger = logging.getLogger("statichttp.access")

INVALID = "<invalid>"


@dataclass
class AccessLogEntry:
    """
    Structured log entry for one connection.

    Attributes:
        client_ip: Peer address, "-" if unknown.
        method: Request method, or "<invalid>".
        target: Request target, or "<invalid>".
        status: Status code sent, 0 if nothing was sent.
        bytes_sent: Header plus body bytes written.
        duration_ms: Time from accept to close.
    """

    client_ip: str
    method: str = INVALID
    target: str = INVALID
    status: int = 0
    bytes_sent: int = 0
    duration_ms: float = 0.0

    @classmethod
    def for_request(
        cls,
        client_ip: str,
        request: Optional[HTTPRequest],
    ) -> "AccessLogEntry":
        """Entry with method/target filled from a parsed request, if any."""
        if request is None:
            return cls(client_ip=client_ip)
        return cls(client_ip=client_ip, method=request.method, target=request.target)

    def to_dict(self) -> dict:
        return {
            "client_ip": self.client_ip,
            "method": self.method,
            "target": self.target,
            "status": self.status,
            "bytes": self.bytes_sent,
            "duration_ms": round(self.duration_ms, 2),
        }

    def to_text(self) -> str:
        return (
            f'{self.client_ip} "{self.method} {self.target}" '
            f'{self.status} {self.bytes_sent} {self.duration_ms:.2f}ms'
        )


class AccessLogger:
    """
    Formats and emits access log entries.

    Usage:
        access = AccessLogger(log_format="json")

        timer = access.start()
        ...serve...
        access.log(entry, timer)
    """

    def __init__(self, log_format: str = "text", level: int = logging.INFO):
        """
        Args:
            log_format: "text" or "json".
            level: Level the entries are logged at.
        """
        if log_format not in ("text", "json"):
            raise ValueError(f"Invalid log format: {log_format}")

        self.log_format = log_format
        self.level = level

    @staticmethod
    def start() -> float:
        return time.perf_counter()

    def format(self, entry: AccessLogEntry) -> str:
        if self.log_format == "json":
            return json.dumps(entry.to_dict())
        return entry.to_text()

    def log(self, entry: AccessLogEntry, started: Optional[float] = None):
        """
        Emit one entry. With `started` (from start()), the duration is
        filled in first.
        """
        if started is not None:
            entry.duration_ms = (time.perf_counter() - started) * 1000

        logger.log(self.level, self.format(entry))
