"""
=============================================================================
FILE-TO-SOCKET TRANSFER
=============================================================================

Once the header is on the wire, the body has to follow: every byte of the
opened file, in order, and nothing else. There are two ways to do it.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    TWO TRANSFER STRATEGIES                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   COPY LOOP (portable)                                              │
    │   ────────────────────                                              │
    │      disk ──read()──► Python bytes ──sendall()──► socket            │
    │                                                                      │
    │      Every byte crosses into user space and back.                   │
    │                                                                      │
    │   SENDFILE (zero-copy)                                              │
    │   ────────────────────                                              │
    │      disk ──────────── kernel ────────────► socket                  │
    │                                                                      │
    │      The kernel moves page-cache pages straight to the socket.      │
    │      Python never sees the bytes.                                   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Both produce byte-identical output, so the choice is purely about speed.
socket.sendfile() uses os.sendfile() when the platform has it, which is
what SendfileTransfer relies on; CopyTransfer works everywhere.

Neither strategy retries a partial write. If the client goes away mid
body, the OSError propagates and the connection is closed.

=============================================================================
"""

import os
import socket
import logging
from abc import ABC, abstractmethod
from typing import BinaryIO


logger = logging.getLogger(__name__)


class Transfer(ABC):
    """
    Copies a file body to a connected socket.

    Subclasses implement send(). The caller owns both the socket and the
    file and closes them afterwards, whatever send() did.
    """

    name: str = "abstract"

    @abstractmethod
    def send(self, sock: socket.socket, file: BinaryIO, count: int) -> int:
        """
        Send the first `count` bytes of `file` to `sock`.

        Args:
            sock: Connected client socket.
            file: File opened in binary mode, positioned anywhere.
            count: Number of bytes to send (the advertised Content-Length).

        Returns:
            Bytes actually sent. Less than count only if the file shrank.

        Raises:
            OSError: If the socket fails mid-transfer.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class SendfileTransfer(Transfer):
    """Kernel zero-copy transfer through socket.sendfile()."""

    name = "sendfile"

    def send(self, sock: socket.socket, file: BinaryIO, count: int) -> int:
        if count <= 0:
            return 0
        return sock.sendfile(file, offset=0, count=count)


class CopyTransfer(Transfer):
    """Portable read/sendall loop in fixed-size chunks."""

    name = "copy"

    def __init__(self, chunk_size: int = 4096):
        self.chunk_size = chunk_size

    def send(self, sock: socket.socket, file: BinaryIO, count: int) -> int:
        file.seek(0)
        sent = 0

        while sent < count:
            chunk = file.read(min(self.chunk_size, count - sent))
            if not chunk:
                break  # File shrank after fstat()
            sock.sendall(chunk)
            sent += len(chunk)

        return sent

    def __repr__(self) -> str:
        return f"CopyTransfer(chunk_size={self.chunk_size})"


def sendfile_available() -> bool:
    """True when the platform exposes a zero-copy sendfile primitive."""
    return hasattr(os, "sendfile")


def select_transfer(mode: str = "auto", chunk_size: int = 4096) -> Transfer:
    """
    Pick the transfer strategy for a configured mode.

    Args:
        mode: "auto", "sendfile" or "copy".
        chunk_size: Chunk size for the copy loop.

    Returns:
        A Transfer instance.

    Raises:
        ValueError: For an unknown mode.
    """
    if mode == "copy":
        return CopyTransfer(chunk_size)

    if mode in ("auto", "sendfile"):
        if sendfile_available():
            return SendfileTransfer()
        if mode == "sendfile":
            logger.warning("sendfile is not available on this platform, using copy loop")
        return CopyTransfer(chunk_size)

    raise ValueError(f"Unknown transfer mode: {mode}")
