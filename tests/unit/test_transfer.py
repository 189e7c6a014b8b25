"""
Unit tests for file-to-socket transfer strategies.
"""

import os
import socket
import threading

import pytest

from statichttp.core.transfer import (
    CopyTransfer,
    SendfileTransfer,
    Transfer,
    select_transfer,
    sendfile_available,
)


PAYLOAD = bytes(range(256)) * 64 + b"tail"


def receive_all(sock: socket.socket) -> bytes:
    chunks = []
    while True:
        chunk = sock.recv(65536)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


def run_transfer(transfer: Transfer, path, count: int):
    """Send through a socketpair and return (bytes sent, bytes received)."""
    server_side, client_side = socket.socketpair()
    received = []

    # Read concurrently so large payloads cannot fill the socket buffer
    reader = threading.Thread(target=lambda: received.append(receive_all(client_side)))
    reader.start()

    try:
        with open(path, "rb") as f:
            sent = transfer.send(server_side, f, count)
    finally:
        server_side.shutdown(socket.SHUT_WR)
        reader.join(timeout=5)
        server_side.close()
        client_side.close()

    return sent, received[0]


@pytest.fixture
def payload_file(tmp_path):
    path = tmp_path / "payload.png"
    path.write_bytes(PAYLOAD)
    return path


STRATEGIES = [
    pytest.param(lambda: CopyTransfer(4096), id="copy"),
    pytest.param(lambda: CopyTransfer(7), id="copy-small-chunks"),
    pytest.param(
        SendfileTransfer,
        id="sendfile",
        marks=pytest.mark.skipif(not sendfile_available(), reason="no os.sendfile"),
    ),
]


class TestTransfers:

    @pytest.mark.parametrize("make_transfer", STRATEGIES)
    def test_whole_file_byte_exact(self, make_transfer, payload_file):
        sent, received = run_transfer(make_transfer(), payload_file, len(PAYLOAD))

        assert sent == len(PAYLOAD)
        assert received == PAYLOAD

    @pytest.mark.parametrize("make_transfer", STRATEGIES)
    def test_count_limits_body(self, make_transfer, payload_file):
        sent, received = run_transfer(make_transfer(), payload_file, 100)

        assert sent == 100
        assert received == PAYLOAD[:100]

    @pytest.mark.parametrize("make_transfer", STRATEGIES)
    def test_empty_file(self, make_transfer, tmp_path):
        path = tmp_path / "empty.html"
        path.write_bytes(b"")

        sent, received = run_transfer(make_transfer(), path, 0)

        assert sent == 0
        assert received == b""

    def test_copy_stops_when_file_shrinks(self, payload_file):
        """A count larger than the file sends what is there."""
        sent, received = run_transfer(CopyTransfer(), payload_file, len(PAYLOAD) + 50)

        assert sent == len(PAYLOAD)
        assert received == PAYLOAD

    def test_send_to_closed_peer_raises(self, payload_file):
        server_side, client_side = socket.socketpair()
        client_side.close()

        try:
            with open(payload_file, "rb") as f:
                with pytest.raises(OSError):
                    CopyTransfer(16).send(server_side, f, len(PAYLOAD))
        finally:
            server_side.close()


class TestSelectTransfer:

    def test_copy(self):
        transfer = select_transfer("copy", chunk_size=1024)

        assert isinstance(transfer, CopyTransfer)
        assert transfer.chunk_size == 1024

    def test_auto_prefers_sendfile(self):
        transfer = select_transfer("auto")

        if sendfile_available():
            assert isinstance(transfer, SendfileTransfer)
        else:
            assert isinstance(transfer, CopyTransfer)

    def test_sendfile_falls_back_without_os_support(self, monkeypatch):
        monkeypatch.delattr(os, "sendfile", raising=False)

        assert isinstance(select_transfer("sendfile"), CopyTransfer)
        assert isinstance(select_transfer("auto"), CopyTransfer)

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            select_transfer("mmap")

    def test_names(self):
        assert CopyTransfer().name == "copy"
        assert SendfileTransfer().name == "sendfile"
