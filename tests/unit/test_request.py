"""
Unit tests for HTTP request parsing.
"""

import pytest

from statichttp.http.errors import MalformedRequest, RequestTooLarge
from statichttp.http.request import (
    HTTPRequest,
    RequestParser,
    parse_request,
)


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_simple_get(self):
        """Test parsing a simple GET request."""
        parser = RequestParser()
        raw = b"GET /index.html HTTP/1.1\r\nHost: localhost\r\n\r\n"
        request = parser.parse(raw, ("127.0.0.1", 12345))

        assert request.method == "GET"
        assert request.target == "/index.html"
        assert request.client_address == ("127.0.0.1", 12345)

    def test_headers_are_ignored(self):
        """Only the request line matters; headers never reach the request."""
        raw = (
            b"GET /a.png HTTP/1.1\r\n"
            b"Host: localhost:8080\r\n"
            b"Content-Length: 999\r\n"
            b"\r\n"
        )
        request = parse_request(raw)

        assert request == HTTPRequest(method="GET", target="/a.png")

    def test_version_token_is_optional(self):
        """Two tokens are enough."""
        request = parse_request(b"GET /\r\n")

        assert request.method == "GET"
        assert request.target == "/"

    def test_bare_line_feed_terminator(self):
        request = parse_request(b"GET /style.css HTTP/1.0\nHost: x\n\n")

        assert request.target == "/style.css"

    def test_request_line_without_terminator(self):
        """A request line cut off by a timeout is still parsed."""
        request = parse_request(b"GET /docs")

        assert request.target == "/docs"

    def test_leading_blank_lines_skipped(self):
        request = parse_request(b"\r\n\r\nGET / HTTP/1.1\r\n\r\n")

        assert request.method == "GET"

    def test_target_is_literal(self):
        """No percent-decoding and no query stripping."""
        request = parse_request(b"GET /a%20b.png?v=2 HTTP/1.1\r\n\r\n")

        assert request.target == "/a%20b.png?v=2"

    @pytest.mark.parametrize("raw, target", [
        (b"GET /a\x1fb.png HTTP/1.1\r\n\r\n", "/a\x1fb.png"),
        (b"GET /a\x1cb.png HTTP/1.1\r\n\r\n", "/a\x1cb.png"),
        ("GET /caf\xa0e.png HTTP/1.1\r\n\r\n".encode("utf-8"), "/caf\xa0e.png"),
        ("GET /x\x85y.png HTTP/1.1\r\n\r\n".encode("utf-8"), "/x\x85y.png"),
    ])
    def test_only_ascii_whitespace_separates_tokens(self, raw: bytes, target: str):
        """Unicode separators and control characters stay in the target."""
        request = parse_request(raw)

        assert request.method == "GET"
        assert request.target == target

    def test_tab_separates_tokens(self):
        request = parse_request(b"GET\t/a.png\tHTTP/1.1\r\n")

        assert request.target == "/a.png"

    def test_any_method_token_is_accepted(self):
        """Method validation is the handler's job, not the parser's."""
        request = parse_request(b"BREW /pot HTTP/1.1\r\n\r\n")

        assert request.method == "BREW"

    def test_long_method_is_truncated(self):
        raw = b"A" * 40 + b" / HTTP/1.1\r\n\r\n"
        request = parse_request(raw)

        assert request.method == "A" * 15

    def test_custom_method_length(self):
        parser = RequestParser(max_method_length=3)
        request = parser.parse(b"DELETE / HTTP/1.1\r\n")

        assert request.method == "DEL"

    def test_parse_invalid_request_line(self):
        """A method with no target on its line is malformed."""
        with pytest.raises(MalformedRequest):
            parse_request(b"GET\r\nHost: test\r\n\r\n")

    @pytest.mark.parametrize("raw", [b"", b"\r\n", b"   \r\n\r\n"])
    def test_parse_empty_request(self, raw: bytes):
        with pytest.raises(MalformedRequest):
            parse_request(raw)

    def test_invalid_utf8(self):
        with pytest.raises(MalformedRequest):
            parse_request(b"GET /\xff\xfe HTTP/1.1\r\n")

    def test_parse_request_too_large(self):
        """Test that oversized requests are rejected."""
        parser = RequestParser(max_request_size=100)
        raw = b"GET / HTTP/1.1\r\n" + b"X-Large: " + b"A" * 200 + b"\r\n\r\n"

        with pytest.raises(RequestTooLarge) as exc_info:
            parser.parse(raw)

        # Answered like any other malformed request
        assert isinstance(exc_info.value, MalformedRequest)
        assert exc_info.value.status == 400


class TestHTTPRequest:
    """Tests for HTTPRequest dataclass."""

    def test_client_ip(self):
        request = HTTPRequest(method="GET", target="/", client_address=("10.0.0.7", 5000))

        assert request.client_ip == "10.0.0.7"

    def test_client_ip_unknown(self):
        assert HTTPRequest(method="GET", target="/").client_ip == "-"
