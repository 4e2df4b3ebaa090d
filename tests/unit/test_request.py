"""
Unit tests for HTTP request parsing.
"""

import pytest

from userapi.http.request import (
    HTTPRequest,
    RequestParser,
    HTTPParseError,
    parse_request,
)


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_simple_get(self, sample_get_request: bytes):
        """Test parsing a simple GET request."""
        parser = RequestParser()
        request = parser.parse(sample_get_request, ("127.0.0.1", 12345))

        assert request.method == "GET"
        assert request.path == "/api/users"
        assert request.version == "HTTP/1.1"
        assert request.client_address == ("127.0.0.1", 12345)
        assert request.client_ip == "127.0.0.1"

    def test_parse_headers(self, sample_get_request: bytes):
        """Test that headers are parsed correctly."""
        request = parse_request(sample_get_request)

        assert request.headers["host"] == "localhost:3000"
        assert request.get_header("User-Agent") == "pytest"
        assert request.is_keep_alive is True

    def test_parse_query_params(self, sample_get_request: bytes):
        """Test query parameter parsing."""
        request = parse_request(sample_get_request)

        assert request.get_query("page") == "1"
        assert request.get_query("limit") == "10"
        assert request.get_query("missing") is None
        assert request.get_query("missing", "default") == "default"
        assert request.query_string == "page=1&limit=10"
        assert request.url == "/api/users?page=1&limit=10"

    def test_parse_post_with_body(self, sample_post_request: bytes):
        """The parser frames the body but does not decode it."""
        request = parse_request(sample_post_request)

        assert request.method == "POST"
        assert request.content_type == "application/json"
        assert request.body == b'{"name": "Ann", "age": 30}'
        assert request.headers["content-length"] == "26"
        assert request.body_data == {}
        assert request.is_keep_alive is False

    def test_parse_encoded_path(self):
        raw = b"GET /api/users/hello%20world?q=a%20b HTTP/1.1\r\nHost: test\r\n\r\n"
        request = parse_request(raw)

        assert request.path == "/api/users/hello world"
        assert request.get_query("q") == "a b"

    def test_parse_invalid_method(self):
        """Test that invalid methods are rejected."""
        raw = b"BREW /path HTTP/1.1\r\nHost: test\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 405

    def test_parse_invalid_request_line(self):
        """Test handling of malformed request line."""
        raw = b"GET\r\nHost: test\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 400

    def test_parse_unsupported_version(self):
        raw = b"GET / HTTP/2.0\r\nHost: test\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 505

    def test_parse_missing_headers(self):
        """Test parsing request with no headers."""
        request = parse_request(b"GET / HTTP/1.1\r\n\r\n")

        assert request.method == "GET"
        assert request.path == "/"
        assert request.headers == {}

    def test_parse_without_terminator(self):
        with pytest.raises(HTTPParseError):
            parse_request(b"GET / HTTP/1.1\r\nHost: test\r\n")

    def test_parse_request_too_large(self):
        """Test that oversized requests are rejected."""
        parser = RequestParser(max_request_size=100)
        raw = b"GET / HTTP/1.1\r\n" + b"X-Large: " + b"A" * 200 + b"\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parser.parse(raw)

        assert exc_info.value.status_code == 413

    def test_http_version_parsing(self):
        """Test HTTP/1.0 and HTTP/1.1 keep-alive defaults."""
        request_10 = parse_request(b"GET / HTTP/1.0\r\nHost: test\r\n\r\n")
        assert request_10.version == "HTTP/1.0"
        assert request_10.is_keep_alive is False

        request_11 = parse_request(b"GET / HTTP/1.1\r\nHost: test\r\n\r\n")
        assert request_11.version == "HTTP/1.1"
        assert request_11.is_keep_alive is True

    def test_content_length_slices_body(self):
        raw = (
            b"POST / HTTP/1.1\r\n"
            b"Content-Length: 4\r\n"
            b"\r\n"
            b"testEXTRA"
        )
        assert parse_request(raw).body == b"test"

    @pytest.mark.parametrize("value", [b"abc", b"-1"])
    def test_invalid_content_length(self, value):
        raw = b"POST / HTTP/1.1\r\nContent-Length: " + value + b"\r\n\r\n"

        with pytest.raises(HTTPParseError):
            parse_request(raw)

    def test_short_body(self):
        raw = b"POST / HTTP/1.1\r\nContent-Length: 10\r\n\r\nabc"

        with pytest.raises(HTTPParseError):
            parse_request(raw)

    def test_case_insensitive_headers(self):
        """Test that header names are case-insensitive."""
        raw = b"GET / HTTP/1.1\r\nCONTENT-TYPE: text/html\r\n\r\n"
        request = parse_request(raw)

        assert request.content_type == "text/html"
        assert request.get_header("Content-Type") == "text/html"
        assert request.get_header("content-type") == "text/html"

    def test_repeated_headers_are_joined(self):
        raw = b"GET / HTTP/1.1\r\nAccept: a\r\nAccept: b\r\n\r\n"
        assert parse_request(raw).get_header("accept") == "a, b"


class TestHTTPRequest:
    """Tests for HTTPRequest dataclass."""

    def test_get_header_default(self):
        """Test get_header with default value."""
        request = HTTPRequest(method="GET", path="/")

        assert request.get_header("X-Missing") == ""
        assert request.get_header("X-Missing", "default") == "default"

    def test_content_type_and_charset(self):
        request = HTTPRequest(
            method="POST",
            path="/",
            headers={"content-type": 'Application/JSON; charset="ISO-8859-1"'},
        )

        assert request.content_type == "application/json"
        assert request.charset == "iso-8859-1"

    def test_defaults(self):
        request = HTTPRequest(method="GET", path="/")

        assert request.content_type is None
        assert request.charset == "utf-8"
        assert request.url == "/"
        assert request.body_data == {}
        assert request.path_params == {}
