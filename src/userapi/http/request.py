"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the raw bytes of one HTTP/1.1 request into an HTTPRequest.

    GET /api/users/7?verbose=1 HTTP/1.1\\r\\n      ← request line
    Host: localhost:3000\\r\\n                      ← headers
    Authorization: Bearer abc\\r\\n
    \\r\\n                                          ← blank line
    [body, Content-Length bytes]

Only the framing is handled here. Interpreting the body (JSON, form
encoding) is the job of the body parser middleware, which stores its
result on ``request.body_data``.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any
from urllib.parse import parse_qs, urlparse, unquote
import re


class HTTPParseError(Exception):
    """
    Raised when the request framing is invalid.

    Carries the status the connection loop should answer with before the
    middleware pipeline ever sees the request:

        400 Bad Request                 malformed line or header block
        405 Method Not Allowed          unknown method token
        413 Payload Too Large           request exceeds max_request_size
        505 HTTP Version Not Supported  anything but HTTP/1.0 or HTTP/1.1
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    Attributes:
        method:         Upper-case method token (GET, POST, ...).
        path:           URL-decoded path without the query string.
        version:        "HTTP/1.1" or "HTTP/1.0".
        headers:        Header map with lower-case names.
        query_params:   Parsed query string, name → list of values.
        query_string:   The raw query string, kept for request logging.
        body:           Raw body bytes.
        body_data:      Body decoded by the body parser middleware
                        (``{}`` until a parser runs or when none matches).
        path_params:    Values captured by the router (``:id`` → "7").
        client_address: (ip, port) of the peer; the rate limiter keys on ip.
    """

    method: str
    path: str
    version: str = "HTTP/1.1"

    headers: Dict[str, str] = field(default_factory=dict)
    query_params: Dict[str, list[str]] = field(default_factory=dict)
    query_string: str = ""
    body: bytes = b""
    body_data: Any = field(default_factory=dict)

    path_params: Dict[str, str] = field(default_factory=dict)

    client_address: tuple[str, int] = ("", 0)

    @property
    def content_type(self) -> Optional[str]:
        """Media type without parameters: ``application/json; charset=utf-8`` → ``application/json``."""
        ct = self.headers.get("content-type", "")
        return ct.split(";")[0].strip().lower() or None

    @property
    def charset(self) -> str:
        """The ``charset`` parameter of Content-Type, defaulting to utf-8."""
        ct = self.headers.get("content-type", "")
        for param in ct.split(";")[1:]:
            name, _, value = param.partition("=")
            if name.strip().lower() == "charset" and value.strip():
                return value.strip().strip('"').lower()
        return "utf-8"

    @property
    def url(self) -> str:
        """Path plus query string, as the client sent it."""
        if self.query_string:
            return f"{self.path}?{self.query_string}"
        return self.path

    @property
    def client_ip(self) -> str:
        return self.client_address[0]

    @property
    def is_keep_alive(self) -> bool:
        """
        Whether the connection should stay open after this response.

        HTTP/1.1 keeps alive unless told ``Connection: close``; HTTP/1.0
        closes unless told ``Connection: keep-alive``.
        """
        connection = self.headers.get("connection", "").lower()
        if self.version == "HTTP/1.1":
            return connection != "close"
        return connection == "keep-alive"

    def get_header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)

    def get_query(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """First value of a query parameter."""
        values = self.query_params.get(name, [])
        return values[0] if values else default


class RequestParser:
    """
    Parses raw request bytes into HTTPRequest objects.

    Steps:
        1. Reject anything above max_request_size (413)
        2. Split header block from body at the first CRLFCRLF
        3. Parse the request line (method, target, version)
        4. Parse headers into a lower-case map
        5. Slice the body to Content-Length
    """

    VALID_METHODS = {
        "GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS",
    }

    REQUEST_LINE_PATTERN = re.compile(r"^([A-Z]+) ([^ ]+) (HTTP/\d\.\d)$")
    HEADER_PATTERN = re.compile(r"^([^:]+):\s*(.*)$")

    def __init__(self, max_request_size: int = 10 * 1024 * 1024):
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: tuple[str, int] = ("", 0)
    ) -> HTTPRequest:
        """
        Parse one complete request.

        Args:
            data: Raw bytes as read by Connection.read_request().
            client_address: Peer (ip, port).

        Returns:
            The parsed request.

        Raises:
            HTTPParseError: If the framing is malformed.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(data)} bytes",
                status_code=413
            )

        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        header_section = data[:header_end].decode("latin-1")
        body = data[header_end + 4:]

        lines = header_section.split("\r\n")
        method, path, query_string, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        try:
            content_length = int(headers.get("content-length", 0))
        except ValueError:
            raise HTTPParseError("Invalid Content-Length header")
        if content_length < 0:
            raise HTTPParseError("Invalid Content-Length header")
        if len(body) < content_length:
            raise HTTPParseError(
                f"Incomplete body: expected {content_length} bytes, got {len(body)}"
            )

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            headers=headers,
            query_params=parse_qs(query_string, keep_blank_values=True),
            query_string=query_string,
            body=body[:content_length],
            client_address=client_address,
        )

    def _parse_request_line(self, line: str) -> tuple[str, str, str, str]:
        """
        Split ``METHOD SP request-target SP HTTP-version``.

        Returns:
            (method, decoded path, raw query string, version)
        """
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line}")

        method, target, version = match.groups()

        if method not in self.VALID_METHODS:
            raise HTTPParseError(f"Invalid method: {method}", status_code=405)

        if version not in ("HTTP/1.0", "HTTP/1.1"):
            raise HTTPParseError(
                f"Unsupported HTTP version: {version}",
                status_code=505
            )

        parsed = urlparse(target)
        path = unquote(parsed.path) or "/"
        return method, path, parsed.query, version

    def _parse_headers(self, lines: list[str]) -> Dict[str, str]:
        """
        Parse header lines into a dict keyed by lower-case name.

        Repeated headers are joined with ", " and obsolete line folding
        (continuation lines starting with whitespace) is unfolded.
        Malformed lines are skipped.
        """
        headers: Dict[str, str] = {}
        current_name = None

        for line in lines:
            if not line:
                continue

            if line[0] in (" ", "\t"):
                if current_name is not None:
                    headers[current_name] += " " + line.strip()
                continue

            match = self.HEADER_PATTERN.match(line)
            if not match:
                continue

            name, value = match.groups()
            name = name.strip().lower()
            value = value.strip()
            current_name = name

            if name in headers:
                headers[name] += ", " + value
            else:
                headers[name] = value

        return headers


def parse_request(
    data: bytes,
    client_address: tuple[str, int] = ("", 0),
    max_size: int = 10 * 1024 * 1024
) -> HTTPRequest:
    """One-shot helper around RequestParser."""
    return RequestParser(max_request_size=max_size).parse(data, client_address)
