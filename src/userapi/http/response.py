"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

HTTPResponse is the mutable value every handler returns and every
middleware may decorate on the way out (CORS headers, security headers,
compression, rate-limit counters). ResponseBuilder is the fluent way to
make one, and the helpers at the bottom cover the statuses the API uses.

    ResponseBuilder().status(HTTPStatus.CREATED).json({...}).build()
        │
        ▼
    HTTPResponse(status=201, headers={...}, body=b'{...}')
        │  middleware post-processing mutates headers/body
        ▼
    to_bytes() → b"HTTP/1.1 201 Created\\r\\n...\\r\\n\\r\\n{...}"

JSON bodies are serialized compactly, with no spaces after separators.

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Dict, Any, Union
import json

from .status_codes import HTTPStatus


JSON_CONTENT_TYPE = "application/json; charset=utf-8"


@dataclass
class HTTPResponse:
    """
    An HTTP response on its way to the client.

    Header names are stored with the casing they were set with. Middleware
    in this project always uses the canonical form (``Content-Type``,
    ``Vary``), so plain dict access is enough.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        return f"{self.version} {int(self.status)} {HTTPStatus(self.status).phrase}"

    @property
    def content_type(self) -> str:
        """Media type of the body without parameters (may be empty)."""
        return self.headers.get("Content-Type", "").split(";")[0].strip().lower()

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a header; returns self for chaining."""
        self.headers[name] = value
        return self

    def remove_header(self, name: str) -> "HTTPResponse":
        """Drop a header regardless of the casing it was stored with."""
        for key in [k for k in self.headers if k.lower() == name.lower()]:
            del self.headers[key]
        return self

    def append_vary(self, field_name: str) -> "HTTPResponse":
        """Add a field to the Vary header unless it is already listed."""
        vary = self.headers.get("Vary", "")
        listed = {part.strip().lower() for part in vary.split(",") if part.strip()}
        if "*" not in listed and field_name.lower() not in listed:
            self.headers["Vary"] = f"{vary}, {field_name}" if vary else field_name
        return self

    def set_body(self, body: Union[str, bytes]) -> "HTTPResponse":
        self.body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def json_body(self) -> Any:
        """Decode a JSON body. Mostly useful in tests and log lines."""
        return json.loads(self.body.decode("utf-8"))

    def to_bytes(self, server_name: str = "userapi/1.0") -> bytes:
        """
        Serialize for ``socket.sendall()``.

        Content-Length, Date and Server are filled in when missing.
        """
        response_headers = dict(self.headers)
        if "Content-Length" not in response_headers:
            response_headers["Content-Length"] = str(len(self.body))
        if "Date" not in response_headers:
            response_headers["Date"] = format_http_date(datetime.now(timezone.utc))
        if "Server" not in response_headers:
            response_headers["Server"] = server_name

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("latin-1") + b"\r\n"
        return header_bytes + self.body


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

        response = (ResponseBuilder()
            .status(HTTPStatus.UNAUTHORIZED)
            .json({"error": "Unauthorized"})
            .build())

    Every method except build() returns the builder.
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def headers(self, headers: Dict[str, str]) -> "ResponseBuilder":
        self._headers.update(headers)
        return self

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def text(self, text: str, content_type: str = "text/plain; charset=utf-8") -> "ResponseBuilder":
        """Plain text body."""
        self._body = text.encode("utf-8")
        self._headers["Content-Type"] = content_type
        return self

    def json(self, data: Any) -> "ResponseBuilder":
        """
        JSON body with ``application/json; charset=utf-8``.

        ensure_ascii=False keeps non-ASCII names readable instead of
        escaping them to \\uXXXX.
        """
        self._body = json.dumps(
            data, ensure_ascii=False, separators=(",", ":")
        ).encode("utf-8")
        self._headers["Content-Type"] = JSON_CONTENT_TYPE
        return self

    def close_connection(self) -> "ResponseBuilder":
        self._headers["Connection"] = "close"
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
        )


def format_http_date(dt: datetime) -> str:
    """
    Format a UTC datetime as an RFC 7231 HTTP-date.

    Example: ``Sun, 18 Oct 2026 09:30:00 GMT``
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# CONVENIENCE RESPONSES
# =============================================================================
#
# Error helpers all use the same body shape, {"error": "<message>"}, which
# is what every failure branch of the users API returns.
#
# =============================================================================

def ok(body: Union[dict, list, str] = "") -> HTTPResponse:
    """200 OK. dict/list bodies become JSON, strings become text/plain."""
    builder = ResponseBuilder().status(HTTPStatus.OK)
    if isinstance(body, (dict, list)):
        builder.json(body)
    else:
        builder.text(body)
    return builder.build()


def created(body: Union[dict, list], location: Optional[str] = None) -> HTTPResponse:
    """201 Created with a JSON body and optional Location header."""
    builder = ResponseBuilder().status(HTTPStatus.CREATED).json(body)
    if location:
        builder.header("Location", location)
    return builder.build()


def no_content() -> HTTPResponse:
    """204 No Content. Content-Length: 0 is explicit for preflight replies."""
    return (ResponseBuilder()
        .status(HTTPStatus.NO_CONTENT)
        .header("Content-Length", "0")
        .build())


def error_response(status: HTTPStatus, message: str) -> HTTPResponse:
    """Any status with the standard ``{"error": message}`` body."""
    return ResponseBuilder().status(status).json({"error": message}).build()


def bad_request(message: str = "Bad Request") -> HTTPResponse:
    return error_response(HTTPStatus.BAD_REQUEST, message)


def unauthorized(message: str = "Unauthorized") -> HTTPResponse:
    return error_response(HTTPStatus.UNAUTHORIZED, message)


def not_found(message: str = "Not Found") -> HTTPResponse:
    return error_response(HTTPStatus.NOT_FOUND, message)


def internal_error(message: str = "Internal Server Error") -> HTTPResponse:
    """500. Keep the message generic; details belong in the error log."""
    return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, message)
