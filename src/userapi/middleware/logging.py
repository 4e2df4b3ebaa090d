"""
=============================================================================
LOGGING MIDDLEWARE
=============================================================================

Two loggers watch the request stream from different points in the chain.

    userapi.access     AccessLogMiddleware, one line per completed response
                       GET /api/users 200 27 - 0.412 ms

    userapi.requests   request_logger, one line per request before routing
                       [2026-01-05T10:00:00.000Z] GET request for '/api/users'

The access log sits outside compression and everything after it, so its
byte count is what goes on the wire and its timing covers the rest of the
chain. Requests answered earlier (CORS preflights) never reach it.

Both use namespaced loggers so they can be routed or silenced separately:

    logging.getLogger("userapi.access").setLevel(logging.WARNING)

=============================================================================
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone

from .base import Middleware, NextHandler, function_middleware
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger("userapi.access")
request_log = logging.getLogger("userapi.requests")


@dataclass
class AccessLogEntry:
    """One completed request, ready to format."""

    method: str
    url: str
    client_ip: str
    user_agent: str
    referrer: str
    status_code: int
    content_length: str
    duration_ms: float
    timestamp: str

    def to_tiny(self) -> str:
        """``:method :url :status :res[content-length] - :response-time ms``"""
        return (
            f"{self.method} {self.url} {self.status_code} "
            f"{self.content_length} - {self.duration_ms:.3f} ms"
        )

    def to_combined(self) -> str:
        """Apache combined log format."""
        return (
            f'{self.client_ip} - - [{self.timestamp}] "{self.method} {self.url} HTTP/1.1" '
            f'{self.status_code} {self.content_length} "{self.referrer}" "{self.user_agent}"'
        )


class AccessLogMiddleware(Middleware):
    """
    Access log in the style of morgan.

    Args:
        log_format: ``"tiny"`` (default) or ``"combined"``.
        log_level: Level the lines are emitted at.
    """

    FORMATS = ("tiny", "combined")

    def __init__(self, log_format: str = "tiny", log_level: int = logging.INFO):
        if log_format not in self.FORMATS:
            raise ValueError(f"log_format must be one of {self.FORMATS}, got {log_format!r}")
        self.log_format = log_format
        self.log_level = log_level

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        start_time = time.perf_counter()

        try:
            response = next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method} {request.url} "
                f"- {type(e).__name__}: {e} ({duration_ms:.3f} ms)"
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000

        entry = AccessLogEntry(
            method=request.method,
            url=request.url,
            client_ip=request.client_ip or "-",
            user_agent=request.get_header("user-agent", "-"),
            referrer=request.get_header("referer", "-"),
            status_code=int(response.status),
            content_length=response.headers.get("Content-Length", str(len(response.body))),
            duration_ms=duration_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        if self.log_format == "combined":
            logger.log(self.log_level, entry.to_combined())
        else:
            logger.log(self.log_level, entry.to_tiny())

        return response


def iso_timestamp(moment: datetime) -> str:
    """UTC ISO-8601 with milliseconds and a ``Z`` suffix."""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


@function_middleware
def request_logger(request: HTTPRequest, next: NextHandler) -> HTTPResponse:
    """Announce each request, with its query string, before it is routed."""
    request_log.info(
        f"[{iso_timestamp(datetime.now(timezone.utc))}] "
        f"{request.method} request for '{request.url}'"
    )
    return next(request)
