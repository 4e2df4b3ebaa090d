"""
=============================================================================
RATE LIMITING MIDDLEWARE
=============================================================================

Caps each client at ``max_requests`` per ``window`` seconds (100 per 15
minutes by default), counted in a fixed window that opens with the
client's first request.

    t=0s      request 1     window opens, resets at t=900s
    ...       request 100   allowed, X-RateLimit-Remaining: 0
    t=42s     request 101   429 Too Many Requests, Retry-After: 858
    t=900s    request 102   new window, allowed

Every counted request, rejected ones included, consumes from the window.
Clients are keyed by IP address unless ``key_func`` says otherwise.

=============================================================================
RESPONSE HEADERS
=============================================================================

    X-RateLimit-Limit       the window's capacity
    X-RateLimit-Remaining   requests left in the current window
    X-RateLimit-Reset       Unix time (seconds) the window ends
    Retry-After             seconds until the window ends (429 only)

=============================================================================
"""

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


DEFAULT_MESSAGE = "Too many requests, please try again later."


@dataclass
class RateWindow:
    """Hit counter for one client over one window."""

    hits: int
    reset_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.reset_at


class RateLimitMiddleware(Middleware):
    """
    Fixed-window rate limiting per client.

    Args:
        max_requests: Requests allowed per window.
        window: Window length in seconds.
        key_func: Extracts the client key; defaults to the client IP.
        clock: Returns the current time in seconds. Tests pass a fake.
        message: Plain-text body of the 429 response.
    """

    def __init__(
        self,
        max_requests: int = 100,
        window: float = 15 * 60,
        key_func: Optional[Callable[[HTTPRequest], str]] = None,
        clock: Callable[[], float] = time.time,
        message: str = DEFAULT_MESSAGE,
    ):
        self.max_requests = max_requests
        self.window = window
        self.key_func = key_func or self._default_key_func
        self.clock = clock
        self.message = message

        self._windows: Dict[str, RateWindow] = {}
        self._lock = threading.Lock()
        self._last_cleanup = clock()

    def _default_key_func(self, request: HTTPRequest) -> str:
        return request.client_ip

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        key = self.key_func(request)
        now = self.clock()
        hits, reset_at = self._hit(key, now)

        remaining = max(self.max_requests - hits, 0)
        headers = {
            "X-RateLimit-Limit": str(self.max_requests),
            "X-RateLimit-Remaining": str(remaining),
            "X-RateLimit-Reset": str(math.ceil(reset_at)),
        }

        if hits > self.max_requests:
            retry_after = max(math.ceil(reset_at - now), 0)
            logger.warning(f"Rate limit exceeded for {key}: {hits} hits, retry in {retry_after}s")
            return (ResponseBuilder()
                .status(HTTPStatus.TOO_MANY_REQUESTS)
                .headers(headers)
                .header("Retry-After", str(retry_after))
                .text(self.message)
                .build())

        response = next(request)
        for name, value in headers.items():
            response.set_header(name, value)
        return response

    def _hit(self, key: str, now: float) -> tuple:
        """Count one request for ``key``; returns (hits, reset_at)."""
        with self._lock:
            if now - self._last_cleanup >= self.window:
                self._cleanup(now)

            current = self._windows.get(key)
            if current is None or current.is_expired(now):
                current = RateWindow(hits=0, reset_at=now + self.window)
                self._windows[key] = current

            current.hits += 1
            return current.hits, current.reset_at

    def _cleanup(self, now: float) -> None:
        # caller holds the lock
        expired = [key for key, w in self._windows.items() if w.is_expired(now)]
        for key in expired:
            del self._windows[key]
        self._last_cleanup = now

    def hits(self, key: str) -> int:
        """Requests counted for ``key`` in its current window."""
        with self._lock:
            current = self._windows.get(key)
            if current is None or current.is_expired(self.clock()):
                return 0
            return current.hits

    def reset(self, key: Optional[str] = None) -> None:
        """Forget one client's window, or every window when ``key`` is None."""
        with self._lock:
            if key is None:
                self._windows.clear()
            else:
                self._windows.pop(key, None)
