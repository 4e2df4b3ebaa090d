"""
=============================================================================
CORS (Cross-Origin Resource Sharing) MIDDLEWARE
=============================================================================

Tells browsers which foreign origins may call the API. The server never
blocks anything itself: it only decides which headers go on the response,
and the browser enforces the result.

    Request Origin                    Access-Control-Allow-Origin
    ────────────────────────────────  ───────────────────────────
    http://example.com                http://example.com
    http://another-example.com        http://another-example.com
    http://evil.test                  (absent, browser blocks)
    (no Origin, e.g. curl)            (absent, response still served)

Because the answer depends on the Origin header, every response carries
``Vary: Origin`` so shared caches keep one copy per origin.

=============================================================================
PREFLIGHT
=============================================================================

Every OPTIONS request is treated as a preflight and answered here with
204 and an empty body. The router never sees it.

    OPTIONS /api/users                         HTTP/1.1 204 No Content
    Origin: http://example.com          ──►    Access-Control-Allow-Origin: http://example.com
    Access-Control-Request-Method: PUT         Access-Control-Allow-Credentials: true
                                               Access-Control-Allow-Methods: GET,POST,PUT,DELETE
                                               Access-Control-Allow-Headers: Content-Type,Authorization

=============================================================================
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, no_content


logger = logging.getLogger(__name__)


DEFAULT_ORIGINS = ["http://example.com", "http://another-example.com"]


@dataclass
class CORSConfig:
    """
    CORS policy.

    ``allow_origins`` may contain ``"*"`` to admit any origin; with
    credentials enabled the request's own origin is echoed instead of
    the wildcard, since browsers reject ``*`` on credentialed requests.
    """

    allow_origins: List[str] = field(default_factory=lambda: list(DEFAULT_ORIGINS))
    allow_methods: List[str] = field(default_factory=lambda: ["GET", "POST", "PUT", "DELETE"])
    allow_headers: List[str] = field(default_factory=lambda: ["Content-Type", "Authorization"])
    expose_headers: List[str] = field(default_factory=list)
    allow_credentials: bool = True
    # seconds; None leaves Access-Control-Max-Age off
    max_age: Optional[int] = None


class CORSMiddleware(Middleware):
    """
    Apply a CORSConfig to every response and answer preflights.

    Usage:
        pipeline.add(CORSMiddleware(CORSConfig(allow_origins=["https://app.test"])))
    """

    def __init__(self, config: Optional[CORSConfig] = None):
        self.config = config or CORSConfig()

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        origin = request.get_header("origin")

        if request.method == "OPTIONS":
            return self._handle_preflight(origin)

        response = next(request)
        self._add_cors_headers(response, origin)
        if self.config.expose_headers:
            response.set_header(
                "Access-Control-Expose-Headers", ",".join(self.config.expose_headers)
            )
        return response

    def _handle_preflight(self, origin: str) -> HTTPResponse:
        response = no_content()
        self._add_cors_headers(response, origin)
        response.set_header("Access-Control-Allow-Methods", ",".join(self.config.allow_methods))
        response.set_header("Access-Control-Allow-Headers", ",".join(self.config.allow_headers))
        if self.config.max_age is not None:
            response.set_header("Access-Control-Max-Age", str(self.config.max_age))

        logger.debug(f"Answered preflight from {origin or '(no origin)'}")
        return response

    def _add_cors_headers(self, response: HTTPResponse, origin: str) -> None:
        allowed = self._allowed_origin(origin)
        if allowed:
            response.set_header("Access-Control-Allow-Origin", allowed)
        if self.config.allow_credentials:
            response.set_header("Access-Control-Allow-Credentials", "true")
        response.append_vary("Origin")

    def _allowed_origin(self, origin: str) -> Optional[str]:
        """The value to echo in Access-Control-Allow-Origin, or None."""
        if "*" in self.config.allow_origins:
            if self.config.allow_credentials:
                return origin or None
            return "*"
        if origin and origin in self.config.allow_origins:
            return origin
        return None

    def is_origin_allowed(self, origin: str) -> bool:
        return self._allowed_origin(origin) is not None
