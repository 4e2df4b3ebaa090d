"""
Authentication gate.

A capability check, not authentication: any request carrying a non-empty
``Authorization`` header is admitted. The value is never parsed or
verified. Without one the gate answers 401 and the handler never runs.

Attached per route with ``gate.protect(handler)`` rather than added to the
global pipeline, so only ``/api/protected`` is gated.
"""

import logging

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, unauthorized


logger = logging.getLogger(__name__)


class AuthenticationGate(Middleware):
    """Admit requests that present an Authorization header."""

    def __init__(self, header: str = "Authorization"):
        self.header = header

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        if request.get_header(self.header):
            return next(request)

        logger.debug(f"Rejected {request.method} {request.path}: no {self.header} header")
        return unauthorized("Unauthorized")
