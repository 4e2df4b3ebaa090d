"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

    request.py       raw bytes → HTTPRequest (framing only)
    response.py      HTTPResponse, ResponseBuilder, status helpers
    router.py        (method, pattern) → handler, ``:param`` capture
    status_codes.py  HTTPStatus enum with reason phrases

Nothing in here knows about users, middleware or sockets.

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError
from .response import (
    HTTPResponse,
    ResponseBuilder,
    ok,                  # 200 OK
    created,             # 201 Created
    no_content,          # 204 No Content
    error_response,      # any status, {"error": ...}
    bad_request,         # 400 Bad Request
    unauthorized,        # 401 Unauthorized
    not_found,           # 404 Not Found
    internal_error,      # 500 Internal Server Error
)
from .router import Router, Route, RouteMatch
from .status_codes import HTTPStatus

__all__ = [
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",

    "HTTPResponse",
    "ResponseBuilder",

    "ok",
    "created",
    "no_content",
    "error_response",
    "bad_request",
    "unauthorized",
    "not_found",
    "internal_error",

    "Router",
    "Route",
    "RouteMatch",

    "HTTPStatus",
]
