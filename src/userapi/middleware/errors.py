"""
=============================================================================
ERROR BOUNDARY
=============================================================================

The last line of defence: any exception escaping a middleware or handler
is logged with its traceback and turned into

    HTTP/1.1 500 Internal Server Error
    {"error":"Something went wrong!"}

Failures are not told apart. A malformed JSON body, a KeyError in a
handler and a broken middleware all get the same answer; the detail only
goes to the ``userapi.errors`` log.

The server places the boundary twice:

    boundary.protect(                 ◄── catches body-parser failures
        pipeline.wrap(
            boundary.protect(         ◄── catches handler failures; the 500
                router.handle            still flows back through CORS,
            )                            security headers, compression
        )
    )

=============================================================================
"""

import logging
from typing import Callable, Optional

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, internal_error


logger = logging.getLogger("userapi.errors")


ErrorHandler = Callable[[HTTPRequest, Exception], HTTPResponse]

GENERIC_MESSAGE = "Something went wrong!"


def default_error_handler(request: HTTPRequest, error: Exception) -> HTTPResponse:
    logger.error(
        f"Unhandled error on {request.method} {request.url}: {type(error).__name__}: {error}",
        exc_info=error,
    )
    return internal_error(GENERIC_MESSAGE)


class ErrorBoundary(Middleware):
    """
    Convert exceptions into a 500 response.

    Args:
        handler: Called with the request and the exception; returns the
                 response to send. Defaults to logging plus the generic
                 500 body.
    """

    def __init__(self, handler: Optional[ErrorHandler] = None):
        self.handler = handler or default_error_handler

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        try:
            return next(request)
        except Exception as e:
            return self.handler(request, e)
