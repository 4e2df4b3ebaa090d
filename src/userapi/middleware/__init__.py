"""
=============================================================================
MIDDLEWARE
=============================================================================

The application chain, outermost first, as assembled by ``create_app``:

    ErrorBoundary                 (wraps everything)
      JSONBodyParser              body → request.body_data
      URLEncodedParser
      CORSMiddleware              may answer OPTIONS itself
      AccessLogMiddleware         "GET /api/users 200 27 - 0.412 ms"
      CompressionMiddleware
      SecurityHeadersMiddleware
      RateLimitMiddleware         may answer 429 itself
      request_logger              "[...] GET request for '/api/users'"
        ErrorBoundary             (wraps the router)
          Router
            AuthenticationGate    (only /api/protected)

Each stage sees the request on the way in and the response on the way
out, in reverse order.

=============================================================================
"""

from .base import Middleware, MiddlewarePipeline, NextHandler, FunctionMiddleware, function_middleware
from .auth import AuthenticationGate
from .body_parser import BodyParseError, JSONBodyParser, URLEncodedParser
from .compression import CompressionMiddleware
from .cors import CORSConfig, CORSMiddleware
from .errors import ErrorBoundary, default_error_handler
from .logging import AccessLogMiddleware, request_logger
from .rate_limit import RateLimitMiddleware
from .security_headers import SecurityHeadersMiddleware

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "FunctionMiddleware",
    "function_middleware",

    "AuthenticationGate",
    "BodyParseError",
    "JSONBodyParser",
    "URLEncodedParser",
    "CompressionMiddleware",
    "CORSConfig",
    "CORSMiddleware",
    "ErrorBoundary",
    "default_error_handler",
    "AccessLogMiddleware",
    "request_logger",
    "RateLimitMiddleware",
    "SecurityHeadersMiddleware",
]
