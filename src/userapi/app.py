"""
=============================================================================
APPLICATION FACTORY
=============================================================================

Builds the users API: one store, the fixed middleware chain, and the users
resource mounted under ``/api``.

    app = create_app()
    app.run()                 # Server running at http://localhost:3000

The order below is fixed. CORS answers preflights before the rate
limiter counts them, and the access log sees compressed sizes. The
request logger runs right before routing.

=============================================================================
"""

from typing import Optional

from .config import ServerConfig
from .handlers import UsersResource
from .middleware import (
    AccessLogMiddleware,
    AuthenticationGate,
    CompressionMiddleware,
    CORSConfig,
    CORSMiddleware,
    JSONBodyParser,
    RateLimitMiddleware,
    SecurityHeadersMiddleware,
    URLEncodedParser,
    request_logger,
)
from .server import HTTPServer
from .store import UserStore


API_PREFIX = "/api"


def create_app(config: Optional[ServerConfig] = None,
               store: Optional[UserStore] = None) -> HTTPServer:
    """
    Assemble the server.

    Args:
        config: Server and policy settings; defaults to ``ServerConfig()``.
        store: The user collection. A fresh empty store if omitted.

    Returns:
        An HTTPServer ready for ``run()`` or, in tests, ``handle()``.
    """
    config = config or ServerConfig()
    store = store if store is not None else UserStore()

    server = HTTPServer(config)

    server.use(
        JSONBodyParser(limit=config.body_limit),
        URLEncodedParser(limit=config.body_limit, extended=True),
        CORSMiddleware(CORSConfig(allow_origins=list(config.cors_origins))),
        AccessLogMiddleware(log_format="tiny"),
        CompressionMiddleware(threshold=config.compression_threshold),
        SecurityHeadersMiddleware(),
        RateLimitMiddleware(
            max_requests=config.rate_limit_max,
            window=config.rate_limit_window,
        ),
        request_logger,
    )

    resource = UsersResource(store, gate=AuthenticationGate())
    server.include(API_PREFIX, resource.router())

    return server
