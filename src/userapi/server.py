"""
=============================================================================
HTTP SERVER
=============================================================================

Ties the layers together:

    SocketServer ──accept──► ThreadPool ──► _process_connection (worker)
                                               │
                             read_request ◄────┤ keep-alive loop
                             RequestParser     │
                             handle(request) ──┤ middleware + router
                             send_response ◄───┘

``handle`` is the whole application as a function from request to
response, which is also how the tests drive it without sockets.

Failures before the pipeline runs (unparseable request line, oversize
request, slow client, full pool) are answered here directly with a small
JSON error and the connection is closed.

=============================================================================
"""

import logging
from typing import Callable, Optional, Tuple

from .config import ServerConfig
from .core import SocketServer, Connection, ThreadPool
from .http import (
    HTTPRequest, RequestParser, HTTPParseError,
    HTTPResponse, ResponseBuilder, HTTPStatus,
    Router,
)
from .middleware import MiddlewarePipeline, Middleware, ErrorBoundary
from .middleware.errors import ErrorHandler


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    HTTP/1.1 application server.

        server = HTTPServer(ServerConfig(port=3000))
        server.use(CORSMiddleware(), SecurityHeadersMiddleware())
        server.include("/api", users_router(store))
        server.run()

    Middleware runs in the order it was added. Every exception is caught by
    the error boundary, both inside the chain (around the router) and
    outside it.
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
        )
        self._parser = RequestParser(max_request_size=self.config.max_request_size)
        self._router = Router()
        self._middleware = MiddlewarePipeline()
        self._boundary = ErrorBoundary()
        self._handler: Optional[Callable[[HTTPRequest], HTTPResponse]] = None
        self._running = False

    # ─────────────────────────────────────────────────────────────────────
    # Application assembly
    # ─────────────────────────────────────────────────────────────────────

    def use(self, *middleware: Middleware) -> "HTTPServer":
        """Append middleware to the chain. Returns self for chaining."""
        self._middleware.use(*middleware)
        self._handler = None
        return self

    def error_handler(self, func: ErrorHandler) -> ErrorHandler:
        """
        Replace the error boundary's response.

            @server.error_handler
            def on_error(request, error):
                return internal_error("Something went wrong!")
        """
        self._boundary.handler = func
        self._handler = None
        return func

    @property
    def router(self) -> Router:
        return self._router

    @property
    def middleware(self) -> MiddlewarePipeline:
        return self._middleware

    def include(self, prefix: str, router: Router) -> "HTTPServer":
        """Mount another router's routes under ``prefix``."""
        self._router.include(prefix, router)
        return self

    def route(self, path: str, method: Optional[str] = None, **kwargs):
        return self._router.route(path, method, **kwargs)

    def get(self, path: str, **kwargs):
        return self._router.get(path, **kwargs)

    def post(self, path: str, **kwargs):
        return self._router.post(path, **kwargs)

    def put(self, path: str, **kwargs):
        return self._router.put(path, **kwargs)

    def delete(self, path: str, **kwargs):
        return self._router.delete(path, **kwargs)

    # ─────────────────────────────────────────────────────────────────────
    # Request handling
    # ─────────────────────────────────────────────────────────────────────

    def build_handler(self) -> Callable[[HTTPRequest], HTTPResponse]:
        """Compose boundary → middleware → boundary → router."""
        inner = self._boundary.protect(self._router.handle)
        return self._boundary.protect(self._middleware.wrap(inner))

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """Run one parsed request through the application."""
        if self._handler is None:
            self._handler = self.build_handler()
        return self._handler(request)

    # ─────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────

    @property
    def address(self) -> Tuple[str, int]:
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._running

    def run(self, host: Optional[str] = None, port: Optional[int] = None,
            configure_logging: bool = True):
        """
        Serve until SIGINT/SIGTERM or ``stop()``.

        Args:
            host: Override ``config.host``.
            port: Override ``config.port``.
            configure_logging: Call ``logging.basicConfig`` first.
        """
        if host is not None:
            self.config.host = host
        if port is not None:
            self.config.port = port

        if configure_logging:
            self._setup_logging()

        self._handler = self.build_handler()
        self._thread_pool.start()
        self._running = True

        try:
            self._socket_server.start(self._handle_connection, on_ready=self._announce)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def stop(self):
        """Ask a running server to shut down (safe from any thread)."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    def _announce(self, address: Tuple[str, int]):
        logger.info(f"Server running at http://localhost:{address[1]}")

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("userapi").setLevel(level)

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._running = False
        self._thread_pool.shutdown(wait=True, timeout=30.0)
        logger.info("Server stopped")

    # ─────────────────────────────────────────────────────────────────────
    # Connections (worker threads)
    # ─────────────────────────────────────────────────────────────────────

    def _handle_connection(self, conn: Connection):
        submitted = self._thread_pool.submit(
            self._process_connection, args=(conn,), block=False
        )
        if not submitted:
            logger.warning(f"[{conn.id}] Thread pool full, rejecting connection")
            self._send_error(conn, HTTPStatus.SERVICE_UNAVAILABLE, "Server overloaded")
            conn.close()

    def _process_connection(self, conn: Connection):
        """Keep-alive loop: read, parse, handle, send, repeat."""
        with conn:
            while self._running:
                try:
                    raw_request = conn.read_request()
                    if raw_request is None:
                        break

                    request = self._parser.parse(raw_request, conn.address)
                    response = self.handle(request)

                    keep_alive = request.is_keep_alive and self.config.keep_alive
                    if keep_alive:
                        response.headers.setdefault("Connection", "keep-alive")
                        response.headers.setdefault(
                            "Keep-Alive", f"timeout={int(self.config.keep_alive_timeout)}"
                        )
                    else:
                        response.headers["Connection"] = "close"

                    if request.method == "HEAD":
                        response.headers.setdefault("Content-Length", str(len(response.body)))
                        response.body = b""

                    if not conn.send_response(response.to_bytes(self.config.server_name)):
                        break
                    if not keep_alive:
                        break
                    conn.set_keep_alive()

                except HTTPParseError as e:
                    logger.debug(f"[{conn.id}] Rejected request: {e}")
                    self._send_error(conn, HTTPStatus(e.status_code), str(e))
                    break
                except TimeoutError:
                    self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT, "Request timeout")
                    break
                except OSError as e:
                    logger.debug(f"[{conn.id}] Connection error: {e}")
                    break

    def _send_error(self, conn: Connection, status: HTTPStatus, message: str):
        response = (ResponseBuilder()
            .status(status)
            .json({"error": message})
            .close_connection()
            .build())
        conn.send_response(response.to_bytes(self.config.server_name))
