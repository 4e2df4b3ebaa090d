"""
=============================================================================
BASE MIDDLEWARE INTERFACE
=============================================================================

The middleware contract and the pipeline that chains middleware around a
final handler (Chain of Responsibility).

    Request ──►  MW1 (before) ─► MW2 (before) ─► ... ─► handler
                                                          │
    Response ◄─  MW1 (after)  ◄─ MW2 (after)  ◄─ ... ◄────┘

A middleware may:
    - inspect or modify the request, then call ``next(request)``
    - modify the response ``next`` returned
    - short-circuit by returning a response without calling ``next``
      (CORS preflight, rate limit, auth gate)

The pipeline is an explicit, ordered list fixed before the server starts.
Nothing mutates the chain while requests are flowing.

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Callable, List, Optional
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


# NextHandler is the signature of "the rest of the chain": the next
# middleware, or the router at the end.
NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """
    Abstract base class for middleware.

    Subclasses implement one method:

        class AddHeader(Middleware):
            def __call__(self, request, next):
                response = next(request)
                response.set_header("X-Handled", "1")
                return response
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        """
        Process the request.

        Args:
            request: The incoming request.
            next: The rest of the chain. Call it to continue.

        Returns:
            The response from ``next`` (possibly modified) or a
            short-circuit response.
        """

    @property
    def name(self) -> str:
        """Name used in debug logs."""
        return self.__class__.__name__

    def protect(self, handler: NextHandler) -> NextHandler:
        """
        Apply this middleware to a single handler instead of the whole app.

        Route-level middleware (the auth gate on ``/protected``) is
        attached this way when the route is registered.
        """
        def guarded(request: HTTPRequest) -> HTTPResponse:
            return self(request, handler)

        guarded.__name__ = getattr(handler, "__name__", "handler")
        return guarded


class MiddlewarePipeline:
    """
    An ordered list of middleware wrapped around a final handler.

        pipeline = MiddlewarePipeline()
        pipeline.use(JSONBodyParser(), CORSMiddleware(), AccessLogMiddleware())
        handler = pipeline.wrap(router.handle)

    First added is outermost: it sees the request first and the response
    last.
    """

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        """Append one middleware. Returns self for chaining."""
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def use(self, *middleware: Middleware) -> "MiddlewarePipeline":
        """Append several middleware in order."""
        for mw in middleware:
            self.add(mw)
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Build the chain around ``handler``.

        Given [A, B, C] the result behaves like A(B(C(handler))): we wrap
        in reverse so the first-added middleware ends up outermost.
        """
        current = handler
        for middleware in reversed(self._middleware):
            current = self._create_wrapped_handler(middleware, current)
        return current

    def _create_wrapped_handler(
        self,
        middleware: Middleware,
        next_handler: NextHandler
    ) -> NextHandler:
        # closure over (middleware, next_handler)
        def wrapped(request: HTTPRequest) -> HTTPResponse:
            return middleware(request, next_handler)

        return wrapped

    @property
    def names(self) -> List[str]:
        """Middleware names in execution order."""
        return [mw.name for mw in self._middleware]

    def __len__(self) -> int:
        return len(self._middleware)

    def __iter__(self):
        return iter(self._middleware)


# =============================================================================
# FUNCTION MIDDLEWARE
# =============================================================================
#
# For one-off interceptors that do not need a class, e.g. the request
# logger in logging.py:
#
#     @function_middleware
#     def stamp(request, next):
#         response = next(request)
#         response.set_header("X-Stamp", "1")
#         return response
#
# =============================================================================

class FunctionMiddleware(Middleware):
    """Adapts a plain ``(request, next) -> response`` function."""

    def __init__(
        self,
        func: Callable[[HTTPRequest, NextHandler], HTTPResponse],
        name: Optional[str] = None
    ):
        self._func = func
        self._name = name or func.__name__

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        return self._func(request, next)

    @property
    def name(self) -> str:
        return self._name


def function_middleware(
    func: Callable[[HTTPRequest, NextHandler], HTTPResponse]
) -> FunctionMiddleware:
    """Decorator turning a function into FunctionMiddleware."""
    return FunctionMiddleware(func)
