"""
=============================================================================
URL ROUTER
=============================================================================

Maps (method, path) pairs to handlers:

    GET    /api/protected   → protected_probe   (behind the auth gate)
    POST   /api/users       → create_user
    GET    /api/users       → list_users
    GET    /api/users/:id   → get_user          path_params = {"id": "7"}
    PUT    /api/users/:id   → update_user
    DELETE /api/users/:id   → delete_user

=============================================================================
PATTERN COMPILATION
=============================================================================

Each pattern is compiled once, at registration, into an anchored regex:

    /api/users/:id   →   ^/api/users/(?P<id>[^/]+)$

Static segments are escaped, ``:name`` segments become named groups that
match exactly one path segment. Matching is case-insensitive and ignores a
trailing slash.

First registered, first matched: register ``/users/me`` before
``/users/:id`` if both ever exist.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Dict, List
import re

from .request import HTTPRequest
from .response import HTTPResponse, not_found


Handler = Callable[[HTTPRequest], HTTPResponse]


@dataclass
class Route:
    """A registered (method, pattern) → handler binding."""

    path: str
    method: Optional[str]            # None = any method
    handler: Handler
    name: Optional[str] = None

    _pattern: Optional[re.Pattern] = field(default=None, repr=False)
    _param_names: List[str] = field(default_factory=list, repr=False)


@dataclass
class RouteMatch:
    """A successful match and the path parameters it captured."""
    route: Route
    params: Dict[str, str]


class Router:
    """
    HTTP request router with ``:param`` segments.

    Routes are registered with decorators:

        api = Router()

        @api.get("/users/:id")
        def get_user(request):
            user_id = request.path_params["id"]
            ...

    and routers compose by mounting one under a prefix:

        root = Router()
        root.include("/api", api)      # /users/:id → /api/users/:id
    """

    def __init__(self, prefix: str = ""):
        self.prefix = prefix.rstrip("/")
        self._routes: List[Route] = []

    # =========================================================================
    # ROUTE REGISTRATION
    # =========================================================================

    def add_route(
        self,
        path: str,
        handler: Handler,
        method: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Route:
        """
        Register a route under this router's prefix.

        Args:
            path: Pattern such as ``/users/:id``.
            handler: Callable taking a request, returning a response.
            method: HTTP method, or None to accept any.
            name: Optional route name (shows up in route listings).

        Returns:
            The registered Route.
        """
        full_path = self.prefix + path
        pattern, param_names = self._compile_pattern(full_path)

        route = Route(
            path=full_path,
            method=method.upper() if method else None,
            handler=handler,
            name=name or getattr(handler, "__name__", None),
            _pattern=pattern,
            _param_names=param_names,
        )
        self._routes.append(route)
        return route

    def _compile_pattern(self, path: str) -> tuple[re.Pattern, List[str]]:
        """
        Compile ``/users/:id`` into ``^/users/(?P<id>[^/]+)$``.

        Returns:
            (compiled regex, parameter names in order)
        """
        param_names: List[str] = []
        regex_parts = ["^"]

        for segment in path.split("/"):
            if not segment:
                continue

            regex_parts.append("/")
            if segment.startswith(":"):
                param_name = segment[1:]
                param_names.append(param_name)
                regex_parts.append(f"(?P<{param_name}>[^/]+)")
            else:
                regex_parts.append(re.escape(segment))

        if len(regex_parts) == 1:
            regex_parts.append("/")  # root pattern

        regex_parts.append("$")
        return re.compile("".join(regex_parts), re.IGNORECASE), param_names

    @staticmethod
    def _normalize(path: str) -> str:
        """Leading slash on, trailing slash off (except for "/")."""
        return "/" + path.strip("/") if path != "/" else "/"

    # =========================================================================
    # ROUTE MATCHING
    # =========================================================================

    def match(self, method: str, path: str) -> Optional[RouteMatch]:
        """
        Find the first route matching method and path.

        Returns:
            RouteMatch, or None when nothing matches.
        """
        path = self._normalize(path)
        method = method.upper()

        for route in self._routes:
            if route.method and route.method != method:
                # HEAD is served by the GET handler; the body is dropped on send
                if not (method == "HEAD" and route.method == "GET"):
                    continue
            match = route._pattern.match(path)
            if match:
                return RouteMatch(route=route, params=match.groupdict())

        return None

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Dispatch a request.

        The matched route's parameters are stored on
        ``request.path_params`` before the handler runs. Anything
        unmatched, including a known path under another method, answers
        404 ``{"error": "Cannot PATCH /api/users"}``.
        """
        match = self.match(request.method, request.path)

        if match:
            request.path_params = match.params
            return match.route.handler(request)

        return not_found(f"Cannot {request.method} {request.path}")

    # =========================================================================
    # DECORATOR-STYLE REGISTRATION
    # =========================================================================

    def route(
        self,
        path: str,
        method: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Callable[[Handler], Handler]:
        """Decorator form of add_route(); returns the handler unchanged."""
        def decorator(handler: Handler) -> Handler:
            self.add_route(path, handler, method, name)
            return handler
        return decorator

    def get(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route(path, "GET", name)

    def post(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route(path, "POST", name)

    def put(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route(path, "PUT", name)

    def delete(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route(path, "DELETE", name)

    def patch(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route(path, "PATCH", name)

    # =========================================================================
    # COMPOSITION
    # =========================================================================

    def include(self, prefix: str, router: "Router") -> None:
        """
        Mount another router's routes under ``prefix``.

        The routes are copied with the prefix applied and recompiled, so
        later registrations on ``router`` are not picked up.
        """
        mount = prefix.rstrip("/")
        for route in router.routes():
            self.add_route(
                mount + route.path,
                route.handler,
                route.method,
                route.name,
            )

    def routes(self) -> List[Route]:
        """All registered routes in match order."""
        return list(self._routes)

    def __len__(self) -> int:
        return len(self._routes)
