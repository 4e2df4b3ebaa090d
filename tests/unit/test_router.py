"""
Unit tests for URL router.
"""

import pytest

from userapi.http.router import Router, Route, RouteMatch
from userapi.http.request import HTTPRequest
from userapi.http.response import HTTPResponse, ResponseBuilder
from userapi.http.status_codes import HTTPStatus


def make_request(method: str, path: str) -> HTTPRequest:
    """Helper to create a request for testing."""
    return HTTPRequest(method=method, path=path)


def dummy_handler(request: HTTPRequest) -> HTTPResponse:
    """Dummy handler for testing."""
    return ResponseBuilder().json({"path": request.path}).build()


class TestRouter:
    """Tests for Router class."""

    def test_add_route(self):
        """Test adding routes."""
        router = Router()
        router.add_route("/users", dummy_handler, method="get")

        routes = router.routes()
        assert len(routes) == 1
        assert routes[0].path == "/users"
        assert routes[0].method == "GET"
        assert routes[0].name == "dummy_handler"

    def test_match_with_method(self):
        """Same path, different methods, different routes."""
        router = Router()
        router.add_route("/users", dummy_handler, method="GET")
        router.add_route("/users", dummy_handler, method="POST")

        assert router.match("GET", "/users").route.method == "GET"
        assert router.match("POST", "/users").route.method == "POST"

    def test_match_dynamic_params(self):
        """Test dynamic path parameters."""
        router = Router()
        router.add_route("/users/:id", dummy_handler, method="GET")
        router.add_route("/users/:user_id/posts/:post_id", dummy_handler, method="GET")

        match = router.match("GET", "/users/123")
        assert isinstance(match, RouteMatch)
        assert match.params == {"id": "123"}

        match = router.match("GET", "/users/456/posts/789")
        assert match.params == {"user_id": "456", "post_id": "789"}

    def test_param_does_not_span_segments(self):
        router = Router()
        router.add_route("/users/:id", dummy_handler, method="GET")

        assert router.match("GET", "/users/1/extra") is None
        assert router.match("GET", "/users") is None

    def test_trailing_slash_and_case_are_ignored(self):
        router = Router()
        router.add_route("/users", dummy_handler, method="GET")

        assert router.match("GET", "/users/") is not None
        assert router.match("GET", "/USERS") is not None

    def test_head_uses_get_route(self):
        router = Router()
        router.add_route("/users", dummy_handler, method="GET")

        match = router.match("HEAD", "/users")
        assert match is not None
        assert match.route.method == "GET"

    def test_handle_success(self):
        """Test handling a request successfully."""
        router = Router()

        @router.get("/hello")
        def hello(request):
            return ResponseBuilder().text("Hello!").build()

        response = router.handle(make_request("GET", "/hello"))

        assert response.status == HTTPStatus.OK
        assert response.body == b"Hello!"

    def test_handle_not_found_uses_cannot_message(self):
        router = Router()
        router.add_route("/users", dummy_handler, method="GET")

        response = router.handle(make_request("GET", "/posts"))

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.json_body() == {"error": "Cannot GET /posts"}

    def test_handle_other_method_is_not_found(self):
        """A known path under an unregistered method answers 404."""
        router = Router()
        router.add_route("/users", dummy_handler, method="GET")

        response = router.handle(make_request("POST", "/users"))

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.json_body() == {"error": "Cannot POST /users"}
        assert "Allow" not in response.headers

    def test_path_params_in_request(self):
        """Test that path params are injected into request."""
        router = Router()

        @router.get("/users/:id")
        def get_user(request):
            return ResponseBuilder().json(request.path_params).build()

        request = make_request("GET", "/users/42")
        router.handle(request)

        assert request.path_params == {"id": "42"}

    def test_first_registered_route_wins(self):
        router = Router()
        router.add_route("/users/:id", lambda r: ResponseBuilder().text("param").build(), "GET")
        router.add_route("/users/me", lambda r: ResponseBuilder().text("static").build(), "GET")

        assert router.handle(make_request("GET", "/users/me")).body == b"param"


class TestRouterDecorators:
    """Tests for decorator-style route registration."""

    @pytest.mark.parametrize("verb", ["get", "post", "put", "delete", "patch"])
    def test_verb_decorators(self, verb):
        router = Router()

        @getattr(router, verb)("/test")
        def handler(request):
            return ResponseBuilder().text("test").build()

        assert router.routes()[0].method == verb.upper()

    def test_decorator_returns_handler(self):
        router = Router()

        @router.get("/test", name="probe")
        def handler(request):
            return ResponseBuilder().text("test").build()

        assert callable(handler)
        assert router.routes()[0].name == "probe"


class TestRouterComposition:
    """Tests for prefixes and mounted routers."""

    def test_router_prefix(self):
        router = Router(prefix="/api/")
        router.add_route("/users", dummy_handler, method="GET")

        assert router.match("GET", "/api/users") is not None
        assert router.match("GET", "/users") is None

    def test_include_mounts_under_prefix(self):
        users = Router()
        users.add_route("/users/:id", dummy_handler, method="GET")
        users.add_route("/protected", dummy_handler, method="GET")

        app = Router()
        app.include("/api", users)

        match = app.match("GET", "/api/users/5")
        assert match.params == {"id": "5"}
        assert match.route.path == "/api/users/:id"
        assert app.match("GET", "/api/protected") is not None
        assert app.match("GET", "/users/5") is None
        assert len(app) == 2

    def test_include_copies_routes(self):
        users = Router()
        app = Router()
        app.include("/api", users)

        users.add_route("/late", dummy_handler, method="GET")

        assert app.match("GET", "/api/late") is None

    def test_route_is_dataclass_record(self):
        router = Router()
        route = router.add_route("/x", dummy_handler, method="GET")

        assert isinstance(route, Route)
        assert route.handler is dummy_handler
