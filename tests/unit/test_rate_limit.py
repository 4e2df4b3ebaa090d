"""
Unit tests for rate limiting middleware.
"""

import math

import pytest

from conftest import make_request
from userapi.http.response import ok
from userapi.http.status_codes import HTTPStatus
from userapi.middleware.rate_limit import DEFAULT_MESSAGE, RateLimitMiddleware


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class Counter:
    def __init__(self):
        self.calls = 0

    def __call__(self, request):
        self.calls += 1
        return ok({"ok": True})


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return RateLimitMiddleware(max_requests=100, window=900, clock=clock)


def hit(limiter, handler, ip="10.0.0.1"):
    return limiter(make_request("GET", "/api/users", client_ip=ip), handler)


class TestRateLimit:

    def test_headers_on_allowed_request(self, limiter, clock):
        response = hit(limiter, Counter())

        assert response.status == HTTPStatus.OK
        assert response.headers["X-RateLimit-Limit"] == "100"
        assert response.headers["X-RateLimit-Remaining"] == "99"
        assert response.headers["X-RateLimit-Reset"] == str(math.ceil(clock.now + 900))

    def test_101st_request_rejected(self, limiter):
        handler = Counter()
        for _ in range(100):
            assert hit(limiter, handler).status == HTTPStatus.OK

        response = hit(limiter, handler)

        assert response.status == HTTPStatus.TOO_MANY_REQUESTS
        assert response.body.decode() == DEFAULT_MESSAGE
        assert response.headers["Content-Type"].startswith("text/plain")
        assert response.headers["X-RateLimit-Remaining"] == "0"
        assert response.headers["Retry-After"] == "900"
        assert handler.calls == 100

    def test_retry_after_counts_down(self, limiter, clock):
        handler = Counter()
        for _ in range(100):
            hit(limiter, handler)

        clock.advance(42)
        assert hit(limiter, handler).headers["Retry-After"] == "858"

    def test_window_resets(self, limiter, clock):
        handler = Counter()
        for _ in range(101):
            hit(limiter, handler)

        clock.advance(900)
        response = hit(limiter, handler)

        assert response.status == HTTPStatus.OK
        assert response.headers["X-RateLimit-Remaining"] == "99"

    def test_clients_counted_separately(self, limiter):
        handler = Counter()
        for _ in range(100):
            hit(limiter, handler, ip="10.0.0.1")

        assert hit(limiter, handler, ip="10.0.0.1").status == HTTPStatus.TOO_MANY_REQUESTS
        assert hit(limiter, handler, ip="10.0.0.2").status == HTTPStatus.OK

    def test_rejected_requests_still_count(self, limiter):
        handler = Counter()
        for _ in range(105):
            hit(limiter, handler)

        assert limiter.hits("10.0.0.1") == 105

    def test_reset_one_client(self, limiter):
        handler = Counter()
        for _ in range(101):
            hit(limiter, handler)

        limiter.reset("10.0.0.1")
        assert hit(limiter, handler).status == HTTPStatus.OK

    def test_reset_all(self, limiter):
        handler = Counter()
        hit(limiter, handler, ip="a")
        hit(limiter, handler, ip="b")

        limiter.reset()
        assert limiter.hits("a") == 0
        assert limiter.hits("b") == 0

    def test_expired_windows_purged(self, limiter, clock):
        handler = Counter()
        hit(limiter, handler, ip="a")

        clock.advance(1000)
        hit(limiter, handler, ip="b")

        assert "a" not in limiter._windows
        assert "b" in limiter._windows

    def test_custom_key_func(self, clock):
        limiter = RateLimitMiddleware(
            max_requests=1,
            window=60,
            clock=clock,
            key_func=lambda request: request.get_header("x-api-key", "anonymous"),
        )
        handler = Counter()

        first = limiter(make_request("GET", "/", headers={"X-API-Key": "k1"}), handler)
        second = limiter(make_request("GET", "/", headers={"X-API-Key": "k1"}), handler)
        other = limiter(make_request("GET", "/", headers={"X-API-Key": "k2"}), handler)

        assert first.status == HTTPStatus.OK
        assert second.status == HTTPStatus.TOO_MANY_REQUESTS
        assert other.status == HTTPStatus.OK
