"""
Security headers.

Applies the usual browser hardening headers to every response that passes
through, and strips ``X-Powered-By`` so the server does not advertise its
stack. Values are fixed defaults; pass ``overrides`` to change or add one,
or map a name to None to leave it off.

    SecurityHeadersMiddleware(overrides={"X-Frame-Options": "DENY"})
    SecurityHeadersMiddleware(overrides={"Strict-Transport-Security": None})
"""

from typing import Dict, Optional

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


CONTENT_SECURITY_POLICY = ";".join([
    "default-src 'self'",
    "base-uri 'self'",
    "font-src 'self' https: data:",
    "form-action 'self'",
    "frame-ancestors 'self'",
    "img-src 'self' data:",
    "object-src 'none'",
    "script-src 'self'",
    "script-src-attr 'none'",
    "style-src 'self' https: 'unsafe-inline'",
    "upgrade-insecure-requests",
])

DEFAULT_SECURITY_HEADERS: Dict[str, str] = {
    "Content-Security-Policy": CONTENT_SECURITY_POLICY,
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}


class SecurityHeadersMiddleware(Middleware):
    """Set the hardening headers on every response."""

    def __init__(self, overrides: Optional[Dict[str, Optional[str]]] = None):
        headers: Dict[str, Optional[str]] = dict(DEFAULT_SECURITY_HEADERS)
        headers.update(overrides or {})
        self.headers = {name: value for name, value in headers.items() if value is not None}

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        response = next(request)
        for name, value in self.headers.items():
            response.set_header(name, value)
        response.remove_header("X-Powered-By")
        return response
