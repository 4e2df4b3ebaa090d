"""
=============================================================================
COMPRESSION MIDDLEWARE
=============================================================================

Compresses response bodies the client says it can decode.

    Request:   Accept-Encoding: gzip, deflate
    Response:  Content-Encoding: gzip
               Content-Length: 412          (compressed size)
               Vary: Accept-Encoding

A response is left untouched when any of these hold:

    - the body is smaller than ``threshold`` bytes (default 1 KiB)
    - the content type is not text-like (see COMPRESSIBLE_TYPES)
    - it already has a Content-Encoding
    - it carries ``Cache-Control: no-transform``
    - the request was HEAD, or the client accepts neither gzip nor deflate

Encoding preference is gzip, then deflate. Quality values in
Accept-Encoding are honoured, so ``gzip;q=0, deflate`` yields deflate.

=============================================================================
"""

import gzip
import logging
import zlib
from typing import Dict, Optional, Set

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


SUPPORTED_ENCODINGS = ("gzip", "deflate")


def parse_accept_encoding(header: str) -> Dict[str, float]:
    """``"gzip;q=0.8, br"`` → ``{"gzip": 0.8, "br": 1.0}``."""
    accepted: Dict[str, float] = {}
    for item in header.split(","):
        coding, _, params = item.strip().partition(";")
        coding = coding.strip().lower()
        if not coding:
            continue
        quality = 1.0
        for param in params.split(";"):
            key, _, value = param.strip().partition("=")
            if key.strip().lower() == "q":
                try:
                    quality = float(value)
                except ValueError:
                    quality = 0.0
        accepted[coding] = quality
    return accepted


def negotiate_encoding(header: str) -> Optional[str]:
    """Pick gzip or deflate for an Accept-Encoding value, or None."""
    accepted = parse_accept_encoding(header)
    wildcard = accepted.get("*", 0.0)

    best, best_q = None, 0.0
    for coding in SUPPORTED_ENCODINGS:
        quality = accepted.get(coding, wildcard)
        # strict > keeps gzip ahead of deflate on ties
        if quality > best_q:
            best, best_q = coding, quality
    return best


class CompressionMiddleware(Middleware):
    """
    gzip/deflate response compression.

    Args:
        threshold: Minimum body size in bytes worth compressing.
        level: zlib compression level (1-9).
        compressible_types: Media types eligible for compression.
    """

    COMPRESSIBLE_TYPES: Set[str] = {
        "text/html",
        "text/css",
        "text/plain",
        "text/xml",
        "text/javascript",
        "application/json",
        "application/javascript",
        "application/xml",
        "application/xhtml+xml",
        "image/svg+xml",
    }

    def __init__(
        self,
        threshold: int = 1024,
        level: int = 6,
        compressible_types: Optional[Set[str]] = None,
    ):
        self.threshold = threshold
        self.level = level
        self.compressible_types = compressible_types or self.COMPRESSIBLE_TYPES

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        response = next(request)

        if not self._is_compressible_type(response):
            return response

        response.append_vary("Accept-Encoding")

        if request.method == "HEAD" or not self._should_compress(response):
            return response

        encoding = negotiate_encoding(request.get_header("accept-encoding"))
        if encoding is None:
            return response

        original_size = len(response.body)
        response.body = self._compress(response.body, encoding)
        response.set_header("Content-Encoding", encoding)
        response.set_header("Content-Length", str(len(response.body)))

        logger.debug(f"{encoding}: {original_size} -> {len(response.body)} bytes")
        return response

    def _compress(self, body: bytes, encoding: str) -> bytes:
        if encoding == "gzip":
            return gzip.compress(body, compresslevel=self.level)
        return zlib.compress(body, self.level)

    def _is_compressible_type(self, response: HTTPResponse) -> bool:
        content_type = response.content_type
        return content_type in self.compressible_types or content_type.endswith("+json")

    def _should_compress(self, response: HTTPResponse) -> bool:
        if "Content-Encoding" in response.headers:
            return False
        if "no-transform" in response.headers.get("Cache-Control", "").lower():
            return False
        return len(response.body) >= self.threshold
