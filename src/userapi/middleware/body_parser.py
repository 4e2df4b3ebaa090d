"""
=============================================================================
BODY PARSING MIDDLEWARE
=============================================================================

The first two stages of the pipeline. Each parser checks Content-Type,
decodes a matching body, and stores the result on ``request.body_data``.
A request neither parser claims keeps the default ``{}``.

    Content-Type                          Parser              body_data
    ────────────────────────────────────  ──────────────────  ─────────────────
    application/json                      JSONBodyParser      dict or list
    application/x-www-form-urlencoded     URLEncodedParser    (nested) dict
    anything else / missing               (none)              {}

=============================================================================
FAILURES
=============================================================================

Parsers do not answer the client themselves. A body that cannot be parsed
raises BodyParseError, which carries the status a client error would
deserve (400, 413, 415) but travels to the error boundary like any other
exception. The boundary answers 500 regardless.

    malformed JSON                        400  → boundary → 500
    JSON top level not object/array       400  → boundary → 500
    body over ``limit`` bytes             413  → boundary → 500
    charset the parser cannot decode      415  → boundary → 500

=============================================================================
"""

import json
import logging
import re
from typing import Any, Dict, List
from urllib.parse import parse_qsl

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest, HTTPParseError
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


DEFAULT_LIMIT = 100 * 1024  # 100 KiB, the body-parser default


class BodyParseError(HTTPParseError):
    """A request body that could not be turned into ``body_data``."""


class _BodyParser(Middleware):
    """Shared size/charset handling for the concrete parsers."""

    def __init__(self, limit: int = DEFAULT_LIMIT):
        self.limit = limit

    def matches(self, request: HTTPRequest) -> bool:
        raise NotImplementedError

    def parse(self, request: HTTPRequest, text: str) -> Any:
        raise NotImplementedError

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        if self.matches(request):
            request.body_data = self._read(request)
        return next(request)

    def _read(self, request: HTTPRequest) -> Any:
        if len(request.body) > self.limit:
            raise BodyParseError(
                f"request entity too large: {len(request.body)} > {self.limit} bytes",
                status_code=413,
            )
        if not request.body:
            return {}

        charset = request.charset
        try:
            text = request.body.decode(charset)
        except LookupError:
            raise BodyParseError(f'unsupported charset "{charset.upper()}"', status_code=415)
        except UnicodeDecodeError as e:
            raise BodyParseError(f"invalid {charset} body: {e}")

        return self.parse(request, text)


class JSONBodyParser(_BodyParser):
    """
    Parse JSON bodies.

    Only ``application/json`` is claimed; vendor types such as
    ``application/vnd.api+json`` pass through unparsed. Strict: only an
    object or array may appear at the top level, so ``"hello"`` or ``42``
    as a whole body is rejected.
    """

    def matches(self, request: HTTPRequest) -> bool:
        return request.content_type == "application/json"

    def parse(self, request: HTTPRequest, text: str) -> Any:
        if not request.charset.startswith("utf-"):
            raise BodyParseError(
                f'unsupported charset "{request.charset.upper()}"',
                status_code=415,
            )

        stripped = text.lstrip(" \t\r\n")
        if not stripped:
            return {}
        if stripped[0] not in "{[":
            raise BodyParseError(f"Unexpected token {stripped[0]!r} in JSON at position 0")

        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise BodyParseError(f"Invalid JSON body: {e}")


# =============================================================================
# URL-ENCODED FORMS
# =============================================================================
#
# Extended mode understands bracket keys the way the ``qs`` module does:
#
#     user[name]=Ann&user[age]=30   → {"user": {"name": "Ann", "age": "30"}}
#     tags[]=a&tags[]=b             → {"tags": ["a", "b"]}
#     color=red&color=blue          → {"color": ["red", "blue"]}
#
# All leaf values are strings.
#
# =============================================================================

_BRACKET = re.compile(r"\[([^\[\]]*)\]")


def split_key(key: str) -> List[str]:
    """
    ``"a[b][]"`` → ``["a", "b", ""]``.

    Keys that do not follow the ``head[part][part]`` shape are returned
    whole, as a single literal segment.
    """
    head, bracket, _ = key.partition("[")
    if not bracket or not head:
        return [key]

    parts = [head]
    pos = len(head)
    for match in _BRACKET.finditer(key, pos):
        if match.start() != pos:
            break
        parts.append(match.group(1))
        pos = match.end()

    if pos != len(key):
        return [key]
    return parts


def _set_leaf(target: Dict[str, Any], key: str, value: str) -> None:
    # repeated keys collect into a list
    if key not in target:
        target[key] = value
    elif isinstance(target[key], list):
        target[key].append(value)
    else:
        target[key] = [target[key], value]


def assign_nested(target: Dict[str, Any], parts: List[str], value: str) -> None:
    """Store ``value`` in ``target`` at the path given by ``parts``."""
    key, rest = parts[0], parts[1:]

    if not rest:
        _set_leaf(target, key, value)
        return

    if rest == [""]:
        existing = target.get(key)
        if isinstance(existing, list):
            existing.append(value)
        elif existing is None:
            target[key] = [value]
        else:
            target[key] = [existing, value]
        return

    child = target.get(key)
    if not isinstance(child, dict):
        child = {}
        target[key] = child
    assign_nested(child, rest, value)


class URLEncodedParser(_BodyParser):
    """
    Parse ``application/x-www-form-urlencoded`` bodies.

    Args:
        limit: Maximum body size in bytes.
        extended: Build nested objects from bracket keys (default) or
                  keep keys flat.
        parameter_limit: Maximum number of fields; more is a 413.
    """

    CONTENT_TYPE = "application/x-www-form-urlencoded"

    def __init__(
        self,
        limit: int = DEFAULT_LIMIT,
        extended: bool = True,
        parameter_limit: int = 1000,
    ):
        super().__init__(limit)
        self.extended = extended
        self.parameter_limit = parameter_limit

    def matches(self, request: HTTPRequest) -> bool:
        return request.content_type == self.CONTENT_TYPE

    def parse(self, request: HTTPRequest, text: str) -> Dict[str, Any]:
        try:
            pairs = parse_qsl(
                text,
                keep_blank_values=True,
                max_num_fields=self.parameter_limit,
            )
        except ValueError:
            raise BodyParseError("too many parameters", status_code=413)

        result: Dict[str, Any] = {}
        for key, value in pairs:
            if self.extended:
                assign_nested(result, split_key(key), value)
            else:
                _set_leaf(result, key, value)
        return result
