"""
=============================================================================
USERS RESOURCE
=============================================================================

CRUD handlers over a UserStore plus the auth-gated probe, registered on a
Router that the application mounts under ``/api``.

    POST   /users        201 {"message": "User created", "user": {...}}
                         400 {"error": "Name and age are required."}
    GET    /users        200 [ {...}, ... ]
    GET    /users/:id    200 {...}            404 {"error": "User not found"}
    PUT    /users/:id    200 {"message": "User updated", "user": {...}}
                         404 {"error": "User not found"}
    DELETE /users/:id    200 {"message": "User deleted"}   (always)
    GET    /protected    200 {"message": "This is a protected route"}
                         401 {"error": "Unauthorized"}     (from the gate)

Handlers only perform the local checks above and return early. Anything
they do not anticipate propagates to the error boundary.

=============================================================================
"""

import logging
import re
from typing import Any, Mapping, Optional

from ..http import HTTPRequest, HTTPResponse, Router, ok, created, bad_request, not_found
from ..middleware.auth import AuthenticationGate
from ..store import UserStore, is_truthy


logger = logging.getLogger(__name__)


_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_id(raw: Optional[str]) -> Optional[int]:
    """
    Base-10 id parsing with ``parseInt`` semantics.

    Leading whitespace and a sign are allowed and parsing stops at the
    first non-digit, so ``"7"`` and ``"7abc"`` both give 7. Input without
    leading digits gives None, which matches no stored user.
    """
    if raw is None:
        return None
    match = _LEADING_INT.match(raw)
    return int(match.group(1)) if match else None


def body_fields(request: HTTPRequest) -> Mapping[str, Any]:
    """The parsed body if it is a mapping; arrays and scalars read as empty."""
    data = request.body_data
    return data if isinstance(data, Mapping) else {}


class UsersResource:
    """
    Handlers bound to one store.

    Keeping the store on an instance (instead of a global) lets each app,
    and each test, own an independent collection.
    """

    def __init__(self, store: UserStore, gate: Optional[AuthenticationGate] = None):
        self.store = store
        self.gate = gate or AuthenticationGate()

    def router(self) -> Router:
        """Build the resource router (paths relative to the mount point)."""
        router = Router()
        router.get("/protected")(self.gate.protect(self.protected))
        router.post("/users")(self.create_user)
        router.get("/users")(self.list_users)
        router.get("/users/:id")(self.get_user)
        router.put("/users/:id")(self.update_user)
        router.delete("/users/:id")(self.delete_user)
        return router

    def protected(self, request: HTTPRequest) -> HTTPResponse:
        return ok({"message": "This is a protected route"})

    def create_user(self, request: HTTPRequest) -> HTTPResponse:
        data = body_fields(request)
        name, age = data.get("name"), data.get("age")

        if not is_truthy(name) or not is_truthy(age):
            return bad_request("Name and age are required.")

        user = self.store.create(name, age)
        logger.debug(f"Created user {user.id}")
        return created({"message": "User created", "user": user.to_dict()})

    def list_users(self, request: HTTPRequest) -> HTTPResponse:
        return ok([user.to_dict() for user in self.store.list_all()])

    def get_user(self, request: HTTPRequest) -> HTTPResponse:
        user = self.store.get_by_id(parse_id(request.path_params.get("id")))
        if user is None:
            return not_found("User not found")
        return ok(user.to_dict())

    def update_user(self, request: HTTPRequest) -> HTTPResponse:
        user_id = parse_id(request.path_params.get("id"))
        user = self.store.update(user_id, body_fields(request))
        if user is None:
            return not_found("User not found")
        return ok({"message": "User updated", "user": user.to_dict()})

    def delete_user(self, request: HTTPRequest) -> HTTPResponse:
        self.store.delete_by_id(parse_id(request.path_params.get("id")))
        return ok({"message": "User deleted"})


def users_router(store: UserStore, gate: Optional[AuthenticationGate] = None) -> Router:
    """Shortcut for ``UsersResource(store, gate).router()``."""
    return UsersResource(store, gate).router()
