"""
Request handlers.

UsersResource holds the CRUD handlers for the in-memory user store and
the auth-gated probe; users_router() builds the router the app mounts
under ``/api``.
"""

from .users import UsersResource, users_router, parse_id

__all__ = ["UsersResource", "users_router", "parse_id"]
