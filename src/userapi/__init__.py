"""
=============================================================================
USERAPI
=============================================================================

A small HTTP/1.1 JSON service for managing an in-memory list of users,
built directly on sockets and threads.

    python -m userapi                 # Server running at http://localhost:3000

    curl -X POST localhost:3000/api/users \\
         -H 'Content-Type: application/json' -d '{"name":"Ann","age":30}'
    curl localhost:3000/api/users
    curl -H 'Authorization: anything' localhost:3000/api/protected

Package layout:

    userapi/
    ├── app.py          create_app(): middleware order + /api mount
    ├── server.py       HTTPServer: connections → parser → handle()
    ├── config.py       ServerConfig
    ├── store.py        UserStore, User
    ├── handlers/       users resource
    ├── middleware/     body parsing, CORS, logging, compression,
    │                   security headers, rate limiting, auth, errors
    ├── http/           request, response, router, status codes
    └── core/           sockets, connections, thread pool

=============================================================================
"""

__version__ = "1.0.0"

from .app import create_app
from .config import ServerConfig
from .server import HTTPServer
from .store import User, UserStore

__all__ = ["create_app", "HTTPServer", "ServerConfig", "User", "UserStore", "__version__"]
