"""
=============================================================================
CORE NETWORKING
=============================================================================

    socket_server.py   bind/listen/accept loop, signal handling
    connection.py      per-client socket, request framing, keep-alive
    thread_pool.py     bounded worker pool serving connections

One worker serves one connection at a time, request after request, until
the client closes it or it goes idle.

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState
from .thread_pool import ThreadPool

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "ThreadPool",
]
