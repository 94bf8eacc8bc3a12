"""
=============================================================================
CORE NETWORKING
=============================================================================

The transport layer around the routing core:

    SocketServer  bind / listen / accept, one thread per connection,
                  explicit join on shutdown
    Connection    buffered read of one request, sendall, close

Neither knows anything about HTTP semantics beyond finding the end of
the headers and honouring Content-Length for framing. What to answer is
decided by tinyhttpd.app.Application.

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, RequestTooLargeError

__all__ = [
    "SocketServer",
    "Connection",
    "RequestTooLargeError",
]
