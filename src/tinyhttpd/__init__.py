"""
=============================================================================
TINYHTTPD - Minimal HTTP/1.1 Router and Static File Server
=============================================================================

A small, dependency-free HTTP server organised around a pure core:

    raw bytes ──► RequestParser ──► Router.dispatch ──► HTTPResponse.to_bytes
                                        │
                                        ├── exact (method, path) handlers
                                        └── StaticFileResponder (prefix mount)

Around the core:
    - core.SocketServer    one thread per connection, joined on shutdown
    - Stats                lock-protected request counters
    - ServerContext        explicitly passed to every handler
    - ServerConfig         dataclass + TINYHTTPD_* environment variables
    - logs                 stdlib logging setup and access log

=============================================================================
QUICK START
=============================================================================

    from tinyhttpd import HTTPServer, ServerConfig

    server = HTTPServer(ServerConfig(port=8080, document_root="./public"))
    server.run()

    # Or without sockets:
    from tinyhttpd import Application
    app = Application.from_config(ServerConfig(document_root="./public"))
    app.handle(b"GET /static/index.html HTTP/1.1\\r\\n\\r\\n")

=============================================================================
"""

__version__ = "1.0.0"

from .app import Application, build_router
from .config import ServerConfig
from .context import ServerContext
from .server import HTTPServer, create_app
from .stats import Stats, StatsSnapshot

__all__ = [
    "Application",
    "build_router",
    "HTTPServer",
    "create_app",
    "ServerConfig",
    "ServerContext",
    "Stats",
    "StatsSnapshot",
    "__version__",
]
