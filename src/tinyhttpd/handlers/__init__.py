"""
=============================================================================
BUILT-IN HANDLERS
=============================================================================

1. StaticFileResponder / serve()
   - Serves regular files below a document root
   - Rejects traversal lexically and again after resolving symlinks
   - Content-Type from a fixed extension table

2. StatsHandler
   - JSON (or plain-text) snapshot of the request counters

3. index / health / echo
   - Small stateless handlers mounted by default

=============================================================================
USAGE
=============================================================================

    from tinyhttpd.handlers import StaticFileResponder, StatsHandler, index

    router.register("GET", "/", index)
    router.register("GET", "/stats", StatsHandler())
    router.mount_static("/static", StaticFileResponder("./public"))

=============================================================================
"""

from .static import StaticFileResponder, serve
from .stats import StatsHandler
from .builtin import GREETING, index, health, echo

__all__ = [
    "StaticFileResponder",
    "serve",
    "StatsHandler",
    "GREETING",
    "index",
    "health",
    "echo",
]
