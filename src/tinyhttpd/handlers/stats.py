"""
=============================================================================
STATS REPORTING HANDLER
=============================================================================

Serves a snapshot of the server's request counters.

    GET /stats
    ┌─────────────────────────────────────────────────────────────────────┐
    │ {                                                                   │
    │   "total": 42,           requests received since startup            │
    │   "active": 1,           requests in flight (this one included)     │
    │   "success": 38,         finished with status < 400                 │
    │   "error": 3,            finished with status >= 400                │
    │   "uptime_seconds": 91.2                                            │
    │ }                                                                   │
    └─────────────────────────────────────────────────────────────────────┘

    GET /stats?format=text gives the same numbers as "key: value" lines,
    handy with curl.

The request asking for stats is itself counted: it was started before
dispatch and has not ended yet, so ``active`` is always at least 1 here.

Like health checks, stats must never be cached, hence
``Cache-Control: no-store``.

=============================================================================
"""

from ..context import ServerContext
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder


class StatsHandler:
    """
    Reports ``context.stats`` as JSON or plain text.

    Usage:
        router.register("GET", "/stats", StatsHandler())
    """

    def __init__(self, indent=None):
        """
        Args:
            indent: JSON indentation; None for compact output.
        """
        self.indent = indent

    def __call__(self, request: HTTPRequest, context: ServerContext) -> HTTPResponse:
        data = context.stats.snapshot().to_dict()
        builder = ResponseBuilder().header("Cache-Control", "no-store")

        if request.get_query("format") == "text":
            lines = [f"{key}: {value}" for key, value in data.items()]
            return builder.text("\n".join(lines) + "\n").build()

        return builder.json(data, indent=self.indent).build()
