"""
Per-server state handed to every route handler.

Handlers are plain functions ``handler(request, context) -> HTTPResponse``.
Anything they need beyond the request itself (counters, configuration)
comes in through this object rather than through globals or closures.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from .config import ServerConfig
from .stats import Stats

if TYPE_CHECKING:
    from .http.request import HTTPRequest
    from .http.response import HTTPResponse


@dataclass(frozen=True)
class ServerContext:
    """
    Shared, explicitly passed server state.

    The context object itself is immutable; ``stats`` is the only
    mutable thing reachable from it, and it guards itself with a lock.
    """

    stats: Stats = field(default_factory=Stats)
    config: ServerConfig = field(default_factory=ServerConfig)


Handler = Callable[["HTTPRequest", ServerContext], "HTTPResponse"]
