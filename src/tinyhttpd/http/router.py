"""
=============================================================================
URL ROUTER
=============================================================================

Maps (method, exact path) pairs to handler functions, with one special
case: a configurable path prefix that hands the rest of the path to the
static file responder.

=============================================================================
ROUTING FLOW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │   Incoming request: GET /static/css/site.css                        │
    │        │                                                            │
    │        ▼                                                            │
    │   1. STATIC MOUNT?                                                  │
    │      path == "/static" or path starts with "/static/"               │
    │        │ yes ──► responder.serve("css/site.css")   (any method)     │
    │        │ no                                                         │
    │        ▼                                                            │
    │   2. EXACT LOOKUP                                                   │
    │      ┌────────────────────────────────────────────────────────┐     │
    │      │ ("GET",  "/")       → index                            │     │
    │      │ ("GET",  "/stats")  → stats_handler                    │     │
    │      │ ("POST", "/echo")   → echo                             │     │
    │      └────────────────────────────────────────────────────────┘     │
    │        │ hit ──► handler(request, context)                          │
    │        │ miss                                                       │
    │        ▼                                                            │
    │   3. 404 in the configured error format (html or json)              │
    └─────────────────────────────────────────────────────────────────────┘

    Any exception a handler raises is caught in dispatch(), logged with
    its traceback, and answered with 500. One broken handler never takes
    a connection thread down with it.

=============================================================================
MATCHING RULES
=============================================================================

    Route "/users"
        "/users"        → match
        "/users/"       → 404   (no trailing-slash normalization)
        "/users?x=1"    → match (the parser already removed the query)

    Static prefix "/static"
        "/static"       → responder.serve("")       (a directory → 404)
        "/static/a.txt" → responder.serve("a.txt")
        "/staticfoo"    → exact lookup, not static  (segment boundary)

=============================================================================
INTERVIEW QUESTIONS ABOUT ROUTING
=============================================================================

Q: "Why a dict instead of a list of regexes?"
A: "With exact matching only, (method, path) is a perfect hash key.
   Lookup is O(1) no matter how many routes exist, and there is no
   ordering ambiguity between overlapping patterns."

Q: "Why pass a context object to handlers?"
A: "Handlers stay plain functions with no captured state. Counters and
   configuration arrive as an argument, so a handler can be unit-tested
   by handing it a fresh ServerContext."

Q: "Why freeze the table?"
A: "Connection threads read it concurrently without a lock. That is
   only safe if nobody writes to it after the server starts."

=============================================================================
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple
import logging

from .request import HTTPRequest
from .response import HTTPResponse, error_response
from .status_codes import HTTPStatus
from ..context import Handler, ServerContext


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Route:
    """
    A registered route.

    Example:
        @router.get("/stats")
        def stats(request, context):
            ...

        # Creates: Route(method="GET", path="/stats", handler=stats)
    """

    method: str
    path: str
    handler: Handler
    name: Optional[str] = None

    def __str__(self) -> str:
        return f"{self.method:7} {self.path}"


class Router:
    """
    Exact-match HTTP router with one static-file mount.

    =========================================================================
    USAGE
    =========================================================================

        router = Router(ServerContext(), error_format="json")

        @router.get("/")
        def index(request, context):
            return ok("hello")

        router.register("POST", "/echo", echo)
        router.mount_static("/static", StaticFileResponder("./public"))
        router.freeze()

        response = router.dispatch(parse_request(raw))

    =========================================================================
    """

    def __init__(self, context: Optional[ServerContext] = None, error_format: str = "html"):
        """
        Args:
            context:      Passed as the second argument to every handler.
            error_format: Body format ("html" or "json") for the 404 and
                          500 pages the router itself produces.
        """
        self.context = context if context is not None else ServerContext()
        self.error_format = error_format

        self._routes: Dict[Tuple[str, str], Route] = {}
        self._static_prefix: Optional[str] = None
        self._static_responder = None
        self._frozen = False

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def register(self, method: str, path: str, handler: Handler, name: Optional[str] = None) -> Route:
        """
        Register ``handler`` for an exact (method, path) pair.

        Registering the same pair twice replaces the earlier handler.

        Raises:
            RuntimeError: If the router has been frozen.
        """
        if self._frozen:
            raise RuntimeError("Cannot register routes after the router is frozen")

        key = (method.upper(), path)
        if key in self._routes:
            logger.warning(f"Replacing handler for {key[0]} {path}")

        route = Route(method=key[0], path=path, handler=handler, name=name)
        self._routes[key] = route
        return route

    def mount_static(self, prefix: str, responder) -> None:
        """
        Delegate every path under ``prefix`` to ``responder.serve()``.

        Args:
            prefix:    URL prefix such as "/static"; trailing slashes ignored.
            responder: Object with ``serve(relative_path) -> HTTPResponse``.
        """
        if self._frozen:
            raise RuntimeError("Cannot mount static files after the router is frozen")

        prefix = prefix.rstrip("/")
        if not prefix.startswith("/"):
            raise ValueError(f"Static prefix must start with '/': {prefix!r}")

        self._static_prefix = prefix
        self._static_responder = responder

    def freeze(self) -> None:
        """Make the route table read-only. Called once the server starts."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def static_prefix(self) -> Optional[str]:
        return self._static_prefix

    # =========================================================================
    # DECORATOR-STYLE REGISTRATION
    # =========================================================================
    #
    #     @router.get("/stats")
    #     def stats(request, context): ...
    #
    # is equivalent to:
    #
    #     router.register("GET", "/stats", stats)
    #
    # =========================================================================

    def route(self, path: str, method: str = "GET", name: Optional[str] = None) -> Callable[[Handler], Handler]:
        def decorator(handler: Handler) -> Handler:
            self.register(method, path, handler, name=name or handler.__name__)
            return handler
        return decorator

    def get(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route(path, "GET", name)

    def post(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route(path, "POST", name)

    def put(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route(path, "PUT", name)

    def delete(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route(path, "DELETE", name)

    # =========================================================================
    # MATCHING AND DISPATCH
    # =========================================================================

    def match(self, method: str, path: str) -> Optional[Route]:
        """Exact lookup; the static mount is not consulted."""
        return self._routes.get((method, path))

    def static_remainder(self, path: str) -> Optional[str]:
        """
        The part of ``path`` below the static prefix, or None if ``path``
        is not under it.

            "/static"           → ""
            "/static/a/b.css"   → "a/b.css"
            "/staticky"         → None
        """
        prefix = self._static_prefix
        if prefix is None or self._static_responder is None:
            return None
        if path == prefix:
            return ""
        if path.startswith(prefix + "/"):
            return path[len(prefix) + 1:]
        return None

    def dispatch(self, request: HTTPRequest) -> HTTPResponse:
        """
        Route ``request`` and return a response. Never raises.

        Returns:
            The static responder's or handler's response, a 404 when
            nothing matches, or a 500 when the handler fails.
        """
        try:
            response = self._dispatch(request)
        except Exception:
            logger.exception(f"Unhandled error in handler for {request.method} {request.path}")
            return error_response(
                HTTPStatus.INTERNAL_SERVER_ERROR, "Internal Server Error", self.error_format
            )

        if not isinstance(response, HTTPResponse):
            logger.error(
                f"Handler for {request.method} {request.path} returned "
                f"{type(response).__name__}, expected HTTPResponse"
            )
            return error_response(
                HTTPStatus.INTERNAL_SERVER_ERROR, "Internal Server Error", self.error_format
            )

        return response

    def _dispatch(self, request: HTTPRequest) -> HTTPResponse:
        remainder = self.static_remainder(request.path)
        if remainder is not None:
            return self._static_responder.serve(remainder)

        route = self.match(request.method, request.path)
        if route is None:
            logger.debug(f"No route for {request.method} {request.path}")
            return error_response(
                HTTPStatus.NOT_FOUND, f"No route matches {request.path}", self.error_format
            )

        return route.handler(request, self.context)

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    def routes(self) -> List[Route]:
        """All registered routes, in registration order."""
        return list(self._routes.values())

    def log_routes(self) -> None:
        """Log the route table at INFO, one line per route."""
        for route in self.routes():
            logger.info(f"  {route}")
        if self._static_prefix is not None:
            root = getattr(self._static_responder, "document_root", "?")
            logger.info(f"  {'*':7} {self._static_prefix}/... -> {root}")

    def __len__(self) -> int:
        return len(self._routes)


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Static mount checked first, on a path-segment boundary
# 2. Exact (method, path) dict lookup, no normalization
# 3. 404/500 bodies in the router's configured format
# 4. Handler exceptions stop at dispatch()
# =============================================================================
