"""
=============================================================================
APPLICATION
=============================================================================

The seam between the connection layer and the routing core. It takes
the bytes one connection delivered and returns the bytes to write back.

=============================================================================
REQUEST PIPELINE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  raw bytes                                                          │
    │      │                                                              │
    │      ▼                                                              │
    │  stats.record_request_start()                                       │
    │      │                                                              │
    │      ▼                                                              │
    │  RequestParser.parse()       never raises                           │
    │      │                                                              │
    │      ▼                                                              │
    │  Router.dispatch()           handler faults already become 500      │
    │      │                                                              │
    │      ▼                                                              │
    │  HTTPResponse.to_bytes()                                            │
    │      │                                                              │
    │      ▼                                                              │
    │  stats.record_request_end(status < 400)      (always, in finally)   │
    │      │                                                              │
    │      ▼                                                              │
    │  access log line                                                    │
    │      │                                                              │
    │      ▼                                                              │
    │  response bytes                                                     │
    └─────────────────────────────────────────────────────────────────────┘

handle() is the last line of defence: if anything above still raises,
the client gets a 500 and the connection thread carries on.

=============================================================================
"""

from typing import Optional
import logging
import time

from .config import ServerConfig
from .context import ServerContext
from .handlers import StaticFileResponder, StatsHandler, echo, health, index
from .http.request import RequestParser
from .http.response import HTTPResponse, error_response
from .http.router import Router
from .http.status_codes import HTTPStatus
from .logs import AccessLogger


logger = logging.getLogger(__name__)


def build_router(context: ServerContext) -> Router:
    """
    Build the route table from configuration. Called once at startup.

    Routes:
        GET  /                          index
        GET  /health                    health
        GET  /stats                     StatsHandler
        POST /echo                      echo
        *    <static_prefix>/...        StaticFileResponder(document_root)

    The returned router is frozen.
    """
    config = context.config
    router = Router(context, error_format=config.error_format)

    router.register("GET", "/", index)
    router.register("GET", "/health", health)
    router.register("GET", "/stats", StatsHandler())
    router.register("POST", "/echo", echo)

    router.mount_static(
        config.static_prefix,
        StaticFileResponder(config.document_root, error_format=config.error_format),
    )

    router.freeze()
    return router


class Application:
    """
    Bytes in, bytes out.

    Example:
        app = Application.from_config(ServerConfig(document_root="./public"))
        raw = app.handle(b"GET /static/test.html HTTP/1.1\\r\\n\\r\\n")
    """

    def __init__(self, router: Router, context: ServerContext,
                 access_logger: Optional[AccessLogger] = None):
        self.router = router
        self.context = context
        self.parser = RequestParser()
        self.access_logger = access_logger or AccessLogger(context.config.log_format)

    @classmethod
    def from_config(cls, config: Optional[ServerConfig] = None) -> "Application":
        context = ServerContext(config=config or ServerConfig())
        return cls(build_router(context), context)

    @property
    def config(self) -> ServerConfig:
        return self.context.config

    def handle(self, raw: bytes, client_address: tuple = ("", 0)) -> bytes:
        """
        Turn one buffered request into response bytes. Never raises.

        Args:
            raw:            Everything read from the connection.
            client_address: Peer (ip, port), for the access log only.
        """
        started = time.perf_counter()
        stats = self.context.stats
        stats.record_request_start()

        request = None
        response: Optional[HTTPResponse] = None
        try:
            request = self.parser.parse(raw)
            response = self.router.dispatch(request)
            data = response.to_bytes(self.config.server_name)
        except Exception:
            logger.exception("Unexpected error while handling request")
            response = error_response(
                HTTPStatus.INTERNAL_SERVER_ERROR, "Internal Server Error", self.config.error_format
            )
            data = response.to_bytes(self.config.server_name)
        finally:
            stats.record_request_end(success=response is not None and response.is_success)

        if request is not None:
            duration_ms = (time.perf_counter() - started) * 1000
            self.access_logger.log(request, response, client_address, duration_ms)

        return data

    def reject(self, status: int, message: str, client_address: tuple = ("", 0)) -> bytes:
        """
        Response bytes for a request the connection layer could not read
        (timeout, oversized, empty). Counted as an error in Stats.
        """
        stats = self.context.stats
        stats.record_request_start()
        try:
            response = error_response(status, message, self.config.error_format)
            return response.to_bytes(self.config.server_name)
        finally:
            stats.record_request_end(success=False)
            logger.info(f"{client_address[0] or '-'} rejected: {int(status)} {message}")
