"""
=============================================================================
HTTP SERVER
=============================================================================

Wires configuration, context, router, application and acceptor
together into a runnable server.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ┌─────────────────┐                          │
    │                        │   HTTPServer    │                          │
    │                        │  (orchestrator) │                          │
    │                        └────────┬────────┘                          │
    │            ┌────────────────────┼────────────────────┐              │
    │            ▼                    ▼                    ▼              │
    │    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐         │
    │    │ SocketServer │    │ Application  │    │ServerContext │         │
    │    │ (accept,     │    │ (parse,      │    │ (stats,      │         │
    │    │  threads)    │    │  dispatch,   │    │  config)     │         │
    │    └──────┬───────┘    │  serialize)  │    └──────────────┘         │
    │           ▼            └──────┬───────┘                             │
    │    ┌──────────────┐           ▼                                     │
    │    │  Connection  │    ┌──────────────┐                             │
    │    │ (read/send)  │    │    Router    │──► handlers / static files  │
    │    └──────────────┘    └──────────────┘                             │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    1. SocketServer accepts and starts a thread for the connection
    2. Connection buffers one request (timeout → 408, too big → 413)
    3. Application parses, dispatches and serializes
    4. Connection sends the bytes and closes

The route table is built exactly once, in __init__, and frozen before
the first connection is accepted.

=============================================================================
INTERVIEW QUESTIONS ABOUT WEB SERVERS
=============================================================================

Q: "What happens during graceful shutdown?"
A: "1. Stop accepting new connections
   2. Close the listening socket
   3. Join in-flight connection threads, bounded by shutdown_timeout
   4. Log anything still running"

Q: "How would you test this without a network?"
A: "Call Application.handle() with raw bytes. Everything except the
   socket layer is reachable that way."

=============================================================================
"""

from typing import Optional, Tuple
import logging

from .app import Application, build_router
from .config import ServerConfig
from .context import ServerContext
from .core import Connection, RequestTooLargeError, SocketServer
from .http.router import Router
from .http.status_codes import HTTPStatus
from .logs import setup_logging
from .stats import Stats


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    The runnable server.

    =========================================================================
    USAGE
    =========================================================================

        server = HTTPServer(ServerConfig(port=8080, document_root="./public"))
        server.run()          # blocks; Ctrl+C or SIGTERM stops it

        # From another thread (tests):
        thread = threading.Thread(target=server.run)
        thread.start()
        server.wait_until_ready(5)
        host, port = server.address
        ...
        server.shutdown()
        thread.join()

    =========================================================================
    """

    def __init__(self, config: Optional[ServerConfig] = None,
                 router: Optional[Router] = None, configure_logging: bool = True):
        """
        Args:
            config:            Server configuration; validated here.
            router:            Pre-built router. Built from config when omitted.
                               Its context must carry this same config; with
                               no config given, the router's config is used.
            configure_logging: Call setup_logging() when run() starts.

        Raises:
            ValueError: If the configuration is invalid, or the router's
                        context holds a different ServerConfig.
        """
        if router is not None:
            if config is None:
                config = router.context.config
            elif config is not router.context.config:
                raise ValueError("router.context.config is not the server's config")

        self.config = config or ServerConfig()
        self.config.validate()
        self.configure_logging = configure_logging

        if router is not None:
            self.context = router.context
            self.router = router
        else:
            self.context = ServerContext(stats=Stats(), config=self.config)
            self.router = build_router(self.context)
        self.router.freeze()

        self.app = Application(self.router, self.context)
        self._socket_server = SocketServer(self.config, self._handle_connection)

    @property
    def stats(self) -> Stats:
        return self.context.stats

    @property
    def address(self) -> Tuple[str, int]:
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._socket_server.is_running

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self) -> None:
        """Start serving. Blocks until shutdown() or a signal."""
        if self.configure_logging:
            setup_logging(self.config.effective_log_level)

        logger.info(f"Starting {self.config.server_name}")
        logger.info(f"Document root: {self.config.document_root}")
        logger.info("Routes:")
        self.router.log_routes()

        try:
            self._socket_server.start()
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
            self._socket_server.shutdown()
        finally:
            logger.info("Server stopped")

    def shutdown(self) -> None:
        """Ask the server to stop; run() returns once threads are joined."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_for_shutdown(timeout)

    # =========================================================================
    # CONNECTION HANDLING (runs on the connection's own thread)
    # =========================================================================

    def _handle_connection(self, conn: Connection) -> None:
        with conn:
            try:
                raw = conn.read_request()
            except TimeoutError:
                logger.debug(f"[{conn.id}] Read timed out")
                data = self.app.reject(HTTPStatus.REQUEST_TIMEOUT, "Request timeout", conn.address)
            except RequestTooLargeError as e:
                logger.warning(f"[{conn.id}] {e}")
                data = self.app.reject(HTTPStatus.PAYLOAD_TOO_LARGE, "Request too large", conn.address)
            else:
                if not raw.strip():
                    logger.debug(f"[{conn.id}] Client closed without sending a request")
                    return
                data = self.app.handle(raw, conn.address)

            if conn.send_response(data):
                logger.debug(f"[{conn.id}] {conn.client_ip} done in {conn.age * 1000:.1f}ms")


def create_app(config: Optional[ServerConfig] = None) -> HTTPServer:
    """
    Factory for a server with the default routes.

    Example:
        server = create_app(ServerConfig(document_root="./public"))
        server.run()
    """
    return HTTPServer(config)
