"""
=============================================================================
SOCKET SERVER
=============================================================================

Binds, listens, accepts, and runs each connection on its own thread.

=============================================================================
THREAD-PER-CONNECTION WITH EXPLICIT JOIN
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                     │
    │   main thread                       connection threads              │
    │   ───────────                       ──────────────────              │
    │   bind / listen                                                     │
    │   ready.set()                                                       │
    │   while running:                                                    │
    │       accept()  ─── 1s timeout ───  (re-checks running)             │
    │       Thread(handle, conn).start() ──►  conn-1  read/handle/send    │
    │       _threads.add(t)              ──►  conn-2  read/handle/send    │
    │                                          │                          │
    │                                          └── _threads.discard(t)    │
    │   shutdown():                                                       │
    │       running = False                                               │
    │       close listening socket                                        │
    │       join every tracked thread (bounded by shutdown_timeout)       │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

Threads are non-daemon and tracked in a lock-protected set, so none is
ever left detached: shutdown waits for them, and anything still running
after the timeout is reported by name.

=============================================================================
INTERVIEW QUESTIONS
=============================================================================

Q: "Why does accept() have a timeout?"
A: "A blocking accept() would never notice that shutdown() flipped the
   running flag. Waking once a second to re-check is simple and
   portable."

Q: "Why only install signal handlers in the main thread?"
A: "signal.signal() raises ValueError anywhere else. Tests run the
   server on a background thread and stop it with shutdown() instead."

=============================================================================
"""

from typing import Callable, Optional, Set, Tuple
import logging
import signal
import socket
import threading
import time

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


ConnectionHandler = Callable[[Connection], None]


class SocketServer:
    """
    Low-level TCP acceptor.

    Usage:
        def handle(conn: Connection) -> None:
            with conn:
                conn.send_response(app.handle(conn.read_request()))

        server = SocketServer(config, handle)
        server.start()          # blocks until shutdown()
    """

    def __init__(self, config: ServerConfig, connection_handler: ConnectionHandler):
        self.config = config
        self.connection_handler = connection_handler

        self._socket: Optional[socket.socket] = None
        self._running = False
        self._ready = threading.Event()
        self._stopped = threading.Event()
        self._bound_address: Optional[Tuple[str, int]] = None

        self._threads: Set[threading.Thread] = set()
        self._threads_lock = threading.Lock()
        self._connection_count = 0

        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); the real port once bound, even with port 0."""
        if self._bound_address is not None:
            return self._bound_address
        return (self.config.host, self.config.port)

    @property
    def active_connections(self) -> int:
        with self._threads_lock:
            return len(self._threads)

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening. False on timeout."""
        return self._ready.wait(timeout) and self._running

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """Block until start() has returned. False on timeout."""
        return self._stopped.wait(timeout)

    # =========================================================================
    # SOCKET SETUP
    # =========================================================================

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Allow immediate rebinding after a restart (TIME_WAIT)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # Send small responses immediately
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        sock.settimeout(1.0)
        return sock

    def _setup_signals(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread; skipping signal handlers")
            return

        def shutdown_handler(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, initiating shutdown...")
            self.shutdown()

        for sig in (signal.SIGTERM, signal.SIGINT):
            self._original_handlers[sig] = signal.signal(sig, shutdown_handler)

    def _restore_signals(self) -> None:
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self) -> None:
        """
        Bind, listen and accept until shutdown() is called.

        Raises:
            OSError: If the address cannot be bound.
        """
        self._stopped.clear()
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
            self._socket.listen(self.config.backlog)
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            self._ready.set()
            self._stopped.set()
            raise

        self._bound_address = self._socket.getsockname()[:2]
        self._running = True
        self._setup_signals()
        self._ready.set()

        host, port = self._bound_address
        logger.info(f"Server listening on {host}:{port}")

        try:
            self._accept_loop()
        finally:
            self._cleanup()

    def _accept_loop(self) -> None:
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            logger.debug(
                f"Accepted connection from {client_address[0]}:{client_address[1]} "
                f"({self.active_connections} already active)"
            )
            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                max_request_size=self.config.max_request_size,
            )
            self._spawn(conn)

    def _spawn(self, conn: Connection) -> None:
        self._connection_count += 1
        thread = threading.Thread(
            target=self._run_connection,
            args=(conn,),
            name=f"conn-{self._connection_count}",
        )
        with self._threads_lock:
            self._threads.add(thread)
        thread.start()

    def _run_connection(self, conn: Connection) -> None:
        try:
            self.connection_handler(conn)
        except Exception:
            logger.exception(f"[{conn.id}] Connection handler failed")
            conn.close()
        finally:
            with self._threads_lock:
                self._threads.discard(threading.current_thread())

    def shutdown(self) -> None:
        """
        Stop accepting. Idempotent and callable from any thread,
        including a signal handler; start() does the joining.
        """
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self) -> None:
        self._restore_signals()

        if self._socket is not None:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._join_threads(self.config.shutdown_timeout)
        self._stopped.set()
        logger.info("Socket server stopped")

    def _join_threads(self, timeout: float) -> None:
        """Join every tracked thread; ``timeout`` bounds the whole wait."""
        with self._threads_lock:
            threads = list(self._threads)

        if threads:
            logger.info(f"Waiting for {len(threads)} connection(s) to finish...")

        deadline = time.monotonic() + timeout
        for thread in threads:
            thread.join(max(0.0, deadline - time.monotonic()))

        with self._threads_lock:
            leftover = [t.name for t in self._threads if t.is_alive()]
        if leftover:
            logger.warning(f"Connections still running after shutdown: {', '.join(leftover)}")
