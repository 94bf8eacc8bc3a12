"""
=============================================================================
CONNECTION
=============================================================================

One accepted client socket, used for exactly one request.

=============================================================================
CONNECTION LIFECYCLE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                     │
    │   accept() ──► Connection ──► read_request() ──► send_response()    │
    │                   │                                    │            │
    │                   │                                    ▼            │
    │                   └──────────────────────────────► close()          │
    │                                                                     │
    │   There is no keep-alive loop: every response says                  │
    │   "Connection: close" and the socket is closed right after.         │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WHY BUFFER AT ALL?
=============================================================================

TCP is a byte stream. A single recv() may return half a request line,
or the headers without the body:

    recv() #1:  b"GET /static/a.css HT"
    recv() #2:  b"TP/1.1\\r\\nHost: x\\r\\n\\r\\n"

read_request() keeps calling recv() until the blank line has arrived,
then until Content-Length body bytes are in, then hands the whole
buffer to the parser. If the client closes early, whatever arrived is
returned; the lenient parser copes with partial input.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Optional
import logging
import socket
import time
import uuid


logger = logging.getLogger(__name__)


_TERMINATORS = (b"\r\n\r\n", b"\n\n")


class RequestTooLargeError(ValueError):
    """The client sent more than max_request_size bytes."""


@dataclass
class Connection:
    """
    A client socket plus read/write helpers.

    Usage:
        with Connection(client_socket, address) as conn:
            raw = conn.read_request()
            conn.send_response(app.handle(raw, conn.address))

    Attributes:
        socket:           The accepted client socket
        address:          Peer (ip, port)
        id:               Short random id for log correlation
        buffer_size:      Bytes per recv() call
        timeout:          Socket timeout in seconds, None to block forever
        max_request_size: Upper bound on buffered bytes
    """

    socket: socket.socket
    address: tuple

    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    created_at: float = field(default_factory=time.monotonic)

    buffer_size: int = 8192
    timeout: Optional[float] = 30.0
    max_request_size: int = 10 * 1024 * 1024

    closed: bool = field(default=False, init=False)

    def __post_init__(self):
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0] if self.address else ""

    @property
    def age(self) -> float:
        return time.monotonic() - self.created_at

    def read_request(self) -> bytes:
        """
        Read one complete request: head, then Content-Length body bytes.

        Returns:
            The buffered bytes. Empty if the client closed without
            sending anything.

        Raises:
            TimeoutError:         The client stalled longer than ``timeout``.
            RequestTooLargeError: More than ``max_request_size`` bytes.
        """
        buffer = b""

        try:
            # Headers
            while _head_end(buffer) is None:
                chunk = self._recv()
                if not chunk:
                    return buffer
                buffer += chunk
                self._check_size(buffer)

            # Body
            head_end, body_start = _head_end(buffer)
            expected = _content_length(buffer[:head_end])
            if expected > self.max_request_size:
                raise RequestTooLargeError(f"Declared body too large: {expected} bytes")

            while len(buffer) - body_start < expected:
                chunk = self._recv()
                if not chunk:
                    logger.debug(f"[{self.id}] Client closed before the body completed")
                    break
                buffer += chunk
                self._check_size(buffer)

        except socket.timeout:
            raise TimeoutError(f"Request read timed out after {self.timeout}s")

        return buffer

    def _recv(self) -> bytes:
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""

    def _check_size(self, buffer: bytes) -> None:
        if len(buffer) > self.max_request_size:
            raise RequestTooLargeError(f"Request too large: {len(buffer)} bytes")

    def send_response(self, data: bytes) -> bool:
        """
        Send all of ``data``. sendall() loops until the kernel took it.

        Returns:
            False if the client went away first.
        """
        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    def close(self) -> None:
        """Shut down the write side, then release the descriptor."""
        if self.closed:
            return
        self.closed = True

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            # Peer already gone
            pass

        try:
            self.socket.close()
        except OSError as e:
            logger.debug(f"[{self.id}] Error closing socket: {e}")

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def _head_end(buffer: bytes) -> Optional[tuple]:
    """(end of head, start of body) for the earliest blank line, or None."""
    found = None
    for terminator in _TERMINATORS:
        index = buffer.find(terminator)
        if index != -1 and (found is None or index < found[0]):
            found = (index, index + len(terminator))
    return found


def _content_length(head: bytes) -> int:
    """
    Content-Length from raw header bytes; 0 when absent or invalid.

    Only used for framing. The parser applies the same rules again on
    the buffered request.
    """
    text = head.decode("latin-1")
    for line in text.replace("\r\n", "\n").split("\n")[1:]:
        name, sep, value = line.partition(":")
        if sep and name.strip().lower() == "content-length":
            value = value.strip()
            # str.isdigit() also accepts "²" and other non-ASCII digits
            if value.isascii() and value.isdigit():
                return int(value)
            return 0
    return 0
