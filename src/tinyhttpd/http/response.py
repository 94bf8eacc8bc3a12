"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Provides the HTTPResponse container, a fluent ResponseBuilder, and the
wire serializer that turns a response into the exact bytes written to
the socket.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  HTTP/1.1 200 OK\\r\\n                 <- status line                │
    │  Content-Type: text/html\\r\\n         <- caller headers, in the     │
    │  X-Custom: 1\\r\\n                        order they were set        │
    │  Server: tinyhttpd/1.0\\r\\n           <- added unless caller set it │
    │  Content-Length: 9\\r\\n               <- always recomputed          │
    │  Connection: close\\r\\n               <- always present             │
    │  \\r\\n                                                               │
    │  <p>hi</p>                           <- body                        │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
SERIALIZATION RULES
=============================================================================

1. DETERMINISTIC ORDER
   Caller headers come out in insertion order, followed by the headers
   the serializer owns. There is no Date header, so the same response
   always serializes to the same bytes. That makes responses trivially
   comparable in tests.

2. CONTENT-LENGTH IS NEVER TRUSTED
   Whatever a handler put in Content-Length (in any capitalization) is
   dropped and replaced with len(body). A handler that forgets to update
   the header after changing the body cannot corrupt framing.

3. ONE REQUEST PER CONNECTION
   The server closes the socket after every response, and says so with
   "Connection: close". Caller-set Connection headers are dropped.

=============================================================================
THE BUILDER PATTERN
=============================================================================

    response = (ResponseBuilder()
        .status(HTTPStatus.OK)
        .json({"total": 3})
        .header("Cache-Control", "no-store")
        .build())

    Every method except build()/to_bytes() returns ``self``, so settings
    chain in whatever order reads best.

=============================================================================
INTERVIEW QUESTIONS ABOUT HTTP RESPONSES
=============================================================================

Q: "How does the client know when the response body ends?"
A: "Content-Length gives the exact byte count. Since we also close the
   connection after each response, EOF is a second signal, but a
   correct Content-Length is what lets clients stop reading early."

Q: "Why count bytes rather than characters?"
A: "'héllo' is 5 characters and 6 UTF-8 bytes. Content-Length is
   defined in octets, so we measure the encoded body."

=============================================================================
"""

from dataclasses import dataclass, field
from html import escape
from typing import Any, Dict, Optional, Union
import json

from .status_codes import HTTPStatus, reason_phrase


# Headers the serializer computes itself; caller values are discarded
_MANAGED_HEADERS = frozenset({"content-length", "connection"})


@dataclass
class HTTPResponse:
    """
    An HTTP response waiting to be serialized.

    Handlers create one per request; the connection layer consumes it
    exactly once through to_bytes().

    Attributes:
        status:  Status code (HTTPStatus member or any plain int)
        headers: Header name -> value, kept in insertion order
        body:    Body bytes
        reason:  Reason phrase override; the standard phrase when None
    """

    status: int = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    reason: Optional[str] = None
    version: str = "HTTP/1.1"

    @property
    def reason_phrase(self) -> str:
        if self.reason is not None:
            return self.reason
        return reason_phrase(self.status)

    @property
    def status_line(self) -> str:
        """Example: "HTTP/1.1 404 Not Found"."""
        return f"{self.version} {int(self.status)} {self.reason_phrase}"

    @property
    def is_success(self) -> bool:
        """Anything below 400 counts as a success for Stats."""
        return int(self.status) < 400

    def get_header(self, name: str, default: str = "") -> str:
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return default

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        self.headers[name] = value
        return self

    def set_body(self, body: Union[str, bytes]) -> "HTTPResponse":
        """Set the body, encoding strings as UTF-8."""
        self.body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def to_bytes(self, server_name: Optional[str] = None) -> bytes:
        """
        Serialize to wire bytes.

        Args:
            server_name: Value for the Server header. Only added when
                         given and the caller did not set one already.

        Returns:
            Status line, headers, blank line and body, ready for
            socket.sendall().
        """
        lines = [self.status_line]

        has_server = False
        for name, value in self.headers.items():
            lowered = name.lower()
            if lowered in _MANAGED_HEADERS:
                continue
            if lowered == "server":
                has_server = True
            lines.append(f"{name}: {value}")

        if server_name and not has_server:
            lines.append(f"Server: {server_name}")

        lines.append(f"Content-Length: {len(self.body)}")
        lines.append("Connection: close")

        head = "\r\n".join(lines) + "\r\n\r\n"
        return head.encode("utf-8") + self.body


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

    Usage:
        response = (ResponseBuilder()
            .status(HTTPStatus.NOT_FOUND)
            .text("nothing here")
            .build())

        raw = ResponseBuilder().html("<p>hi</p>").to_bytes()
    """

    def __init__(self):
        self._status: int = HTTPStatus.OK
        self._reason: Optional[str] = None
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def status(self, code: int) -> "ResponseBuilder":
        self._status = code
        return self

    def reason(self, phrase: str) -> "ResponseBuilder":
        """Override the reason phrase on the status line."""
        self._reason = phrase
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def headers(self, headers: Dict[str, str]) -> "ResponseBuilder":
        self._headers.update(headers)
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def body(self, content: Union[str, bytes]) -> "ResponseBuilder":
        """Set the raw body. Strings are encoded as UTF-8."""
        self._body = content.encode("utf-8") if isinstance(content, str) else content
        return self

    def text(self, content: str) -> "ResponseBuilder":
        return self.content_type("text/plain; charset=utf-8").body(content)

    def html(self, content: str) -> "ResponseBuilder":
        return self.content_type("text/html; charset=utf-8").body(content)

    def json(self, data: Any, indent: Optional[int] = None) -> "ResponseBuilder":
        """Serialize ``data`` as JSON and set the matching Content-Type."""
        payload = json.dumps(data, indent=indent)
        return self.content_type("application/json").body(payload)

    def build(self) -> HTTPResponse:
        """Create the response. The builder can keep being used afterwards."""
        return HTTPResponse(
            status=self._status,
            headers=dict(self._headers),
            body=self._body,
            reason=self._reason,
        )

    def to_bytes(self, server_name: Optional[str] = None) -> bytes:
        return self.build().to_bytes(server_name)


# =============================================================================
# WIRE PARSING (clients and tests)
# =============================================================================

def parse_status_line(line: Union[str, bytes]) -> tuple[str, int, str]:
    """
    Split "HTTP/1.1 404 Not Found" into ("HTTP/1.1", 404, "Not Found").

    Raises:
        ValueError: If the line has no numeric status code.
    """
    if isinstance(line, bytes):
        line = line.decode("latin-1")
    line = line.rstrip("\r\n")

    parts = line.split(" ", 2)
    if len(parts) < 2 or not parts[1].isdigit():
        raise ValueError(f"Invalid status line: {line!r}")

    version, code = parts[0], int(parts[1])
    reason = parts[2] if len(parts) == 3 else ""
    return version, code, reason


def parse_response(data: bytes) -> HTTPResponse:
    """
    Parse serialized response bytes back into an HTTPResponse.

    The body is everything after the blank line; Content-Length is kept
    in ``headers`` as received so callers can check it.
    """
    head, _, body = data.partition(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")

    version, code, reason = parse_status_line(lines[0])
    headers: Dict[str, str] = {}
    for line in lines[1:]:
        name, sep, value = line.partition(": ")
        if sep:
            headers[name] = value

    return HTTPResponse(
        status=code, headers=headers, body=body, reason=reason, version=version
    )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def error_body(status: int, message: str, fmt: str = "html") -> tuple[str, bytes]:
    """
    Render a generic error page.

    Args:
        status:  Status code shown in the page
        message: Human-readable explanation
        fmt:     "html" or "json"

    Returns:
        (content_type, body)
    """
    code = int(status)
    phrase = reason_phrase(code)

    if fmt == "json":
        payload = {"error": message, "status": code}
        return "application/json", json.dumps(payload).encode("utf-8")

    title = escape(f"{code} {phrase}")
    page = (
        f"<!DOCTYPE html>\n"
        f"<html><head><title>{title}</title></head>\n"
        f"<body><h1>{title}</h1><p>{escape(message)}</p></body></html>\n"
    )
    return "text/html; charset=utf-8", page.encode("utf-8")


def error_response(status: int, message: str, fmt: str = "html") -> HTTPResponse:
    """Build an error response in the configured body format."""
    content_type, body = error_body(status, message, fmt)
    return HTTPResponse(
        status=status, headers={"Content-Type": content_type}, body=body
    )


def ok(body: Union[str, bytes] = b"", content_type: str = "text/plain; charset=utf-8") -> HTTPResponse:
    """200 OK with the given body."""
    return ResponseBuilder().content_type(content_type).body(body).build()


def json_response(data: Any, status: int = HTTPStatus.OK) -> HTTPResponse:
    return ResponseBuilder().status(status).json(data).build()


def forbidden(message: str = "Forbidden", fmt: str = "html") -> HTTPResponse:
    return error_response(HTTPStatus.FORBIDDEN, message, fmt)


def not_found(message: str = "Not Found", fmt: str = "html") -> HTTPResponse:
    return error_response(HTTPStatus.NOT_FOUND, message, fmt)


def internal_error(message: str = "Internal Server Error", fmt: str = "html") -> HTTPResponse:
    return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, message, fmt)
