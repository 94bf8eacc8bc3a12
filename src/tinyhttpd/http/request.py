"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns a fully buffered request byte sequence into an immutable
HTTPRequest. The parser is lenient by contract: it never raises, and
anything it cannot make sense of degrades to an empty default. A
garbage request therefore still flows through the router like any
other request and usually ends in a 404.

=============================================================================
HTTP REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                     │
    │  GET /search?q=tiny&page=2 HTTP/1.1\\r\\n      <- request line       │
    │  ─┬─ ───────────┬───────── ────┬───                                 │
    │   │             │              │                                    │
    │ Method      raw target      Version                                 │
    │                 │                                                   │
    │        ┌────────┴─────────┐                                         │
    │      /search        q=tiny&page=2                                   │
    │       path           query string                                   │
    │                                                                     │
    │  Host: localhost:8080\\r\\n                    <- headers            │
    │  Content-Length: 11\\r\\n                                            │
    │  \\r\\n                                        <- blank line         │
    │  hello world                                 <- body (11 bytes)     │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
LENIENCY RULES
=============================================================================

    Input                              Result
    ─────────────────────────────────  ──────────────────────────────────
    b""                                method="", path="/", version=""
    b"GET"                             method="GET", path="/"
    bare LF line endings               accepted like CRLF
    "?a=1&flag&a=2"                    {"a": "2"}  (no '=' ignored, last wins)
    "X-Broken-Header"                  skipped (no ": " separator)
    Content-Length: abc / -5           body = b""
    Content-Length: 100, 10 available  body = the 10 bytes present

No percent-decoding happens anywhere: "/a%20b" stays "/a%20b". That
keeps "%2e%2e" from turning into ".." behind the static responder's
back.

=============================================================================
INTERVIEW QUESTIONS ABOUT HTTP PARSING
=============================================================================

Q: "How do you know when the HTTP headers end?"
A: "At the first empty line. We look for \\r\\n\\r\\n, and also accept
   \\n\\n from sloppy clients, then split head from body there."

Q: "Why not raise on malformed input?"
A: "The caller would have to special-case every failure. A best-effort
   request is still a request: the router answers it with 404 and the
   connection closes normally."

Q: "Why keep header names exactly as received?"
A: "Handlers may want to echo them back verbatim. Lookups are still
   case-insensitive through get_header()."

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Optional
import logging


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HTTPRequest:
    """
    A parsed HTTP request.

    Built once per connection by RequestParser and never modified after
    that (the dataclass is frozen). Handlers receive it together with
    the server context and must treat it as read-only.

    Attributes:
        method:       Request method as received ("GET", "POST", or "" if missing)
        path:         Request path without the query string; never contains '?'
        version:      Protocol version as received ("HTTP/1.1", or "" if missing)
        query_params: Query string as a flat dict; last value wins on duplicates
        headers:      Header name -> value, names in the case the client sent
        body:         Body bytes, empty unless a usable Content-Length was sent
        raw:          The original buffer, kept for debugging
    """

    method: str
    path: str
    version: str = ""
    query_params: Dict[str, str] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    raw: bytes = field(default=b"", repr=False)

    def get_header(self, name: str, default: str = "") -> str:
        """
        Get a header value with a case-insensitive name lookup.

        Example:
            request.get_header("content-type")  # finds "Content-Type"
        """
        return _lookup(self.headers, name, default)

    def get_query(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get a query parameter, or ``default`` if it was not sent."""
        return self.query_params.get(name, default)

    @property
    def content_length(self) -> Optional[int]:
        """
        The declared Content-Length, or None if absent or unusable.

        Only non-negative integers count; anything else is treated as
        if the header had not been sent.
        """
        return _parse_length(self.get_header("Content-Length"))

    @property
    def is_known_method(self) -> bool:
        return self.method in RequestParser.VALID_METHODS


class RequestParser:
    """
    Parses raw request bytes into HTTPRequest objects.

    ==========================================================================
    PARSER PIPELINE
    ==========================================================================

        raw bytes
            │
            ▼
        1. split head / body at the first blank line
            │
            ▼
        2. decode head (UTF-8, undecodable bytes replaced), split lines
            │
            ▼
        3. request line  ──►  method, target, version
            │
            ▼
        4. target        ──►  path, query params
            │
            ▼
        5. header lines  ──►  headers
            │
            ▼
        6. Content-Length ──►  body = rest[:n]
            │
            ▼
        HTTPRequest

    ==========================================================================

    The parser holds no state between calls, so one instance can be
    shared by every connection thread.
    """

    VALID_METHODS = frozenset({
        "GET",
        "HEAD",
        "POST",
        "PUT",
        "DELETE",
        "PATCH",
        "OPTIONS",
    })

    def parse(self, buffer: bytes) -> HTTPRequest:
        """
        Parse a fully buffered request.

        Never raises for any byte input.

        Args:
            buffer: Everything the connection layer read for this request.

        Returns:
            The parsed HTTPRequest.
        """
        head, rest = self._split_head(buffer)

        text = head.decode("utf-8", errors="replace")
        lines = [line[:-1] if line.endswith("\r") else line
                 for line in text.split("\n")]

        method, target, version = self._parse_request_line(lines[0])
        path, query_params = self._parse_target(target)
        headers = self._parse_headers(lines[1:])

        body = b""
        length = _parse_length(_lookup(headers, "Content-Length"))
        if length is not None:
            # Fewer bytes than declared is not an error here; the
            # connection layer owns framing.
            body = rest[:length]
            if len(body) < length:
                logger.debug(
                    f"Short body: declared {length} bytes, got {len(body)}"
                )

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            query_params=query_params,
            headers=headers,
            body=body,
            raw=buffer,
        )

    @staticmethod
    def _split_head(buffer: bytes) -> tuple[bytes, bytes]:
        """Split at the earliest blank line, CRLF or bare LF style."""
        candidates = []
        for terminator in (b"\r\n\r\n", b"\n\n"):
            index = buffer.find(terminator)
            if index != -1:
                candidates.append((index, len(terminator)))

        if not candidates:
            return buffer, b""

        index, size = min(candidates)
        return buffer[:index], buffer[index + size:]

    @staticmethod
    def _parse_request_line(line: str) -> tuple[str, str, str]:
        """
        METHOD SP TARGET SP VERSION, split on any run of whitespace.

        Missing tokens become "". With fewer than two tokens there is no
        target at all, and the path defaults to "/".
        """
        tokens = line.split()
        method = tokens[0] if tokens else ""
        target = tokens[1] if len(tokens) >= 2 else "/"
        version = tokens[2] if len(tokens) >= 3 else ""
        return method, target, version

    @staticmethod
    def _parse_target(target: str) -> tuple[str, Dict[str, str]]:
        """
        Split "/path?a=1&b=2" once on '?' and parse the query string.

        Segments without '=' are ignored; repeated keys overwrite earlier
        ones.
        """
        path, _, query = target.partition("?")

        params: Dict[str, str] = {}
        for segment in query.split("&"):
            if "=" not in segment:
                continue
            key, value = segment.split("=", 1)
            params[key] = value

        return path, params

    @staticmethod
    def _parse_headers(lines: list[str]) -> Dict[str, str]:
        """
        Parse "Name: value" lines up to the first blank line.

        Lines without ": " and headers with no value are skipped.
        """
        headers: Dict[str, str] = {}
        for line in lines:
            if not line:
                break
            if ": " not in line:
                continue
            name, value = line.split(": ", 1)
            if not value.strip():
                continue
            headers[name] = value
        return headers


def _lookup(headers: Dict[str, str], name: str, default: str = "") -> str:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return default


def _parse_length(value: str) -> Optional[int]:
    value = value.strip()
    if not value.isascii() or not value.isdigit():
        return None
    return int(value)


_default_parser = RequestParser()


def parse_request(buffer: bytes) -> HTTPRequest:
    """
    Convenience function: parse with a shared RequestParser.

    The parser is stateless, so sharing one instance is safe.
    """
    return _default_parser.parse(buffer)
