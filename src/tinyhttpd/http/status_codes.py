"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The subset of RFC 7231 status codes that tinyhttpd actually emits, with
their reason phrases.

=============================================================================
WHICH CODES DOES A ROUTER NEED?
=============================================================================

    ┌────────┬───────────────────────────────────────────────────────────┐
    │  Code  │ Produced by                                               │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  200   │ Route handlers, StaticFileResponder on a successful read  │
    │  400   │ Connection layer when nothing usable arrived              │
    │  403   │ StaticFileResponder when a path escapes the root          │
    │  404   │ Router (no route) and StaticFileResponder (no file)       │
    │  408   │ Connection layer when the client never finished sending   │
    │  413   │ Connection layer when the request is larger than allowed  │
    │  500   │ Handler faults and file read failures                     │
    └────────┴───────────────────────────────────────────────────────────┘

Everything in the 4xx/5xx range counts as an error in Stats; anything
below 400 counts as a success.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes as an integer enum.

    Because this is an IntEnum, members compare equal to plain ints:

        HTTPStatus.NOT_FOUND == 404    # True
        int(HTTPStatus.OK)             # 200

    The reason phrase lives on the ``phrase`` property so the serializer
    can build "HTTP/1.1 404 Not Found" without a second lookup table at
    the call site.
    """

    # 2xx Success
    OK = 200
    CREATED = 201
    NO_CONTENT = 204

    # 3xx Redirection
    MOVED_PERMANENTLY = 301
    FOUND = 302
    NOT_MODIFIED = 304

    # 4xx Client errors
    BAD_REQUEST = 400
    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    REQUEST_TIMEOUT = 408
    PAYLOAD_TOO_LARGE = 413

    # 5xx Server errors
    INTERNAL_SERVER_ERROR = 500
    NOT_IMPLEMENTED = 501
    SERVICE_UNAVAILABLE = 503

    @property
    def phrase(self) -> str:
        """Reason phrase for the status line, e.g. "Not Found"."""
        return _STATUS_PHRASES.get(self.value, "Unknown")

    @property
    def is_success(self) -> bool:
        return 200 <= self.value < 300

    @property
    def is_error(self) -> bool:
        """True for any 4xx or 5xx code."""
        return self.value >= 400


def reason_phrase(code: int) -> str:
    """
    Reason phrase for any integer code, known to the enum or not.

    Handlers may return plain ints such as 418; those still need a
    status line, so unknown codes fall back to "Unknown".
    """
    return _STATUS_PHRASES.get(int(code), "Unknown")


_STATUS_PHRASES = {
    200: "OK",
    201: "Created",
    204: "No Content",
    301: "Moved Permanently",
    302: "Found",
    304: "Not Modified",
    400: "Bad Request",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    408: "Request Timeout",
    413: "Payload Too Large",
    418: "I'm a teapot",
    500: "Internal Server Error",
    501: "Not Implemented",
    503: "Service Unavailable",
}
