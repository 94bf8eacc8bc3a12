"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Pure, synchronous transformations over bytes that are already in memory:

    raw bytes ──► RequestParser ──► HTTPRequest
                                        │
                                        ▼
                                     Router ──► handler / static responder
                                        │
                                        ▼
    wire bytes ◄── to_bytes() ◄─── HTTPResponse

Nothing in this package touches a socket. The connection layer in
``tinyhttpd.core`` reads the bytes and writes the result.

Key points:
- Lines end with CRLF (\\r\\n); bare LF is tolerated on input
- Head and body are separated by an empty line
- Header lookups are case-insensitive, storage keeps the client's case
- Responses always carry an exact Content-Length and Connection: close

=============================================================================
"""

from .request import HTTPRequest, RequestParser, parse_request
from .response import (
    HTTPResponse,
    ResponseBuilder,
    parse_status_line,
    parse_response,
    error_response,
    ok,             # 200 OK
    json_response,  # 200 OK, application/json
    forbidden,      # 403 Forbidden
    not_found,      # 404 Not Found
    internal_error, # 500 Internal Server Error
)
from .router import Router, Route
from .status_codes import HTTPStatus
from .mime_types import get_mime_type


__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "parse_request",
    # Response building
    "HTTPResponse",
    "ResponseBuilder",
    "parse_status_line",
    "parse_response",
    "error_response",
    "ok",
    "json_response",
    "forbidden",
    "not_found",
    "internal_error",
    # Routing
    "Router",
    "Route",
    # Status codes
    "HTTPStatus",
    # MIME types
    "get_mime_type",
]
