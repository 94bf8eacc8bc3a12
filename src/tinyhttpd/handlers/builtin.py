"""
Built-in route handlers.

    GET  /        plain-text greeting
    GET  /health  liveness probe
    POST /echo    echoes the body and query parameters back as JSON

Every handler has the same shape: ``handler(request, context)``. None of
them keep state between calls.
"""

from ..context import ServerContext
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder


GREETING = "Hello from tinyhttpd!\n"


def index(request: HTTPRequest, context: ServerContext) -> HTTPResponse:
    return ResponseBuilder().text(GREETING).build()


def health(request: HTTPRequest, context: ServerContext) -> HTTPResponse:
    """
    Liveness probe: 200 whenever the process can answer at all.
    The document root is not checked.
    """
    uptime = context.stats.snapshot().uptime_seconds
    return (ResponseBuilder()
        .json({"status": "alive", "uptime_seconds": int(uptime)})
        .header("Cache-Control", "no-store")
        .build())


def echo(request: HTTPRequest, context: ServerContext) -> HTTPResponse:
    """
    Echo the request body back.

    The body is decoded as UTF-8 with replacement so binary input cannot
    make the handler fail.
    """
    return ResponseBuilder().json({
        "method": request.method,
        "path": request.path,
        "query": request.query_params,
        "content_type": request.get_header("Content-Type") or None,
        "body": request.body.decode("utf-8", errors="replace"),
        "length": len(request.body),
    }).build()
