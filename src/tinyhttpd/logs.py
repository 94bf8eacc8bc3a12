"""
=============================================================================
LOGGING
=============================================================================

Process-wide logging setup plus the access log.

=============================================================================
LOGGER HIERARCHY
=============================================================================

    tinyhttpd                          <- level set by setup_logging()
    ├── tinyhttpd.access               <- one line per request
    ├── tinyhttpd.app
    ├── tinyhttpd.server
    ├── tinyhttpd.core.socket_server
    ├── tinyhttpd.core.connection
    ├── tinyhttpd.http.router          <- handler tracebacks (500s)
    └── tinyhttpd.handlers.static      <- traversal warnings, read errors

Every module does ``logger = logging.getLogger(__name__)``, so the tree
above falls out of the package layout. To silence access lines while
keeping errors:

    logging.getLogger("tinyhttpd.access").setLevel(logging.WARNING)

=============================================================================
ACCESS LOG FORMATS
=============================================================================

    TEXT (Apache style, default):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ 127.0.0.1 - - [19/Oct/2026:10:55:36 +0000] "GET /static/a.css"      │
    │     200 1234 0.41ms                                                 │
    └─────────────────────────────────────────────────────────────────────┘

    JSON (for log aggregators):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ {"method": "GET", "path": "/static/a.css", "client_ip": "127.0.0.1",│
    │  "status_code": 200, "content_length": 1234, "duration_ms": 0.41,   │
    │  ...}                                                               │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from dataclasses import dataclass
from typing import Optional
import json
import logging
import time


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ACCESS_LOGGER_NAME = "tinyhttpd.access"


def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger and the ``tinyhttpd`` logger level.

    Safe to call more than once; basicConfig only installs a handler the
    first time.
    """
    numeric = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(level=numeric, format=LOG_FORMAT, datefmt=DATE_FORMAT)
    logging.getLogger("tinyhttpd").setLevel(numeric)


@dataclass
class RequestLog:
    """
    Structured access log entry.

    Fields:
        method:         Request method, "-" if the request line was empty
        path:           Request path
        query:          Raw query parameters, rendered as "k=v&k2=v2"
        client_ip:      Peer address
        user_agent:     User-Agent header or "-"
        status_code:    Response status
        content_length: Response body size in bytes
        duration_ms:    Time from bytes-in to bytes-ready
        timestamp:      Local time in Apache format
    """

    method: str
    path: str
    query: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        return {
            "method": self.method,
            "path": self.path,
            "query": self.query,
            "client_ip": self.client_ip,
            "user_agent": self.user_agent,
            "status_code": self.status_code,
            "content_length": self.content_length,
            "duration_ms": round(self.duration_ms, 2),
            "timestamp": self.timestamp,
        }

    def to_text(self) -> str:
        """Apache-style line, readable by the usual log tools."""
        target = f"{self.path}?{self.query}" if self.query else self.path
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {target}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class AccessLogger:
    """
    Emits one RequestLog per finished request.

    Usage:
        access = AccessLogger(log_format="json")
        access.log(request, response, ("127.0.0.1", 50412), duration_ms=0.8)
    """

    def __init__(self, log_format: str = "text", level: int = logging.INFO,
                 logger: Optional[logging.Logger] = None):
        self.log_format = log_format
        self.level = level
        self.logger = logger or logging.getLogger(ACCESS_LOGGER_NAME)

    def build_entry(self, request, response, client_address, duration_ms: float) -> RequestLog:
        query = "&".join(f"{k}={v}" for k, v in request.query_params.items())
        return RequestLog(
            method=request.method or "-",
            path=request.path,
            query=query,
            client_ip=client_address[0] if client_address else "-",
            user_agent=request.get_header("User-Agent") or "-",
            status_code=int(response.status),
            content_length=len(response.body),
            duration_ms=duration_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

    def log(self, request, response, client_address, duration_ms: float) -> None:
        if not self.logger.isEnabledFor(self.level):
            return

        entry = self.build_entry(request, response, client_address, duration_ms)
        if self.log_format == "json":
            self.logger.log(self.level, json.dumps(entry.to_dict()))
        else:
            self.logger.log(self.level, entry.to_text())
