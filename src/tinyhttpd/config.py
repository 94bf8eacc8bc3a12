"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Everything the outer layers (CLI, environment) decide before the core
starts. The core itself only ever sees two plain values out of this:
the document root and the static prefix.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │   Priority (highest to lowest):                                     │
    │                                                                     │
    │   1. Command-line arguments                                         │
    │      └── python -m tinyhttpd --port 3000 --root ./public            │
    │                                                                     │
    │   2. Environment variables                                          │
    │      └── TINYHTTPD_PORT=3000 python -m tinyhttpd                    │
    │                                                                     │
    │   3. Default values (in this dataclass)                             │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
INTERVIEW QUESTIONS ABOUT CONFIGURATION
=============================================================================

Q: "How do you validate configuration?"
A: "Eagerly, at startup. validate() raises ValueError with a clear
   message and the CLI exits non-zero. A typo in --error-format should
   never surface as a 500 on the first 404."

Q: "Why allow port 0?"
A: "The OS then picks a free ephemeral port. Tests rely on it so they
   can run in parallel without colliding."

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")
ERROR_FORMATS = ("html", "json")


@dataclass
class ServerConfig:
    """
    Configuration for tinyhttpd.

    Development:
        ServerConfig(port=8080, document_root="./public", verbose=True)

    Tests:
        ServerConfig(port=0, document_root=str(tmp_path))
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """Address to bind. "0.0.0.0" listens on every interface."""

    port: int = 8080
    """Port to listen on. 0 lets the OS pick a free one."""

    backlog: int = 128
    """Maximum number of queued, not yet accepted connections."""

    buffer_size: int = 8192
    """Bytes requested per recv() call."""

    timeout: Optional[float] = 30.0
    """
    Per-connection socket timeout in seconds.
    A client that stalls longer than this gets 408 Request Timeout.
    """

    max_request_size: int = 10 * 1024 * 1024
    """Largest request (head plus body) we are willing to buffer."""

    shutdown_timeout: float = 5.0
    """How long shutdown waits for in-flight connection threads."""

    # ─────────────────────────────────────────────────────────────────────
    # STATIC FILES
    # ─────────────────────────────────────────────────────────────────────

    document_root: str = "./public"
    """Directory static requests are resolved against."""

    static_prefix: str = "/static"
    """
    URL prefix delegated to the static file responder.
    "/static/css/site.css" is served from <document_root>/css/site.css.
    """

    # ─────────────────────────────────────────────────────────────────────
    # RESPONSES
    # ─────────────────────────────────────────────────────────────────────

    error_format: str = "html"
    """Body format for generic error pages: "html" or "json"."""

    server_name: str = "tinyhttpd/1.0"
    """Value of the Server response header. Empty string omits it."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    verbose: bool = False
    """Shortcut for log_level="DEBUG"."""

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    log_format: str = "text"
    """Access log format: "text" (Apache style) or "json"."""

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.verbose else self.log_level.upper()

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        TINYHTTPD_HOST           Bind address (default: 127.0.0.1)
        TINYHTTPD_PORT           Port (default: 8080)
        TINYHTTPD_ROOT           Document root (default: ./public)
        TINYHTTPD_STATIC_PREFIX  Static URL prefix (default: /static)
        TINYHTTPD_ERROR_FORMAT   html | json (default: html)
        TINYHTTPD_TIMEOUT        Socket timeout in seconds (default: 30)
        TINYHTTPD_LOG_LEVEL      Logging level (default: INFO)
        TINYHTTPD_LOG_FORMAT     text | json (default: text)
        TINYHTTPD_VERBOSE        1/true/yes enables DEBUG logging

        =====================================================================

        Raises:
            ValueError: If a numeric variable does not parse.
        """
        defaults = cls()
        return cls(
            host=os.getenv("TINYHTTPD_HOST", defaults.host),
            port=int(os.getenv("TINYHTTPD_PORT", str(defaults.port))),
            document_root=os.getenv("TINYHTTPD_ROOT", defaults.document_root),
            static_prefix=os.getenv("TINYHTTPD_STATIC_PREFIX", defaults.static_prefix),
            error_format=os.getenv("TINYHTTPD_ERROR_FORMAT", defaults.error_format),
            timeout=float(os.getenv("TINYHTTPD_TIMEOUT", str(defaults.timeout))),
            log_level=os.getenv("TINYHTTPD_LOG_LEVEL", defaults.log_level),
            log_format=os.getenv("TINYHTTPD_LOG_FORMAT", defaults.log_format),
            verbose=os.getenv("TINYHTTPD_VERBOSE", "").lower() in ("1", "true", "yes"),
        )

    def validate(self) -> None:
        """
        Validate configuration values; fail fast at startup.

        Raises:
            ValueError: On the first invalid setting found.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if not self.static_prefix.startswith("/") or self.static_prefix == "/":
            raise ValueError(
                f"static_prefix must start with '/' and name a path segment, "
                f"got {self.static_prefix!r}"
            )

        if self.static_prefix.endswith("/"):
            raise ValueError(f"static_prefix must not end with '/': {self.static_prefix!r}")

        if not self.document_root:
            raise ValueError("document_root must not be empty")

        if self.error_format not in ERROR_FORMATS:
            raise ValueError(f"error_format must be one of {ERROR_FORMATS}")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {LOG_FORMATS}")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.max_request_size < self.buffer_size:
            raise ValueError("max_request_size must be >= buffer_size")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.shutdown_timeout < 0:
            raise ValueError("shutdown_timeout must be >= 0")


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Typed configuration with a dataclass
# 2. TINYHTTPD_* environment variables via from_env()
# 3. Fail-fast validate() before anything binds a socket
#
# Only document_root and static_prefix reach the routing core; the rest
# configures the acceptor and logging around it.
# =============================================================================
