"""
=============================================================================
COMMAND LINE INTERFACE
=============================================================================

    python -m tinyhttpd [options]
    tinyhttpd [options]              (console script)

Options override TINYHTTPD_* environment variables, which override the
ServerConfig defaults.

=============================================================================
"""

from typing import List, Optional
import argparse
import sys

from . import __version__
from .config import ERROR_FORMATS, LOG_FORMATS, ServerConfig
from .server import create_app


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tinyhttpd",
        description="Minimal HTTP/1.1 router and static file server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m tinyhttpd                          # Run with defaults
  python -m tinyhttpd --port 3000              # Custom port
  python -m tinyhttpd --root ./public          # Serve ./public under /static
  python -m tinyhttpd --static-prefix /assets  # Serve it under /assets instead
  python -m tinyhttpd -v --log-format json     # Debug logging, JSON access log
        """,
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 127.0.0.1, use 0.0.0.0 for containers)",
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 8080, 0 picks a free port)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # STATIC FILES
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--root", "-r",
        dest="document_root",
        default=None,
        help="Document root for static files (default: ./public)",
    )
    parser.add_argument(
        "--static-prefix",
        default=None,
        help="URL prefix that serves the document root (default: /static)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # OUTPUT
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--error-format",
        choices=ERROR_FORMATS,
        default=None,
        help="Body format for error pages (default: html)",
    )
    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=None,
        help="Access log format (default: text)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"tinyhttpd {__version__}",
    )

    return parser


def build_config(argv: Optional[List[str]] = None) -> ServerConfig:
    """
    Environment first, then any option given on the command line.

    Raises:
        SystemExit: On bad arguments (argparse).
        ValueError: If the resulting configuration is invalid.
    """
    args = build_parser().parse_args(argv)
    config = ServerConfig.from_env()

    for name in ("host", "port", "document_root", "static_prefix", "error_format", "log_format"):
        value = getattr(args, name)
        if value is not None:
            setattr(config, name, value)

    if args.verbose:
        config.verbose = True

    config.validate()
    return config


def main(argv: Optional[List[str]] = None) -> int:
    try:
        config = build_config(argv)
        server = create_app(config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        server.run()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
