"""
=============================================================================
STATIC FILE RESPONDER
=============================================================================

Serves files from a document root, and nothing outside it.

=============================================================================
SECURITY: PATH TRAVERSAL
=============================================================================

    ATTACK ATTEMPT:
    ┌─────────────────────────────────────────────────────────────────────┐
    │  GET /static/../../etc/passwd HTTP/1.1                              │
    │                                                                     │
    │  Naive concatenation would read:                                    │
    │  /srv/www/../../etc/passwd  →  /etc/passwd                          │
    └─────────────────────────────────────────────────────────────────────┘

    We check twice, in this order:

    1. LEXICAL CHECK (no filesystem access at all)
       ┌──────────────────────────────────────────────────────────────────┐
       │ "a/./b/../c"         → normpath → "a/c"       OK                 │
       │ "../../etc/passwd"   → normpath → "../../..." 403, never touched │
       │ "a\\..\\..\\x"          → "a/../../x" → "../x"  403                 │
       │ "img.png\\x00.html"   → NUL byte              403                 │
       └──────────────────────────────────────────────────────────────────┘

    2. RESOLVED CHECK (follows symlinks)
       ┌──────────────────────────────────────────────────────────────────┐
       │ root/link -> /etc    "link/passwd" is lexically fine, but        │
       │ resolves to /etc/passwd, which is not under the resolved root:   │
       │ 403                                                              │
       └──────────────────────────────────────────────────────────────────┘

    PYTHON IDIOM:

        full_path = (root / relative).resolve()
        full_path.relative_to(root)   # raises ValueError if outside

=============================================================================
RESPONSE TABLE
=============================================================================

    ┌────────────────────────────────────────┬─────────┐
    │ Situation                              │ Status  │
    ├────────────────────────────────────────┼─────────┤
    │ Escapes the root (either check)        │ 403     │
    │ Missing, directory, socket, fifo...    │ 404     │
    │ Exists but unreadable / deleted mid-way│ 500     │
    │ Regular file read in full              │ 200     │
    └────────────────────────────────────────┴─────────┘

    None of these raise. A 500 here is logged at ERROR and answered; it
    never takes the connection thread down.

=============================================================================
INTERVIEW QUESTIONS ABOUT STATIC FILES
=============================================================================

Q: "Why isn't resolve() + relative_to() enough on its own?"
A: "It is enough for correctness, but it touches the filesystem for
   input that is obviously hostile. The lexical check rejects '..'
   escapes before any stat() or readlink() happens."

Q: "Why no percent-decoding?"
A: "The parser never decodes, so '%2e%2e' is a literal file name here,
   not '..'. Decoding in one layer and checking in another is a classic
   source of traversal bugs."

=============================================================================
"""

from pathlib import Path
from typing import Union
import logging
import os
import posixpath
import stat

from ..http.mime_types import get_mime_type
from ..http.response import HTTPResponse, error_response
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


class StaticFileResponder:
    """
    Resolves relative paths against a document root and returns file
    contents.

    =========================================================================
    USAGE
    =========================================================================

        static = StaticFileResponder("/srv/www", error_format="json")
        response = static.serve("css/site.css")

        # Usually mounted on a router instead:
        router.mount_static("/static", static)

    =========================================================================
    """

    def __init__(self, document_root: Union[str, Path], error_format: str = "html"):
        """
        Args:
            document_root: Directory every request is confined to. It does
                           not have to exist yet; until it does, every
                           request is a 404.
            error_format:  Body format for 403/404/500 pages.
        """
        self.document_root = Path(document_root).resolve()
        self.error_format = error_format

        if not self.document_root.is_dir():
            logger.warning(f"Document root does not exist: {self.document_root}")

    def serve(self, relative_path: str) -> HTTPResponse:
        """
        Serve ``relative_path`` from the document root.

        Args:
            relative_path: Path below the root, e.g. "css/site.css". Leading
                           slashes are ignored.

        Returns:
            200 with the file bytes, or a 403/404/500 error response.
        """
        # ─────────────────────────────────────────────────────────────────
        # LEXICAL CHECK
        # ─────────────────────────────────────────────────────────────────
        normalized = self._normalize(relative_path)
        if normalized is None:
            logger.warning(f"Path traversal attempt rejected: {relative_path!r}")
            return self._error(HTTPStatus.FORBIDDEN, "Access denied")

        candidate = self.document_root / normalized

        # ─────────────────────────────────────────────────────────────────
        # RESOLVED CHECK
        # ─────────────────────────────────────────────────────────────────
        try:
            resolved = candidate.resolve()
        except (OSError, RuntimeError) as e:
            # Symlink loops end up here
            logger.warning(f"Cannot resolve {candidate}: {e}")
            return self._not_found(relative_path)

        try:
            resolved.relative_to(self.document_root)
        except ValueError:
            logger.warning(
                f"Path escapes document root via symlink: {relative_path!r} -> {resolved}"
            )
            return self._error(HTTPStatus.FORBIDDEN, "Access denied")

        # ─────────────────────────────────────────────────────────────────
        # REGULAR FILES ONLY
        # ─────────────────────────────────────────────────────────────────
        try:
            mode = os.stat(resolved).st_mode
        except (FileNotFoundError, NotADirectoryError):
            return self._not_found(relative_path)
        except OSError as e:
            logger.error(f"Cannot stat {resolved}: {e}")
            return self._error(HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to read file")

        if not stat.S_ISREG(mode):
            return self._not_found(relative_path)

        # ─────────────────────────────────────────────────────────────────
        # READ
        # ─────────────────────────────────────────────────────────────────
        try:
            content = resolved.read_bytes()
        except OSError as e:
            logger.error(f"Error reading file {resolved}: {e}")
            return self._error(HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to read file")

        logger.debug(f"Serving {resolved} ({len(content)} bytes)")
        return HTTPResponse(
            status=HTTPStatus.OK,
            headers={"Content-Type": get_mime_type(candidate)},
            body=content,
        )

    @staticmethod
    def _normalize(relative_path: str):
        """
        Collapse "." and ".." without touching the filesystem.

        Returns the normalized relative path, or None if the path is
        hostile (NUL byte, or climbs above the root).
        """
        if "\x00" in relative_path:
            return None

        cleaned = relative_path.replace("\\", "/").lstrip("/")
        normalized = posixpath.normpath(cleaned) if cleaned else "."

        if normalized == ".." or normalized.startswith("../"):
            return None
        if posixpath.isabs(normalized):
            return None
        return normalized

    def _not_found(self, relative_path: str) -> HTTPResponse:
        return self._error(HTTPStatus.NOT_FOUND, f"File not found: {relative_path}")

    def _error(self, status: HTTPStatus, message: str) -> HTTPResponse:
        return error_response(status, message, self.error_format)


def serve(document_root: Union[str, Path], relative_path: str, error_format: str = "html") -> HTTPResponse:
    """
    One-shot helper: serve a single path from ``document_root``.

    Example:
        response = serve("./public", "test.html")
    """
    return StaticFileResponder(document_root, error_format).serve(relative_path)


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# Traversal is rejected twice: lexically before any filesystem access,
# then again after resolving symlinks. Only regular files are served,
# read whole, typed from the fixed MIME table, and every failure becomes
# a response instead of an exception.
# =============================================================================
