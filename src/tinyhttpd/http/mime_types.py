"""
=============================================================================
MIME TYPE TABLE
=============================================================================

Fixed extension -> MIME type table used by the static file responder.

    ┌──────────────────────────────────────────────────────────────────┐
    │  "index.html"  ──suffix──►  ".html"  ──lookup──►  "text/html"    │
    │  "DATA.JSON"   ──suffix──►  ".json"  ──lookup──►  "application/  │
    │                                                    json"         │
    │  "blob.xyz"    ──suffix──►  ".xyz"   ──miss────►  "application/  │
    │                                                    octet-stream" │
    └──────────────────────────────────────────────────────────────────┘

The table is closed; the platform's ``mimetypes`` registry is never
consulted. Values carry no ``; charset=`` parameter and the bytes are
served exactly as stored.

=============================================================================
"""

from pathlib import Path
from typing import Optional, Union


MIME_TYPES = {
    # Text
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "text/javascript",
    ".mjs": "text/javascript",
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".csv": "text/csv",

    # Structured data
    ".json": "application/json",
    ".map": "application/json",
    ".xml": "application/xml",

    # Images
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".webp": "image/webp",

    # Fonts
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",

    # Media
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".mp4": "video/mp4",
    ".webm": "video/webm",

    # Documents and archives
    ".pdf": "application/pdf",
    ".zip": "application/zip",
    ".gz": "application/gzip",
    ".wasm": "application/wasm",
}

# Unknown extensions are opaque binary
DEFAULT_MIME_TYPE = "application/octet-stream"


def get_mime_type(path: Union[str, Path], default: Optional[str] = None) -> str:
    """
    Get the MIME type for a file based on its extension.

    The lookup is case-insensitive on the extension. Files without an
    extension, or with one we don't know, get ``default`` or
    ``application/octet-stream``.

    Examples:
        >>> get_mime_type("style.css")
        'text/css'
        >>> get_mime_type("/srv/www/DATA.JSON")
        'application/json'
        >>> get_mime_type("Makefile")
        'application/octet-stream'
    """
    extension = Path(path).suffix.lower()
    return MIME_TYPES.get(extension, default or DEFAULT_MIME_TYPE)
