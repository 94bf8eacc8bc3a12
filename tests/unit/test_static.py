"""
Unit tests for the static file responder.
"""

import json
import os
from pathlib import Path

import pytest

from tinyhttpd.handlers.static import StaticFileResponder, serve
from tinyhttpd.http.mime_types import get_mime_type
from tinyhttpd.http.status_codes import HTTPStatus


@pytest.fixture
def responder(doc_root: Path) -> StaticFileResponder:
    return StaticFileResponder(doc_root)


class TestServeFiles:
    """Regular files below the root."""

    def test_serve_html(self, responder):
        """test.html containing <p>hi</p> comes back byte for byte."""
        response = responder.serve("test.html")

        assert response.status == HTTPStatus.OK
        assert response.headers == {"Content-Type": "text/html"}
        assert response.body == b"<p>hi</p>"

    def test_serve_json(self, responder):
        response = responder.serve("data.json")

        assert response.headers["Content-Type"] == "application/json"
        assert response.body == b'{"a": [1, 2, 3]}\n'

    def test_unknown_extension(self, responder):
        response = responder.serve("notes.unknownext")

        assert response.status == 200
        assert response.headers["Content-Type"] == "application/octet-stream"
        assert response.body == b"\x00\x01binary"

    def test_nested_file(self, responder):
        response = responder.serve("sub/page.txt")
        assert response.body == b"nested page"
        assert response.headers["Content-Type"] == "text/plain"

    @pytest.mark.parametrize("path", ["/test.html", "//test.html", "./test.html", "sub/../test.html"])
    def test_equivalent_paths(self, responder, path):
        """Leading slashes and in-root dot segments are harmless."""
        assert responder.serve(path).body == b"<p>hi</p>"

    def test_large_file_read_whole(self, responder, doc_root):
        content = os.urandom(256 * 1024)
        (doc_root / "big.bin").write_bytes(content)

        response = responder.serve("big.bin")
        assert response.body == content


class TestNotFound:
    """Anything that is not a regular file is a 404."""

    def test_missing_file(self, responder):
        response = responder.serve("nope.html")

        assert response.status == HTTPStatus.NOT_FOUND
        assert b"nope.html" in response.body

    @pytest.mark.parametrize("path", ["", "sub", "emptydir", "emptydir/", "/"])
    def test_directory(self, responder, path):
        assert responder.serve(path).status == 404

    def test_file_used_as_directory(self, responder):
        assert responder.serve("test.html/inner").status == 404

    def test_missing_root(self, tmp_path, caplog):
        responder = StaticFileResponder(tmp_path / "does-not-exist")

        assert "Document root does not exist" in caplog.text
        assert responder.serve("test.html").status == 404

    def test_json_error_format(self, doc_root):
        response = StaticFileResponder(doc_root, error_format="json").serve("nope.txt")

        assert response.headers["Content-Type"] == "application/json"
        assert json.loads(response.body) == {"error": "File not found: nope.txt", "status": 404}


class TestTraversal:
    """Nothing outside the root is ever served."""

    @pytest.mark.parametrize("path", [
        "../secret.txt",
        "../../etc/passwd",
        "..",
        "../",
        "sub/../../secret.txt",
        "..\\secret.txt",
        "..\\..\\secret.txt",
        "sub\\..\\..\\secret.txt",
        "/../secret.txt",
        "test.html\x00.txt",
    ])
    def test_rejected(self, responder, path):
        response = responder.serve(path)

        assert response.status == HTTPStatus.FORBIDDEN
        assert b"TOP SECRET" not in response.body

    def test_rejected_before_filesystem_access(self, responder, monkeypatch):
        """Lexical escapes never reach resolve()."""
        def fail(*args, **kwargs):
            raise AssertionError("filesystem touched")

        monkeypatch.setattr(Path, "resolve", fail)
        assert responder.serve("../../etc/passwd").status == 403

    def test_percent_encoding_is_literal(self, responder):
        """%2e%2e is a file name, not a parent reference."""
        assert responder.serve("%2e%2e/secret.txt").status == 404

    def test_symlink_escape(self, responder, doc_root, tmp_path):
        link = doc_root / "escape.txt"
        try:
            link.symlink_to(tmp_path / "secret.txt")
        except (OSError, NotImplementedError):
            pytest.skip("symlinks not supported")

        response = responder.serve("escape.txt")
        assert response.status == 403
        assert b"TOP SECRET" not in response.body

    def test_symlink_inside_root(self, responder, doc_root):
        link = doc_root / "alias.html"
        try:
            link.symlink_to(doc_root / "test.html")
        except (OSError, NotImplementedError):
            pytest.skip("symlinks not supported")

        assert responder.serve("alias.html").body == b"<p>hi</p>"


class TestReadErrors:
    """Files that exist but cannot be read are a 500."""

    def test_read_error(self, responder, monkeypatch, caplog):
        def broken(self):
            raise PermissionError("denied")

        monkeypatch.setattr(Path, "read_bytes", broken)
        response = responder.serve("test.html")

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert b"Failed to read file" in response.body
        assert "Error reading file" in caplog.text

    def test_stat_error(self, responder, monkeypatch):
        real_stat = os.stat

        def broken(path, *args, **kwargs):
            if str(path).endswith("test.html"):
                raise PermissionError("denied")
            return real_stat(path, *args, **kwargs)

        monkeypatch.setattr(os, "stat", broken)
        assert responder.serve("test.html").status == 500

    def test_file_removed_before_stat(self, responder, doc_root):
        (doc_root / "gone.txt").write_text("soon gone")
        (doc_root / "gone.txt").unlink()
        assert responder.serve("gone.txt").status == 404


class TestHelpers:
    def test_module_serve(self, doc_root):
        response = serve(doc_root, "test.html")
        assert response.status == 200
        assert response.body == b"<p>hi</p>"

    @pytest.mark.parametrize("name,expected", [
        ("a.html", "text/html"),
        ("A.HTML", "text/html"),
        ("a.json", "application/json"),
        ("a.txt", "text/plain"),
        ("a.css", "text/css"),
        ("a.png", "image/png"),
        ("Makefile", "application/octet-stream"),
        ("archive.tar.unknown", "application/octet-stream"),
    ])
    def test_mime_types(self, name, expected):
        assert get_mime_type(name) == expected

    def test_mime_default_override(self):
        assert get_mime_type("x.nope", default="text/plain") == "text/plain"
