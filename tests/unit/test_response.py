"""
Unit tests for HTTP response building and serialization.
"""

import json

import pytest

from tinyhttpd.http.response import (
    HTTPResponse,
    ResponseBuilder,
    error_response,
    forbidden,
    internal_error,
    json_response,
    not_found,
    ok,
    parse_response,
    parse_status_line,
)
from tinyhttpd.http.status_codes import HTTPStatus, reason_phrase


class TestHTTPResponse:
    """Tests for HTTPResponse class."""

    def test_status_line(self):
        """Test status line generation."""
        assert HTTPResponse(status=HTTPStatus.OK).status_line == "HTTP/1.1 200 OK"
        assert HTTPResponse(status=HTTPStatus.NOT_FOUND).status_line == "HTTP/1.1 404 Not Found"

    def test_status_line_plain_int(self):
        assert HTTPResponse(status=418).status_line == "HTTP/1.1 418 I'm a teapot"
        assert HTTPResponse(status=299).status_line == "HTTP/1.1 299 Unknown"

    def test_reason_override(self):
        response = HTTPResponse(status=200, reason="Fine Thanks")
        assert response.status_line == "HTTP/1.1 200 Fine Thanks"

    def test_to_bytes_layout(self):
        """Status line, headers, blank line, body."""
        response = HTTPResponse(
            status=HTTPStatus.OK,
            headers={"Content-Type": "text/html"},
            body=b"<p>hi</p>",
        )

        assert response.to_bytes() == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: text/html\r\n"
            b"Content-Length: 9\r\n"
            b"Connection: close\r\n"
            b"\r\n"
            b"<p>hi</p>"
        )

    def test_header_order_is_insertion_order(self):
        response = HTTPResponse(headers={"X-B": "2", "X-A": "1", "X-C": "3"})
        head = response.to_bytes().split(b"\r\n\r\n")[0].decode()
        names = [line.split(":")[0] for line in head.split("\r\n")[1:]]

        assert names == ["X-B", "X-A", "X-C", "Content-Length", "Connection"]

    def test_serialization_is_reproducible(self):
        response = HTTPResponse(headers={"X-A": "1"}, body=b"same")
        assert response.to_bytes("srv/1") == response.to_bytes("srv/1")

    @pytest.mark.parametrize("header", ["Content-Length", "content-length", "CONTENT-LENGTH"])
    def test_content_length_recomputed(self, header: str):
        """A caller-set Content-Length never survives serialization."""
        response = HTTPResponse(headers={header: "999"}, body=b"hello")
        parsed = parse_response(response.to_bytes())

        assert parsed.headers["Content-Length"] == "5"
        assert [name.lower() for name in parsed.headers].count("content-length") == 1

    def test_content_length_counts_bytes(self):
        response = ResponseBuilder().text("héllo").build()
        parsed = parse_response(response.to_bytes())
        assert parsed.headers["Content-Length"] == "6"

    def test_content_length_after_body_change(self):
        response = HTTPResponse(body=b"first")
        response.headers["Content-Length"] = "5"
        response.set_body("a much longer body")

        parsed = parse_response(response.to_bytes())
        assert parsed.headers["Content-Length"] == str(len(b"a much longer body"))

    def test_connection_close_always_present(self):
        response = HTTPResponse(headers={"Connection": "keep-alive"})
        parsed = parse_response(response.to_bytes())

        assert parsed.headers["Connection"] == "close"
        assert b"keep-alive" not in response.to_bytes()

    def test_empty_body(self):
        raw = HTTPResponse(status=HTTPStatus.NO_CONTENT).to_bytes()
        assert raw.endswith(b"Content-Length: 0\r\nConnection: close\r\n\r\n")

    def test_server_header(self):
        raw = HTTPResponse().to_bytes("tinyhttpd/1.0")
        assert b"Server: tinyhttpd/1.0\r\n" in raw

    def test_caller_server_header_wins(self):
        raw = HTTPResponse(headers={"Server": "custom"}).to_bytes("tinyhttpd/1.0")
        assert b"Server: custom\r\n" in raw
        assert b"tinyhttpd/1.0" not in raw

    def test_no_server_header_by_default(self):
        assert b"Server:" not in HTTPResponse().to_bytes()

    def test_set_header_chaining(self):
        response = HTTPResponse().set_header("X-One", "1").set_header("X-Two", "2")
        assert response.headers == {"X-One": "1", "X-Two": "2"}

    def test_is_success(self):
        assert HTTPResponse(status=200).is_success
        assert HTTPResponse(status=304).is_success
        assert not HTTPResponse(status=404).is_success
        assert not HTTPResponse(status=500).is_success


class TestStatusLineRoundTrip:
    """A built status line parses back to the same code and reason."""

    @pytest.mark.parametrize("status", list(HTTPStatus))
    def test_known_codes(self, status: HTTPStatus):
        version, code, reason = parse_status_line(HTTPResponse(status=status).to_bytes().split(b"\r\n")[0])

        assert version == "HTTP/1.1"
        assert code == int(status)
        assert reason == status.phrase

    def test_custom_reason(self):
        raw = ResponseBuilder().status(299).reason("Mostly Fine").to_bytes()
        assert parse_status_line(raw.split(b"\r\n")[0]) == ("HTTP/1.1", 299, "Mostly Fine")

    @pytest.mark.parametrize("line", ["", "HTTP/1.1", "HTTP/1.1 abc OK"])
    def test_invalid_status_line(self, line: str):
        with pytest.raises(ValueError):
            parse_status_line(line)


class TestResponseBuilder:
    """Tests for ResponseBuilder class."""

    def test_defaults(self):
        response = ResponseBuilder().build()
        assert response.status == HTTPStatus.OK
        assert response.headers == {}
        assert response.body == b""

    def test_status(self):
        response = ResponseBuilder().status(HTTPStatus.CREATED).build()
        assert response.status == HTTPStatus.CREATED

    def test_json_body(self):
        data = {"name": "John", "age": 30}
        response = ResponseBuilder().json(data).build()

        assert response.headers["Content-Type"] == "application/json"
        assert json.loads(response.body) == data

    def test_text_and_html(self):
        assert ResponseBuilder().text("x").build().headers["Content-Type"] == "text/plain; charset=utf-8"
        assert ResponseBuilder().html("<b>x</b>").build().body == b"<b>x</b>"

    def test_headers_keep_order(self):
        response = (ResponseBuilder()
            .header("X-First", "1")
            .headers({"X-Second": "2", "X-Third": "3"})
            .build())
        assert list(response.headers) == ["X-First", "X-Second", "X-Third"]

    def test_build_returns_independent_copies(self):
        builder = ResponseBuilder().header("X-A", "1")
        first = builder.build()
        first.headers["X-B"] = "2"

        assert "X-B" not in builder.build().headers

    def test_to_bytes(self):
        raw = ResponseBuilder().status(HTTPStatus.NOT_FOUND).text("gone").to_bytes()
        parsed = parse_response(raw)

        assert parsed.status == 404
        assert parsed.body == b"gone"


class TestErrorResponses:
    """Generic error pages."""

    def test_html_error(self):
        response = error_response(HTTPStatus.NOT_FOUND, "No route matches /x")

        assert response.status == 404
        assert response.headers["Content-Type"] == "text/html; charset=utf-8"
        assert b"404 Not Found" in response.body
        assert b"No route matches /x" in response.body

    def test_html_error_escapes_message(self):
        response = error_response(404, "<script>alert(1)</script>")
        assert b"<script>" not in response.body
        assert b"&lt;script&gt;" in response.body

    def test_json_error(self):
        response = error_response(HTTPStatus.FORBIDDEN, "Access denied", fmt="json")

        assert response.headers["Content-Type"] == "application/json"
        assert json.loads(response.body) == {"error": "Access denied", "status": 403}

    def test_helpers(self):
        assert ok("fine").status == 200
        assert json_response({"a": 1}).body == b'{"a": 1}'
        assert forbidden().status == 403
        assert not_found(fmt="json").status == 404
        assert internal_error().status == 500


class TestStatusCodes:
    def test_phrases(self):
        assert HTTPStatus.NOT_FOUND.phrase == "Not Found"
        assert reason_phrase(500) == "Internal Server Error"
        assert reason_phrase(799) == "Unknown"

    def test_int_compatible(self):
        assert HTTPStatus.NOT_FOUND == 404
        assert HTTPStatus.OK.is_success
        assert HTTPStatus.FORBIDDEN.is_error
