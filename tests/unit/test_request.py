"""
Unit tests for HTTP request parsing.
"""

import pytest

from userservice.http.request import (
    HTTPRequest,
    RequestParser,
    HTTPParseError,
    parse_request,
)


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_simple_get(self, sample_get_request: bytes):
        """Test parsing a simple GET request."""
        parser = RequestParser()
        request = parser.parse(sample_get_request, ("127.0.0.1", 12345))

        assert request.method == "GET"
        assert request.path == "/users/3f2b8c1e-9a4d-4e6f-b1c2-7d8e9f0a1b2c"
        assert request.version == "HTTP/1.1"
        assert request.client_address == ("127.0.0.1", 12345)

    def test_parse_headers(self, sample_get_request: bytes):
        """Header names are lower-cased; well-known ones have properties."""
        request = parse_request(sample_get_request)

        assert request.headers["host"] == "localhost:8080"
        assert request.user_agent == "pytest"
        assert request.headers["accept"] == "application/json"
        assert request.is_keep_alive is True

    def test_query_string_not_part_of_path(self, sample_get_request: bytes):
        request = parse_request(sample_get_request)

        assert request.path == "/users/3f2b8c1e-9a4d-4e6f-b1c2-7d8e9f0a1b2c"

    def test_parse_post_with_body(self, sample_post_request: bytes):
        """Test parsing POST request with JSON body."""
        request = parse_request(sample_post_request)

        assert request.method == "POST"
        assert request.path == "/users"
        assert request.headers["content-type"] == "application/json"
        assert len(request.body) == 45
        assert request.json == {"name": "John", "email": "john@example.com"}
        assert request.is_keep_alive is False

    def test_parse_url_encoded_path(self):
        raw = b"GET /users/a%20b?q=hello%20world HTTP/1.1\r\nHost: test\r\n\r\n"
        request = parse_request(raw)

        assert request.path == "/users/a b"

    def test_parse_invalid_method(self):
        """Unknown methods are rejected with 405."""
        raw = b"BREW /pot HTTP/1.1\r\nHost: test\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 405

    def test_parse_invalid_request_line(self):
        raw = b"GET\r\nHost: test\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 400

    def test_parse_unsupported_version(self):
        raw = b"GET / HTTP/2.0\r\nHost: test\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 505

    def test_parse_missing_terminator(self):
        with pytest.raises(HTTPParseError, match="Incomplete request"):
            parse_request(b"GET / HTTP/1.1\r\nHost: test\r\n")

    def test_parse_missing_headers(self):
        raw = b"GET / HTTP/1.1\r\n\r\n"
        request = parse_request(raw)

        assert request.method == "GET"
        assert request.path == "/"
        assert len(request.headers) == 0

    def test_parse_path_traversal_blocked(self):
        raw = b"GET /../../../etc/passwd HTTP/1.1\r\nHost: test\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert "path" in str(exc_info.value).lower()

    def test_parse_request_too_large(self):
        parser = RequestParser(max_request_size=100)
        raw = b"GET / HTTP/1.1\r\n" + b"X-Large: " + b"A" * 200 + b"\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parser.parse(raw)

        assert exc_info.value.status_code == 413

    def test_http_version_keep_alive_defaults(self):
        """HTTP/1.0 closes by default, HTTP/1.1 keeps alive by default."""
        request_10 = parse_request(b"GET / HTTP/1.0\r\nHost: test\r\n\r\n")
        assert request_10.version == "HTTP/1.0"
        assert request_10.is_keep_alive is False

        request_10_ka = parse_request(b"GET / HTTP/1.0\r\nConnection: keep-alive\r\n\r\n")
        assert request_10_ka.is_keep_alive is True

        request_11 = parse_request(b"GET / HTTP/1.1\r\nHost: test\r\n\r\n")
        assert request_11.version == "HTTP/1.1"
        assert request_11.is_keep_alive is True

    def test_content_length_limits_body(self):
        """Bytes past Content-Length are not part of the body."""
        raw = b"POST / HTTP/1.1\r\nContent-Length: 4\r\n\r\ntest-extra"

        request = parse_request(raw)

        assert request.body == b"test"

    def test_short_body_rejected(self):
        raw = b"POST / HTTP/1.1\r\nContent-Length: 10\r\n\r\nabc"

        with pytest.raises(HTTPParseError, match="Incomplete body"):
            parse_request(raw)

    @pytest.mark.parametrize("value", [b"abc", b"-5"])
    def test_invalid_content_length(self, value):
        raw = b"POST / HTTP/1.1\r\nContent-Length: " + value + b"\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 400

    def test_case_insensitive_headers(self):
        raw = b"GET / HTTP/1.1\r\nCONTENT-TYPE: text/html\r\n\r\n"
        request = parse_request(raw)

        assert request.headers == {"content-type": "text/html"}

    def test_duplicate_headers_joined(self):
        raw = b"GET / HTTP/1.1\r\nAccept: text/html\r\nAccept: application/json\r\n\r\n"
        request = parse_request(raw)

        assert request.headers["accept"] == "text/html, application/json"


class TestHTTPRequest:
    """Tests for HTTPRequest dataclass."""

    def test_user_agent_default(self):
        assert HTTPRequest(method="GET", path="/").user_agent == ""

    def test_json_empty_body(self):
        assert HTTPRequest(method="POST", path="/").json is None

    def test_json_invalid_body(self):
        request = HTTPRequest(method="POST", path="/", body=b"{not json")

        with pytest.raises(HTTPParseError):
            request.json

    def test_json_invalid_utf8(self):
        request = HTTPRequest(method="POST", path="/", body=b"\xff\xfe")

        with pytest.raises(HTTPParseError):
            request.json

    def test_json_too_deeply_nested(self):
        request = HTTPRequest(method="POST", path="/", body=b"[" * 100_000 + b"]" * 100_000)

        with pytest.raises(HTTPParseError) as exc_info:
            request.json

        assert exc_info.value.status_code == 400
