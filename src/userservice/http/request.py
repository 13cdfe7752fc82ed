"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the raw bytes read from a connection into an HTTPRequest.

    ┌─────────────────────────────────────────────────────────────────────┐
    │  PUT /users/6f1c...-9a2e/email HTTP/1.1\r\n      ← request line     │
    │  Host: localhost:8080\r\n                        ← headers          │
    │  Content-Type: application/json\r\n                                 │
    │  Content-Length: 29\r\n                                             │
    │  \r\n                                            ← separator        │
    │  {"email": "new@example.com"}                    ← body             │
    └─────────────────────────────────────────────────────────────────────┘

Parsing rules:

- Request line must be ``METHOD SP URI SP HTTP/x.y``; only HTTP/1.0 and
  HTTP/1.1 are accepted (505 otherwise).
- Header names are case-insensitive and stored lower-cased; repeated
  headers are joined with ", ".
- The body is exactly ``Content-Length`` bytes; anything after it belongs
  to the next request on a keep-alive connection.
- Requests over ``max_request_size`` are rejected with 413.

JSON decoding is lazy: the body is only parsed when a handler reads
``request.json``, and a malformed body raises HTTPParseError (400) at that
point rather than during parsing, so routes that never look at the body
are not affected by it.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any
from urllib.parse import urlparse, unquote
import re
import json


class HTTPParseError(Exception):
    """
    Raised when an HTTP request (or its JSON body) cannot be parsed.

    Carries the status code the server should answer with:

        400 Bad Request                 - Malformed syntax or JSON
        405 Method Not Allowed          - Unknown method token
        413 Payload Too Large           - Request exceeds size limit
        505 HTTP Version Not Supported  - Not HTTP/1.0 or HTTP/1.1
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    ``path_params`` is empty until the router matches the request; for the
    route ``/users/:id`` and path ``/users/42`` it becomes ``{"id": "42"}``.
    Header keys are always lower case.
    """

    method: str
    path: str
    version: str = "HTTP/1.1"

    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    # Filled in by the router (path_params, and the matched pattern in route)
    path_params: Dict[str, str] = field(default_factory=dict)
    route: Optional[str] = None

    client_address: tuple[str, int] = ("", 0)

    _body_json: Optional[Any] = field(default=None, repr=False)

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")

    @property
    def json(self) -> Any:
        """
        The body decoded as JSON, or None when the body is empty.

        The Content-Type header is not checked: clients like curl often
        send JSON as ``application/x-www-form-urlencoded``.

        Raises:
            HTTPParseError: If the body is not valid UTF-8 JSON, or nests too
                deeply to decode.
        """
        if self._body_json is None and self.body:
            try:
                self._body_json = json.loads(self.body.decode("utf-8"))
            except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as e:
                raise HTTPParseError(f"Invalid JSON body: {e}")
        return self._body_json

    @property
    def is_keep_alive(self) -> bool:
        """
        Whether the connection should stay open after this request.

        HTTP/1.1 keeps alive unless ``Connection: close``; HTTP/1.0 closes
        unless ``Connection: keep-alive``.
        """
        connection = self.headers.get("connection", "").lower()
        if self.version == "HTTP/1.1":
            return connection != "close"
        return connection == "keep-alive"


class RequestParser:
    """
    Parses raw request bytes into HTTPRequest objects.

    One parser is shared by all worker threads; it holds no per-request
    state, so ``parse`` is safe to call concurrently.
    """

    VALID_METHODS = {
        "GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS",
    }

    REQUEST_LINE_PATTERN = re.compile(r"^([A-Z]+) ([^ ]+) (HTTP/\d\.\d)$")
    HEADER_PATTERN = re.compile(r"^([^:]+):\s*(.*)$")

    def __init__(self, max_request_size: int = 1024 * 1024):
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: tuple[str, int] = ("", 0)
    ) -> HTTPRequest:
        """
        Parse one complete HTTP request.

        Args:
            data: Raw request bytes (headers and body).
            client_address: The peer's (ip, port), kept for access logs.

        Returns:
            The parsed request.

        Raises:
            HTTPParseError: If the request is malformed or too large.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(data)} bytes",
                status_code=413,
            )

        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        header_section = data[:header_end].decode("utf-8", errors="replace")
        body = data[header_end + 4:]

        lines = header_section.split("\r\n")
        method, path, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        try:
            content_length = int(headers.get("content-length", 0))
        except ValueError:
            raise HTTPParseError("Invalid Content-Length header")
        if content_length < 0:
            raise HTTPParseError("Invalid Content-Length header")
        if len(body) < content_length:
            raise HTTPParseError(
                f"Incomplete body: expected {content_length} bytes, got {len(body)}"
            )

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            headers=headers,
            body=body[:content_length],
            client_address=client_address,
        )

    def _parse_request_line(
        self,
        line: str
    ) -> tuple[str, str, str]:
        """Split ``METHOD URI VERSION``. The query string is discarded."""
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line}")

        method, uri, version = match.groups()

        if method not in self.VALID_METHODS:
            raise HTTPParseError(f"Invalid method: {method}", status_code=405)

        if version not in ("HTTP/1.0", "HTTP/1.1"):
            raise HTTPParseError(
                f"Unsupported HTTP version: {version}",
                status_code=505,
            )

        parsed = urlparse(uri)
        path = unquote(parsed.path) or "/"

        if ".." in path:
            raise HTTPParseError("Invalid path: contains ..")

        return method, path, version

    def _parse_headers(self, lines: list[str]) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        current_name = None

        for line in lines:
            if not line:
                continue

            # Obsolete line folding: continuation of the previous header
            if line[0] in (" ", "\t"):
                if current_name is not None:
                    headers[current_name] += " " + line.strip()
                continue

            match = self.HEADER_PATTERN.match(line)
            if not match:
                continue

            name, value = match.groups()
            name = name.strip().lower()
            value = value.strip()
            current_name = name

            if name in headers:
                headers[name] += ", " + value
            else:
                headers[name] = value

        return headers


def parse_request(
    data: bytes,
    client_address: tuple[str, int] = ("", 0),
    max_size: int = 1024 * 1024
) -> HTTPRequest:
    """Parse a request with a throwaway RequestParser."""
    return RequestParser(max_request_size=max_size).parse(data, client_address)
