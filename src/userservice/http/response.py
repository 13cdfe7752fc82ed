"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds HTTP/1.1 responses and serializes them for the socket.

    HTTP/1.1 201 Created\r\n                        ← status line
    Content-Type: application/json; charset=utf-8\r\n
    Location: /users/6f1c...-9a2e\r\n
    Content-Length: 83\r\n                          ← added by to_bytes()
    Date: Sun, 18 Oct 2026 12:00:00 GMT\r\n         ← added by to_bytes()
    Server: userservice/1.0\r\n                     ← added by to_bytes()
    \r\n
    {"id": "6f1c...-9a2e", "name": "John Doe", "email": "john@example.com"}

=============================================================================
ERROR BODIES
=============================================================================

Every 4xx/5xx response produced here has the same JSON shape, whether it
comes from request validation, the router, or the transport:

    {"error": "Invalid email format", "status": 400}

Clients only need one error parser. ``error_response`` is the single place
that shape is built; the named helpers (``bad_request``, ``not_found``, ...)
are thin wrappers over it.

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Dict, Any, Union
import json

from .status_codes import HTTPStatus


@dataclass
class HTTPResponse:
    """
    An HTTP response ready to be serialized.

    Handlers usually build these through ResponseBuilder or the helper
    functions at the bottom of this module rather than directly.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    @property
    def json(self) -> Any:
        """Decoded JSON body, or None for an empty body. Handy in tests."""
        if not self.body:
            return None
        return json.loads(self.body.decode("utf-8"))

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        self.headers[name] = value
        return self

    def to_bytes(self, server_name: str = "userservice/1.0") -> bytes:
        """
        Serialize status line, headers and body.

        Content-Length, Date and Server are filled in unless the handler set
        them. A 204 response is sent with no body and no Content-Length.
        """
        response_headers = dict(self.headers)

        if self.status.allows_body:
            response_headers.setdefault("Content-Length", str(len(self.body)))
            body = self.body
        else:
            response_headers.pop("Content-Length", None)
            response_headers.pop("Content-Type", None)
            body = b""

        response_headers.setdefault("Date", format_http_date(datetime.now(timezone.utc)))
        response_headers.setdefault("Server", server_name)

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + body


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

        response = (ResponseBuilder()
            .status(HTTPStatus.CREATED)
            .json(user.to_dict())
            .header("Location", f"/users/{user.id}")
            .build())

    Every method except ``build`` returns the builder.
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = HTTPStatus(status)
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def json(self, data: Any) -> "ResponseBuilder":
        """
        Serialize ``data`` as the JSON body.

        ensure_ascii=False keeps non-ASCII names readable on the wire; the
        body is UTF-8 encoded either way.
        """
        self._body = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self._headers["Content-Type"] = "application/json; charset=utf-8"
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
        )


def format_http_date(dt: datetime) -> str:
    """
    Format a UTC datetime as an RFC 7231 HTTP-date.

    Example: ``Sun, 18 Oct 2026 12:00:00 GMT``. Built by hand rather than
    with strftime so the output does not depend on the process locale.
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def ok(data: Union[dict, list]) -> HTTPResponse:
    """200 OK with a JSON body."""
    return ResponseBuilder().status(HTTPStatus.OK).json(data).build()


def created(data: Union[dict, list], location: Optional[str] = None) -> HTTPResponse:
    """201 Created with a JSON body and, usually, a Location header."""
    builder = ResponseBuilder().status(HTTPStatus.CREATED).json(data)
    if location:
        builder.header("Location", location)
    return builder.build()


def no_content() -> HTTPResponse:
    """204 No Content."""
    return ResponseBuilder().status(HTTPStatus.NO_CONTENT).build()


def error_response(status: HTTPStatus, message: str) -> HTTPResponse:
    """An error response with the ``{"error": ..., "status": ...}`` body."""
    status = HTTPStatus(status)
    return (ResponseBuilder()
        .status(status)
        .json({"error": message, "status": int(status)})
        .build())


def bad_request(message: str = "Bad Request") -> HTTPResponse:
    return error_response(HTTPStatus.BAD_REQUEST, message)


def not_found(message: str = "Not Found") -> HTTPResponse:
    return error_response(HTTPStatus.NOT_FOUND, message)


def method_not_allowed(allowed_methods: list[str]) -> HTTPResponse:
    """405 with the Allow header RFC 7231 requires."""
    response = error_response(HTTPStatus.METHOD_NOT_ALLOWED, "Method not allowed")
    return response.set_header("Allow", ", ".join(allowed_methods))


def internal_error(message: str = "Internal server error") -> HTTPResponse:
    """500. Keep the message generic; details belong in the log, not the body."""
    return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, message)
