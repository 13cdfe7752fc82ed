"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes this service can emit, with their reason phrases.

    ┌────────┬───────────────────────────────────────────────────────────┐
    │  Code  │  Where it comes from                                      │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  200   │  Read / update email succeeded                            │
    │  201   │  User created (with Location header)                      │
    │  204   │  User deleted (no body)                                   │
    │  400   │  Validation failed, malformed HTTP or JSON                │
    │  404   │  Unknown user id, or no route for the path                │
    │  405   │  Route exists but not for this method                     │
    │  408   │  Client was too slow sending the request                  │
    │  413   │  Request larger than max_request_size                     │
    │  500   │  Unexpected fault while handling the request              │
    │  503   │  Thread pool queue full, or connection expired in queue   │
    │  505   │  Not HTTP/1.0 or HTTP/1.1                                 │
    └────────┴───────────────────────────────────────────────────────────┘

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status code as an IntEnum.

    IntEnum lets a member compare equal to its integer value, so handlers
    and tests can write ``response.status == 404``.

        >>> HTTPStatus.CREATED == 201
        True
        >>> HTTPStatus.CREATED.phrase
        'Created'
    """

    # 2xx Success
    OK = 200
    CREATED = 201
    NO_CONTENT = 204

    # 4xx Client Error
    BAD_REQUEST = 400
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    REQUEST_TIMEOUT = 408
    PAYLOAD_TOO_LARGE = 413

    # 5xx Server Error
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503
    HTTP_VERSION_NOT_SUPPORTED = 505

    @property
    def phrase(self) -> str:
        """Reason phrase for the status line, e.g. ``Not Found``."""
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_success(self) -> bool:
        return 200 <= self < 300

    @property
    def is_error(self) -> bool:
        """True for 4xx and 5xx. Error responses carry an ``{error, status}`` body."""
        return self >= 400

    @property
    def allows_body(self) -> bool:
        """
        Whether a response with this status may carry a body.

        RFC 7230 §3.3.2: a 204 response has no body and must not send
        Content-Length.
        """
        return self != HTTPStatus.NO_CONTENT


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.NO_CONTENT: "No Content",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}
