"""
=============================================================================
ACCESS LOGGING MIDDLEWARE
=============================================================================

One log line per request on the ``userservice.access`` logger, with a
short request id that is also returned in the ``X-Request-ID`` header so a
client can quote it when reporting a problem.

    text:  127.0.0.1 - - [18/Oct/2026:12:00:00 +0000] "PUT /users/6f1c...-9a2e/email" 200 83 1.42ms route=/users/:id/email rid=3f9a1c2e
    json:  {"request_id": "3f9a1c2e", "method": "PUT", "route": "/users/:id/email", "status_code": 200, ...}

Every user URL carries a unique id, so the raw path is useless for
grouping. The entry also records the route pattern the router matched
(``-`` / null for 404 and 405), which is what dashboards aggregate on.

The access log is separate from the domain log written by the user
handlers (``userservice.users.handlers``), so either can be silenced or
routed on its own:

    logging.getLogger("userservice.access").setLevel(logging.WARNING)

Exceptions escaping the handler chain are logged at ERROR and re-raised;
the server turns them into a 500.

=============================================================================
"""

import json
import logging
import time
import uuid
from dataclasses import asdict, dataclass
from typing import Iterable, Optional

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger("userservice.access")

LOG_FORMATS = ("text", "json")


@dataclass
class RequestLog:
    """Structured access log entry."""

    request_id: str
    method: str
    path: str
    route: Optional[str]
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        entry = asdict(self)
        entry["duration_ms"] = round(self.duration_ms, 2)
        return entry

    def to_text(self) -> str:
        return (
            f'{self.client_ip or "-"} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} {self.content_length} '
            f'{self.duration_ms:.2f}ms route={self.route or "-"} rid={self.request_id}'
        )


class LoggingMiddleware(Middleware):
    """
    Access log middleware. Add it first so its timing covers the whole chain.

        server.use(LoggingMiddleware(log_format="json"))
    """

    def __init__(
        self,
        log_format: str = "text",
        include_request_id: bool = True,
        log_level: int = logging.INFO,
        skip_paths: Optional[Iterable[str]] = None,
    ):
        if log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be 'text' or 'json', got {log_format!r}")
        self.log_format = log_format
        self.include_request_id = include_request_id
        self.log_level = log_level
        self.skip_paths = frozenset(skip_paths or ())

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        request_id = uuid.uuid4().hex[:8]
        started = time.perf_counter()

        try:
            response = next(request)
        except Exception as e:
            logger.error(
                f"Request failed: {request.method} {request.path} - {type(e).__name__}: {e} "
                f"({self._elapsed_ms(started):.2f}ms) rid={request_id}"
            )
            raise

        if self.include_request_id:
            response.set_header("X-Request-ID", request_id)

        if request.path not in self.skip_paths:
            self._emit(self._entry(request, response, request_id, self._elapsed_ms(started)))

        return response

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return (time.perf_counter() - started) * 1000

    @staticmethod
    def _entry(
        request: HTTPRequest,
        response: HTTPResponse,
        request_id: str,
        duration_ms: float,
    ) -> RequestLog:
        return RequestLog(
            request_id=request_id,
            method=request.method,
            path=request.path,
            route=request.route,
            client_ip=request.client_address[0],
            user_agent=request.user_agent or "-",
            status_code=int(response.status),
            content_length=len(response.body),
            duration_ms=duration_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

    def _emit(self, entry: RequestLog) -> None:
        if not logger.isEnabledFor(self.log_level):
            return
        message = json.dumps(entry.to_dict()) if self.log_format == "json" else entry.to_text()
        logger.log(self.log_level, message)
