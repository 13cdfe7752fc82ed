"""
=============================================================================
URL ROUTER
=============================================================================

Maps (method, path) to a handler function.

    Registered routes                        Request
    ─────────────────                        ───────
    POST   /users                            PUT /users/6f1c...-9a2e/email
    GET    /users/:id                                    │
    PUT    /users/:id/email   ◄── MATCH ─────────────────┘
    DELETE /users/:id
                                             path_params = {"id": "6f1c...-9a2e"}

Each pattern is compiled once into an anchored regex; ``:name`` segments
become named groups matching one path segment:

    /users/:id/email  →  ^/users/(?P<id>[^/]+)/email$

Routes are tried in registration order and the first match wins. When no
route matches, the router answers 405 if some other method would have
matched the path (with an Allow header) and 404 otherwise.

The router does not validate parameter values: ``/users/not-a-uuid`` still
matches ``/users/:id``, and deciding that the id is malformed is the
handler's job.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Dict, List
import logging
import re

from .request import HTTPRequest
from .response import HTTPResponse, not_found, method_not_allowed


logger = logging.getLogger(__name__)

Handler = Callable[[HTTPRequest], HTTPResponse]


@dataclass
class Route:
    """A registered route: pattern, method filter and handler."""

    path: str
    method: Optional[str]            # None matches any method
    handler: Handler

    _pattern: Optional[re.Pattern] = field(default=None, repr=False)


@dataclass
class RouteMatch:
    route: Route
    params: Dict[str, str]


class Router:
    """
    Request router with ``:param`` path segments.

        router = Router()

        @router.get("/users/:id")
        def get_user(request):
            return ok({"id": request.path_params["id"]})

    Decorators return the handler unchanged, so a function can be
    registered under several routes.
    """

    def __init__(self):
        self._routes: List[Route] = []

    # =========================================================================
    # ROUTE REGISTRATION
    # =========================================================================

    def add_route(
        self,
        path: str,
        handler: Handler,
        method: Optional[str] = None
    ) -> Route:
        pattern = self._compile_pattern(path)

        route = Route(
            path=path,
            method=method.upper() if method else None,
            handler=handler,
            _pattern=pattern,
        )
        self._routes.append(route)
        logger.debug(f"Registered route {route.method or 'ANY'} {path}")
        return route

    def _compile_pattern(self, path: str) -> re.Pattern:
        """
        Compile ``/users/:id/email`` into ``^/users/(?P<id>[^/]+)/email$``.

        Static segments are escaped; empty segments (double or trailing
        slashes) are skipped.
        """
        regex_parts = ["^"]

        for segment in path.split("/"):
            if not segment:
                continue

            regex_parts.append("/")

            if segment.startswith(":"):
                regex_parts.append(f"(?P<{segment[1:]}>[^/]+)")
            else:
                regex_parts.append(re.escape(segment))

        if len(regex_parts) == 1:
            regex_parts.append("/")
        regex_parts.append("$")

        return re.compile("".join(regex_parts))

    # =========================================================================
    # MATCHING
    # =========================================================================

    @staticmethod
    def _normalize(path: str) -> str:
        # "/users/" and "/users" are the same route
        return "/" + path.strip("/") if path != "/" else "/"

    def match(self, method: str, path: str) -> Optional[RouteMatch]:
        """First route matching both method and path, or None."""
        path = self._normalize(path)

        for route in self._routes:
            if route.method and route.method != method.upper():
                continue

            match = route._pattern.match(path)
            if match:
                return RouteMatch(route=route, params=match.groupdict())

        return None

    def get_allowed_methods(self, path: str) -> List[str]:
        """Methods that have a route for ``path``; feeds the 405 Allow header."""
        path = self._normalize(path)
        methods = set()

        for route in self._routes:
            if route._pattern.match(path):
                if route.method is None:
                    return ["DELETE", "GET", "PATCH", "POST", "PUT"]
                methods.add(route.method)

        return sorted(methods)

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Dispatch ``request`` to its handler.

        Sets ``request.path_params`` and ``request.route`` before calling the
        handler. Exceptions raised by the handler propagate to the caller.
        """
        match = self.match(request.method, request.path)

        if match:
            request.path_params = match.params
            request.route = match.route.path
            return match.route.handler(request)

        allowed = self.get_allowed_methods(request.path)
        if allowed:
            return method_not_allowed(allowed)

        return not_found(f"No route matches {request.path}")

    # =========================================================================
    # DECORATORS
    # =========================================================================

    def route(self, path: str, method: Optional[str] = None) -> Callable[[Handler], Handler]:
        def decorator(handler: Handler) -> Handler:
            self.add_route(path, handler, method)
            return handler
        return decorator

    def get(self, path: str) -> Callable[[Handler], Handler]:
        return self.route(path, "GET")

    def post(self, path: str) -> Callable[[Handler], Handler]:
        return self.route(path, "POST")

    def put(self, path: str) -> Callable[[Handler], Handler]:
        return self.route(path, "PUT")

    def delete(self, path: str) -> Callable[[Handler], Handler]:
        return self.route(path, "DELETE")

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    def routes(self) -> List[Route]:
        return list(self._routes)

    def print_routes(self) -> None:
        """
        Print the route table, e.g. in the startup banner:

            Registered Routes:
            ------------------------------------------------------------
              POST     /users
              GET      /users/:id
            ------------------------------------------------------------
        """
        print("\nRegistered Routes:")
        print("-" * 60)
        for route in self._routes:
            print(f"  {route.method or 'ANY':8} {route.path}")
        print("-" * 60)
