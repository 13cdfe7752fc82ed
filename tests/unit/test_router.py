"""
Unit tests for URL router.
"""

from userservice.http.router import Router
from userservice.http.request import HTTPRequest
from userservice.http.response import HTTPResponse, ResponseBuilder
from userservice.http.status_codes import HTTPStatus


def make_request(method: str, path: str) -> HTTPRequest:
    return HTTPRequest(method=method, path=path)


def dummy_handler(request: HTTPRequest) -> HTTPResponse:
    return ResponseBuilder().json({"path": request.path}).build()


def user_router() -> Router:
    """The user service's route table with dummy handlers."""
    router = Router()
    router.add_route("/users", dummy_handler, method="POST")
    router.add_route("/users/:id", dummy_handler, method="GET")
    router.add_route("/users/:id/email", dummy_handler, method="PUT")
    router.add_route("/users/:id", dummy_handler, method="DELETE")
    return router


class TestRouter:
    """Tests for Router class."""

    def test_add_route(self):
        router = Router()
        route = router.add_route("/users", dummy_handler, method="post")

        assert router.routes() == [route]
        assert route.path == "/users"
        assert route.method == "POST"

    def test_match_static_path(self):
        router = user_router()

        match = router.match("POST", "/users")
        assert match is not None
        assert match.route.path == "/users"
        assert match.params == {}

    def test_match_dynamic_params(self):
        router = user_router()

        match = router.match("GET", "/users/123")
        assert match.params == {"id": "123"}
        assert match.route.method == "GET"

        match = router.match("PUT", "/users/456/email")
        assert match.route.path == "/users/:id/email"
        assert match.params == {"id": "456"}

    def test_param_matches_one_segment(self):
        router = user_router()

        assert router.match("GET", "/users/1/2") is None
        assert router.match("GET", "/users/") is None

    def test_trailing_slash_ignored(self):
        router = user_router()

        match = router.match("GET", "/users/abc/")
        assert match is not None
        assert match.params == {"id": "abc"}

    def test_root_route(self):
        router = Router()
        router.add_route("/", dummy_handler, method="GET")

        assert router.match("GET", "/") is not None
        assert router.match("GET", "/users") is None

    def test_first_match_wins(self):
        router = Router()
        first = router.add_route("/users/:id", dummy_handler, method="GET")
        router.add_route("/users/:other", dummy_handler, method="GET")

        assert router.match("GET", "/users/1").route is first

    def test_any_method_route(self):
        router = Router()
        router.add_route("/ping", dummy_handler)

        assert router.match("PATCH", "/ping") is not None
        assert router.get_allowed_methods("/ping") == ["DELETE", "GET", "PATCH", "POST", "PUT"]

    def test_no_match(self):
        router = user_router()

        assert router.match("GET", "/posts") is None
        assert router.match("PATCH", "/users/1") is None

    def test_get_allowed_methods(self):
        router = user_router()

        assert router.get_allowed_methods("/users/abc") == ["DELETE", "GET"]
        assert router.get_allowed_methods("/users") == ["POST"]
        assert router.get_allowed_methods("/nothing") == []

    def test_handle_success(self):
        router = Router()

        @router.get("/hello")
        def hello(request):
            return ResponseBuilder().json({"hello": "world"}).build()

        response = router.handle(make_request("GET", "/hello"))

        assert response.status == HTTPStatus.OK
        assert response.json == {"hello": "world"}

    def test_handle_not_found(self):
        response = user_router().handle(make_request("GET", "/posts"))

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.json == {"error": "No route matches /posts", "status": 404}

    def test_handle_method_not_allowed(self):
        response = user_router().handle(make_request("PATCH", "/users/abc"))

        assert response.status == HTTPStatus.METHOD_NOT_ALLOWED
        assert response.headers["Allow"] == "DELETE, GET"

    def test_path_params_in_request(self):
        router = Router()
        captured_params = {}

        @router.get("/users/:id")
        def get_user(request):
            captured_params.update(request.path_params)
            return ResponseBuilder().json(request.path_params).build()

        router.handle(make_request("GET", "/users/42"))

        assert captured_params == {"id": "42"}

    def test_route_recorded_on_request(self):
        request = make_request("PUT", "/users/42/email")

        user_router().handle(request)

        assert request.route == "/users/:id/email"

    def test_special_characters_escaped(self):
        router = Router()
        router.add_route("/a.b", dummy_handler, method="GET")

        assert router.match("GET", "/a.b") is not None
        assert router.match("GET", "/axb") is None


class TestRouterDecorators:
    """Tests for route decorators."""

    def test_method_decorators(self):
        router = Router()

        @router.post("/users")
        def create(request):
            return ResponseBuilder().build()

        @router.put("/users/:id/email")
        def update(request):
            return ResponseBuilder().build()

        @router.delete("/users/:id")
        def delete(request):
            return ResponseBuilder().build()

        assert router.match("POST", "/users").route.handler is create
        assert router.match("PUT", "/users/1/email").route.handler is update
        assert router.match("DELETE", "/users/1").route.handler is delete

    def test_decorator_returns_function(self):
        router = Router()

        @router.get("/x")
        def handler(request):
            return ResponseBuilder().build()

        assert callable(handler)
        assert handler.__name__ == "handler"
