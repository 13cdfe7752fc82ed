"""
=============================================================================
USER HANDLERS
=============================================================================

HTTP endpoints for the user resource:

    POST   /users              create        201 + Location | 400
    GET    /users/:id          read          200            | 400 | 404
    PUT    /users/:id/email    update email  200            | 400 | 404
    DELETE /users/:id          delete        204            | 400 | 404

Each handler validates in a fixed order and answers the first failure:

    id ──► body is a JSON object ──► name ──► email present ──► email format

so a request with both a bad id and a bad body reports the id.

Errors use the service-wide body ``{"error": <message>, "status": <code>}``.
Anything unexpected is logged with its traceback and answered with a
generic 500; the exception text never reaches the client.

=============================================================================
"""

import logging
from typing import Any

from ..http.request import HTTPRequest, HTTPParseError
from ..http.response import (
    HTTPResponse,
    ok,
    created,
    no_content,
    bad_request,
    not_found,
    internal_error,
)
from .models import ValidationError, parse_user_id, validate_email, validate_name
from .store import UserStore, UserNotFoundError


logger = logging.getLogger(__name__)

INVALID_JSON = "Request body must be valid JSON"


def _json_object(request: HTTPRequest) -> dict:
    """The request body as a JSON object, or ValidationError."""
    try:
        body: Any = request.json
    except HTTPParseError:
        raise ValidationError(INVALID_JSON)
    if not isinstance(body, dict):
        raise ValidationError(INVALID_JSON)
    return body


class UserHandler:
    """
    User CRUD endpoints over a UserStore.

        handler = UserHandler(InMemoryUserStore())
        handler.register(server.router)
    """

    def __init__(self, store: UserStore):
        self.store = store

    def register(self, router) -> None:
        """Add the four user routes to ``router`` (a Router or HTTPServer)."""
        router.post("/users")(self.create_user)
        router.get("/users/:id")(self.get_user)
        router.put("/users/:id/email")(self.update_email)
        router.delete("/users/:id")(self.delete_user)

    def create_user(self, request: HTTPRequest) -> HTTPResponse:
        try:
            body = _json_object(request)
            name = validate_name(body.get("name"))
            email = validate_email(body.get("email"))
            user = self.store.create(name, email)
        except ValidationError as e:
            return bad_request(str(e))
        except Exception:
            logger.exception("Error creating user")
            return internal_error()

        logger.info(f"Created user: {user.id}")
        return created(user.to_dict(), location=f"/users/{user.id}")

    def get_user(self, request: HTTPRequest) -> HTTPResponse:
        try:
            user_id = parse_user_id(request.path_params.get("id"))
            user = self.store.find_by_id(user_id)
            if user is None:
                raise UserNotFoundError(user_id)
        except ValidationError as e:
            return bad_request(str(e))
        except UserNotFoundError as e:
            return not_found(str(e))
        except Exception:
            logger.exception("Error retrieving user")
            return internal_error()

        return ok(user.to_dict())

    def update_email(self, request: HTTPRequest) -> HTTPResponse:
        try:
            user_id = parse_user_id(request.path_params.get("id"))
            body = _json_object(request)
            email = validate_email(body.get("email"))
            user = self.store.update(user_id, email=email)
        except ValidationError as e:
            return bad_request(str(e))
        except UserNotFoundError as e:
            return not_found(str(e))
        except Exception:
            logger.exception("Error updating user email")
            return internal_error()

        logger.info(f"Updated email for user: {user.id}")
        return ok(user.to_dict())

    def delete_user(self, request: HTTPRequest) -> HTTPResponse:
        try:
            user_id = parse_user_id(request.path_params.get("id"))
            self.store.delete(user_id)
        except ValidationError as e:
            return bad_request(str(e))
        except UserNotFoundError as e:
            return not_found(str(e))
        except Exception:
            logger.exception("Error deleting user")
            return internal_error()

        logger.info(f"Deleted user: {user_id}")
        return no_content()
