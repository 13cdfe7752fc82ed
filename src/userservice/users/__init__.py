"""
The user resource: model, storage and HTTP handlers.
"""

from .models import User, ValidationError, parse_user_id, validate_email, validate_name
from .store import UserStore, InMemoryUserStore, UserNotFoundError
from .handlers import UserHandler


__all__ = [
    "User",
    "ValidationError",
    "parse_user_id",
    "validate_email",
    "validate_name",
    "UserStore",
    "InMemoryUserStore",
    "UserNotFoundError",
    "UserHandler",
]
