"""
=============================================================================
USER MODEL
=============================================================================

``User`` is an immutable value. Construction trims and validates, so an
instance that exists is always valid:

    User(id=uuid4(), name="  Ada ", email="ada@example.com")
        → User(name="Ada", email="ada@example.com")

    User(id=uuid4(), name="", email="ada@example.com")
        → ValidationError("Name is required and cannot be empty")

Changing a field means building a new value (``dataclasses.replace``),
which runs the same validation again.

Fields are trimmed before they are checked, and the email pattern is
matched against the trimmed text, i.e. the value that gets stored.
``"a@b. "`` trims to ``"a@b."`` and is rejected.

Identifiers travel as the 36-character hyphenated UUID text
(8-4-4-4-12 hex digits, any case). ``parse_user_id`` accepts exactly that
form and nothing else: no braces, no URN prefix, no bare 32 hex digits.

=============================================================================
"""

import re
import uuid
from dataclasses import dataclass


EMAIL_PATTERN = re.compile(r"[^@]+@[^@]+\.[^@]+")

UUID_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)

NAME_REQUIRED = "Name is required and cannot be empty"
EMAIL_REQUIRED = "Email is required and cannot be empty"
EMAIL_INVALID = "Invalid email format"
UUID_INVALID = "Invalid UUID format"


class ValidationError(ValueError):
    """Client input that cannot become a valid User. Maps to 400."""


def _require_text(value, message: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message)
    return value.strip()


def validate_email(value) -> str:
    """Trim ``value`` and check it is a plausible email address."""
    email = _require_text(value, EMAIL_REQUIRED)
    if not EMAIL_PATTERN.fullmatch(email):
        raise ValidationError(EMAIL_INVALID)
    return email


def validate_name(value) -> str:
    return _require_text(value, NAME_REQUIRED)


def parse_user_id(text) -> uuid.UUID:
    """
    Parse the canonical textual form of a user id.

    Raises:
        ValidationError: ``text`` is not a 36-character hyphenated UUID.
    """
    if not isinstance(text, str) or not UUID_PATTERN.fullmatch(text):
        raise ValidationError(UUID_INVALID)
    return uuid.UUID(text)


@dataclass(frozen=True)
class User:
    """A user record. Name and email are stored trimmed."""

    id: uuid.UUID
    name: str
    email: str

    def __post_init__(self):
        if not isinstance(self.id, uuid.UUID):
            raise ValidationError(UUID_INVALID)
        # Frozen: normalized values go in through object.__setattr__
        object.__setattr__(self, "name", validate_name(self.name))
        object.__setattr__(self, "email", validate_email(self.email))

    def to_dict(self) -> dict:
        return {"id": str(self.id), "name": self.name, "email": self.email}
