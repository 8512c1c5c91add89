"""
core/errors.py -- Domain error taxonomy for DevConnect.

Flow functions in auth/ and social/ raise these; they never build HTTP
responses themselves. api/main.py registers one exception handler for
DomainError that renders every subclass in the shared ErrorResponse envelope
using the class's code and status_code.

Pattern: each error class carries its own machine-readable code and HTTP
status so the mapping lives in one place instead of in every route.

Layer rule: no imports from api/, auth/ or social/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldViolation:
    """One failing input field. ValidationError collects all of them."""

    field: str
    message: str


class DomainError(Exception):
    """Base class for every client-facing error raised by the core."""

    code: str = "error"
    status_code: int = 400
    default_message: str = "Request failed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DomainError):
    """Input shape or content violations. Reports every failing field at once."""

    code = "validation_error"
    status_code = 422
    default_message = "Request validation failed."

    def __init__(self, violations: list[FieldViolation], message: str | None = None) -> None:
        self.violations = list(violations)
        super().__init__(message)


class Unauthorized(DomainError):
    """Missing, malformed, badly signed or expired credential."""

    code = "unauthorized"
    status_code = 401
    default_message = "Authentication required."


class InvalidCredentials(DomainError):
    """Login failure. Unknown email and wrong password are deliberately identical."""

    code = "bad_credentials"
    status_code = 401
    default_message = "Invalid Credentials!"


class Forbidden(DomainError):
    """Valid credential, but the acting user does not own the entity."""

    code = "forbidden"
    status_code = 403
    default_message = "User not authorized!"


class NotFound(DomainError):
    code = "not_found"
    status_code = 404
    default_message = "Resource not found."


class MalformedIdentifier(NotFound):
    """The identifier text cannot be an id at all, as opposed to an unknown id."""

    code = "malformed_id"
    default_message = "Malformed identifier."


class Conflict(DomainError):
    code = "conflict"
    status_code = 409
    default_message = "Resource already exists."


class AlreadyLiked(DomainError):
    code = "already_liked"
    status_code = 400
    default_message = "Post already liked!"


class NotLiked(DomainError):
    code = "not_liked"
    status_code = 400
    default_message = "Post has not been liked!"


class InternalError(DomainError):
    """Unexpected or storage failure. The message never carries detail."""

    code = "internal_error"
    status_code = 500
    default_message = "An unexpected error occurred."


class Violations:
    """Accumulates FieldViolations and raises them together.

    Usage:
        v = Violations()
        v.require(name, "name", "Name is required!")
        v.check(len(password) >= 6, "password", "Password too short")
        v.raise_if_any()
    """

    def __init__(self) -> None:
        self._items: list[FieldViolation] = []

    def check(self, ok: bool, field: str, message: str) -> None:
        if not ok:
            self._items.append(FieldViolation(field=field, message=message))

    def require(self, value: str | None, field: str, message: str) -> None:
        self.check(bool(value and value.strip()), field, message)

    def raise_if_any(self) -> None:
        if self._items:
            raise ValidationError(self._items)
