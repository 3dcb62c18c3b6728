"""
core/errors.py -- Application error taxonomy.

Every failure the auth gateway, access middleware, or CV handlers can detect
is raised as an AppError subclass. The API layer has a single exception
handler that turns any AppError into the standard error envelope, so route
code never builds error responses by hand.

Each subclass fixes its HTTP status and machine-readable code. Per-field
failures carry a list of FieldError entries.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or cvs/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    """One offending input field and a human-readable reason."""

    field: str
    message: str


class AppError(Exception):
    """Base class for failures that map to a structured HTTP response."""

    status_code: int = 500
    code: str = "internal_error"
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None, fields: list[FieldError] | None = None) -> None:
        self.message = message or self.default_message
        self.fields = list(fields or [])
        super().__init__(self.message)


class MissingFieldError(AppError):
    status_code = 400
    code = "missing_field"
    default_message = "Please fill in all required fields"


class ValidationFailedError(AppError):
    status_code = 400
    code = "validation_error"
    default_message = "Validation error"


class DuplicateFieldError(AppError):
    """A unique field collided with an existing record."""

    status_code = 400
    code = "duplicate_field"

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"{field} already exists")


class DuplicateEmailError(DuplicateFieldError):
    code = "duplicate_email"

    def __init__(self) -> None:
        super().__init__("email", "User already exists with this email")


class InvalidCredentialsError(AppError):
    # Same message for unknown email and wrong password -- no account enumeration.
    status_code = 401
    code = "invalid_credentials"
    default_message = "Invalid email or password"


class NoTokenError(AppError):
    status_code = 401
    code = "no_token"
    default_message = "Not authorized, no token"


class TokenInvalidError(AppError):
    status_code = 401
    code = "token_invalid"
    default_message = "Not authorized, token failed"


class NotFoundError(AppError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class ForbiddenError(AppError):
    status_code = 401
    code = "forbidden"
    default_message = "Not authorized"


class NotPublicError(ForbiddenError):
    status_code = 403
    code = "not_public"
    default_message = "This CV is not public"


class FederatedAuthFailedError(AppError):
    status_code = 401
    code = "federated_auth_failed"
    default_message = "Google authentication failed"


class ServerError(AppError):
    """Unexpected store or infrastructure failure."""
