"""
Authentication service exceptions.

The closed set of errors callers of the user service can see. Messages are
generic and never include store or driver text; the lower-level cause is
kept on ``__cause__`` for logging.
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from src.application.interfaces.exceptions import RepositoryError

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Base exception for all user service errors."""

    code = "internal"
    default_message = "Internal error"

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None) -> None:
        super().__init__(message or self.default_message)
        self.details = details or {}


class ConflictError(AuthError):
    """Username or email already registered."""

    code = "conflict"
    default_message = "User with this email or username already exists"

    def __init__(self, field: str) -> None:
        super().__init__(details={"field": field})
        self.field = field


class InvalidCredentialsError(AuthError):
    """Unknown identifier or wrong password. The two are not told apart."""

    code = "invalid_credentials"
    default_message = "Invalid credentials"


class AccountDeactivatedError(AuthError):
    code = "account_deactivated"
    default_message = "Account is deactivated"


class InvalidOrExpiredTokenError(AuthError):
    """Refresh, reset or verification token rejected."""

    code = "invalid_token"
    default_message = "Invalid or expired token"


class IncorrectPasswordError(AuthError):
    code = "incorrect_password"
    default_message = "Current password is incorrect"


class NotFoundError(AuthError):
    code = "not_found"
    default_message = "Resource not found"

    def __init__(self, resource: str) -> None:
        super().__init__(f"{resource} not found", details={"resource": resource})
        self.resource = resource


class AlreadyVerifiedError(AuthError):
    code = "already_verified"
    default_message = "Email is already verified"


class InvalidInputError(AuthError):
    """Request failed validation; ``errors`` lists every problem found."""

    code = "invalid_input"
    default_message = "Invalid input"

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors) or self.default_message, details={"errors": errors})
        self.errors = errors


class PersistenceError(AuthError):
    """The credential store failed. Retry is up to the caller."""

    code = "persistence"
    default_message = "Internal error"


@contextmanager
def store_errors(operation: str) -> Generator[None, None, None]:
    """
    Translate repository failures into PersistenceError.

    Not-found and duplicate cases must be handled inside the block; anything
    that still escapes as a RepositoryError is an unclassified store failure.
    """
    try:
        yield
    except RepositoryError as e:
        logger.error(f"Store failure during {operation}: {e}")
        raise PersistenceError() from e
