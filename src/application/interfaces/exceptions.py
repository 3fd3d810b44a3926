"""
Repository Exception Definitions

Defines exceptions that the credential store may raise.
These are application-level exceptions; the SQLAlchemy specifics stay in the
infrastructure layer.
"""

# Standard library imports
from uuid import UUID


class RepositoryError(Exception):
    """Base exception for repository operations."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class EntityNotFoundError(RepositoryError):
    """Raised when an entity is not found in the repository."""

    def __init__(self, entity_type: str, identifier: UUID | str) -> None:
        super().__init__(f"{entity_type} with identifier '{identifier}' not found")
        self.entity_type = entity_type
        self.identifier = identifier


class UserNotFoundError(EntityNotFoundError):
    """Raised when a user is not found."""

    def __init__(self, identifier: UUID | str) -> None:
        super().__init__("User", identifier)


class ProfileNotFoundError(EntityNotFoundError):
    """Raised when a user profile is not found."""

    def __init__(self, user_id: UUID) -> None:
        super().__init__("UserProfile", user_id)
        self.user_id = user_id


class AddressNotFoundError(EntityNotFoundError):
    """Raised when an address is not found."""

    def __init__(self, address_id: UUID) -> None:
        super().__init__("UserAddress", address_id)
        self.address_id = address_id


class TokenNotFoundError(EntityNotFoundError):
    """Raised when a single-use token is unknown, used or expired."""

    def __init__(self, token_type: str) -> None:
        # The token value itself is a credential and is never put in messages
        super().__init__(token_type, "<redacted>")


class DuplicateEntityError(RepositoryError):
    """Raised when attempting to create an entity that already exists."""

    def __init__(self, entity_type: str, identifier: UUID | str, cause: Exception | None = None) -> None:
        super().__init__(f"{entity_type} with identifier '{identifier}' already exists", cause)
        self.entity_type = entity_type
        self.identifier = identifier


class TransactionError(RepositoryError):
    """Raised when a multi-statement write cannot be committed."""

    def __init__(self, operation: str, cause: Exception | None = None) -> None:
        super().__init__(f"Transaction for '{operation}' failed and was rolled back", cause)
        self.operation = operation


class ConnectionError(RepositoryError):
    """Raised when database connection fails."""

    def __init__(self, message: str = "Database connection failed", cause: Exception | None = None) -> None:
        super().__init__(message, cause)


class IntegrityError(RepositoryError):
    """Raised when database integrity constraint is violated."""

    def __init__(self, constraint: str, message: str | None = None) -> None:
        msg = f"Integrity constraint '{constraint}' violated"
        if message:
            msg += f": {message}"
        super().__init__(msg)
        self.constraint = constraint


class ConfigurationError(Exception):
    """Raised when configuration-related errors occur."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause
