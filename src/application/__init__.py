"""
Application Layer - Contracts and Configuration

This layer contains:
- Interfaces: Repository contracts and abstractions
- Exceptions: Errors the repository contract may raise
- Config: Configuration dataclasses and their loaders

Depends on domain layer. Defines interfaces that infrastructure layer must implement.
"""

from .interfaces import (
    AddressNotFoundError,
    ConfigurationError,
    ConnectionError,
    DuplicateEntityError,
    EntityNotFoundError,
    IntegrityError,
    IUserRepository,
    ProfileNotFoundError,
    RepositoryError,
    TokenNotFoundError,
    TransactionError,
    UserNotFoundError,
)

__all__ = [
    # Repository interfaces
    "IUserRepository",
    # Exceptions
    "RepositoryError",
    "EntityNotFoundError",
    "UserNotFoundError",
    "ProfileNotFoundError",
    "AddressNotFoundError",
    "TokenNotFoundError",
    "DuplicateEntityError",
    "TransactionError",
    "ConnectionError",
    "IntegrityError",
    "ConfigurationError",
]
