"""
Application Interfaces - Repository Contracts

This module defines the interface contracts that the infrastructure layer
must implement. Following the dependency inversion principle, the application
layer defines what it needs, and the infrastructure layer provides it.
"""

from .exceptions import (
    AddressNotFoundError,
    ConfigurationError,
    ConnectionError,
    DuplicateEntityError,
    EntityNotFoundError,
    IntegrityError,
    ProfileNotFoundError,
    RepositoryError,
    TokenNotFoundError,
    TransactionError,
    UserNotFoundError,
)
from .repositories import IUserRepository

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
