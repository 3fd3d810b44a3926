"""
Repository Interface Definitions

Defines the contract the credential store must implement.
Following the Repository pattern and clean architecture principles.
"""

from __future__ import annotations

# Standard library imports
from abc import abstractmethod
from typing import TYPE_CHECKING, Protocol
from uuid import UUID

if TYPE_CHECKING:
    from src.infrastructure.auth.models import (
        EmailVerificationToken,
        PasswordResetToken,
        User,
        UserAddress,
        UserProfile,
    )


class IUserRepository(Protocol):
    """
    Credential store interface.

    Persists users, their profile and addresses, and the single-use tokens
    for password reset and e-mail verification. Lookups that find nothing
    raise EntityNotFoundError subclasses rather than returning None.
    """

    # Users

    @abstractmethod
    def create(self, user: User) -> User:
        """
        Persist a new user.

        Raises:
            DuplicateEntityError: If the username or email is already taken
            RepositoryError: If the write fails
        """
        ...

    @abstractmethod
    def get_by_id(self, user_id: UUID) -> User: ...

    @abstractmethod
    def get_by_email(self, email: str) -> User: ...

    @abstractmethod
    def get_by_username(self, username: str) -> User: ...

    @abstractmethod
    def update(self, user: User) -> User: ...

    @abstractmethod
    def delete(self, user_id: UUID) -> None:
        """Soft delete: the user is deactivated, never removed."""
        ...

    @abstractmethod
    def list_users(self, limit: int, offset: int) -> list[User]:
        """Active users, newest first."""
        ...

    @abstractmethod
    def update_last_login(self, user_id: UUID) -> None: ...

    # Profiles

    @abstractmethod
    def create_profile(self, profile: UserProfile) -> UserProfile: ...

    @abstractmethod
    def get_profile(self, user_id: UUID) -> UserProfile: ...

    @abstractmethod
    def update_profile(self, profile: UserProfile) -> UserProfile: ...

    # Addresses

    @abstractmethod
    def create_address(self, address: UserAddress) -> UserAddress:
        """
        Persist a new address.

        When the address is flagged default, every other default of the same
        user and type is cleared in the same transaction.
        """
        ...

    @abstractmethod
    def get_addresses(self, user_id: UUID) -> list[UserAddress]:
        """Addresses of a user, defaults first, then newest first."""
        ...

    @abstractmethod
    def get_address_by_id(self, address_id: UUID) -> UserAddress: ...

    @abstractmethod
    def update_address(self, address: UserAddress) -> UserAddress: ...

    @abstractmethod
    def delete_address(self, address_id: UUID) -> None: ...

    # Single-use tokens

    @abstractmethod
    def create_password_reset_token(self, token: PasswordResetToken) -> PasswordResetToken: ...

    @abstractmethod
    def get_valid_password_reset_token(self, token: str) -> PasswordResetToken:
        """Unused and unexpired token, else TokenNotFoundError."""
        ...

    @abstractmethod
    def mark_password_reset_token_used(self, token_id: UUID) -> None:
        """Consume the token exactly once; unknown or already used, TokenNotFoundError."""
        ...

    @abstractmethod
    def create_email_verification_token(
        self, token: EmailVerificationToken
    ) -> EmailVerificationToken: ...

    @abstractmethod
    def get_valid_email_verification_token(self, token: str) -> EmailVerificationToken: ...

    @abstractmethod
    def mark_email_verification_token_used(self, token_id: UUID) -> None:
        """Consume the token exactly once; unknown or already used, TokenNotFoundError."""
        ...
