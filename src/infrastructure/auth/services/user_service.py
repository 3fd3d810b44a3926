"""
Main user service orchestrator.

Provides a unified interface for all user-related operations by
orchestrating the various specialized services.
"""

import logging
from uuid import UUID

from src.application.config import AuthConfig
from src.application.interfaces.exceptions import ProfileNotFoundError, UserNotFoundError
from src.application.interfaces.repositories import IUserRepository
from src.domain.exceptions import InvalidStatusTransition

from ..exceptions import InvalidInputError, NotFoundError, store_errors
from ..jwt_service import JWTService
from ..models import User
from ..session_cache import RefreshTokenCache, SessionCacheError
from ..types import (
    AccessClaims,
    AddressInput,
    AddressView,
    ProfileDetails,
    ProfileDetailsUpdate,
    ProfileUpdate,
    TokenPair,
    UserPublicView,
)
from .address_service import AddressService
from .authentication import AuthenticationService
from .password_service import PasswordService
from .registration import RegistrationService

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


class UserService:
    """
    Main user management service.

    Orchestrates registration, authentication, password management,
    profiles and addresses by delegating to specialized services. One
    instance serves one unit of work; it shares the repository (and so the
    database session) with the services it builds.
    """

    def __init__(
        self,
        repository: IUserRepository,
        jwt_service: JWTService,
        session_cache: RefreshTokenCache,
        password_service: PasswordService,
        config: AuthConfig,
    ):
        """
        Initialize user service with its dependencies.

        Args:
            repository: Credential store for the current unit of work
            jwt_service: Token issuing and validation
            session_cache: Store of the current refresh token per user
            password_service: Password hashing and policy
            config: Token lifetimes for reset and verification
        """
        self.repository = repository
        self.jwt_service = jwt_service
        self.session_cache = session_cache
        self.password_service = password_service

        # Initialize specialized services
        self.registration_service = RegistrationService(repository, password_service, config)
        self.auth_service = AuthenticationService(
            repository, jwt_service, session_cache, password_service, config
        )
        self.address_service = AddressService(repository)

    # Registration operations
    async def register(
        self,
        username: str,
        email: str,
        password: str,
        first_name: str | None = None,
        last_name: str | None = None,
        phone: str | None = None,
    ) -> UserPublicView:
        """Register a new user."""
        return await self.registration_service.register_user(
            username, email, password, first_name, last_name, phone
        )

    async def verify_email(self, token: str) -> None:
        """Verify user email address."""
        await self.registration_service.verify_email(token)

    async def resend_email_verification(self, user_id: UUID) -> None:
        """Mint a new email verification token."""
        await self.registration_service.resend_verification_email(user_id)

    # Authentication operations
    async def login(self, identifier: str, password: str) -> TokenPair:
        """Authenticate by email or username."""
        return await self.auth_service.authenticate(identifier, password)

    async def refresh_token(self, refresh_token: str) -> TokenPair:
        """Exchange the current refresh token for a new pair."""
        return await self.auth_service.refresh_tokens(refresh_token)

    async def logout(self, user_id: UUID) -> None:
        await self.auth_service.logout(user_id)

    def validate_access_token(self, token: str) -> AccessClaims:
        """Validate an access token presented on a request."""
        return self.jwt_service.validate_access_token(token)

    # Password operations
    async def change_password(
        self, user_id: UUID, current_password: str, new_password: str
    ) -> None:
        await self.auth_service.change_password(user_id, current_password, new_password)

    async def forgot_password(self, email: str) -> None:
        """Start a password reset. Silent about whether the account exists."""
        await self.auth_service.request_password_reset(email)

    async def reset_password(self, token: str, new_password: str) -> None:
        await self.auth_service.reset_password(token, new_password)

    # Profile operations
    def _get_user(self, user_id: UUID) -> User:
        try:
            return self.repository.get_by_id(user_id)
        except UserNotFoundError as e:
            raise NotFoundError("User") from e

    async def get_profile(self, user_id: UUID) -> UserPublicView:
        with store_errors("get profile"):
            return UserPublicView.from_model(self._get_user(user_id))

    async def update_profile(self, user_id: UUID, changes: ProfileUpdate) -> UserPublicView:
        """Update name and phone. Fields left as None are unchanged."""
        if changes.phone is not None and len(changes.phone) > 20:
            raise InvalidInputError(["Phone number must not exceed 20 characters"])

        with store_errors("update profile"):
            user = self._get_user(user_id)
            if changes.first_name is not None:
                user.first_name = changes.first_name
            if changes.last_name is not None:
                user.last_name = changes.last_name
            if changes.phone is not None:
                user.phone = changes.phone
            user = self.repository.update(user)

        logger.info(f"Updated profile for user {user_id}")
        return UserPublicView.from_model(user)

    async def get_profile_details(self, user_id: UUID) -> ProfileDetails:
        with store_errors("get profile details"):
            try:
                return ProfileDetails.from_model(self.repository.get_profile(user_id))
            except ProfileNotFoundError as e:
                raise NotFoundError("Profile") from e

    async def update_profile_details(
        self, user_id: UUID, changes: ProfileDetailsUpdate
    ) -> ProfileDetails:
        """
        Update the extended profile.

        Preferences are merged key by key into the stored mapping.
        """
        with store_errors("update profile details"):
            try:
                profile = self.repository.get_profile(user_id)
            except ProfileNotFoundError as e:
                raise NotFoundError("Profile") from e

            if changes.avatar_url is not None:
                profile.avatar_url = changes.avatar_url
            if changes.date_of_birth is not None:
                profile.date_of_birth = changes.date_of_birth
            if changes.gender is not None:
                profile.gender = changes.gender
            if changes.bio is not None:
                profile.bio = changes.bio
            if changes.preferences is not None:
                # New dict so the JSON column registers the change
                profile.preferences = {**(profile.preferences or {}), **changes.preferences}

            profile = self.repository.update_profile(profile)

        return ProfileDetails.from_model(profile)

    # Account status operations
    async def deactivate_account(self, user_id: UUID) -> UserPublicView:
        """
        Deactivate the account and drop its refresh token.

        Raises:
            NotFoundError: If the user does not exist
            InvalidInputError: If the account is already deactivated
        """
        with store_errors("deactivate account"):
            user = self._get_user(user_id)
            try:
                user.status = user.status.deactivate()
            except InvalidStatusTransition as e:
                raise InvalidInputError([str(e)]) from e
            user = self.repository.update(user)

        try:
            self.session_cache.evict(user_id)
        except SessionCacheError as e:
            # Refresh still checks the active flag, so this only leaves a stale entry
            logger.warning(f"Failed to evict refresh token for deactivated user {user_id}: {e.cause}")

        logger.info(f"Deactivated user {user_id}")
        return UserPublicView.from_model(user)

    async def reactivate_account(self, user_id: UUID) -> UserPublicView:
        with store_errors("reactivate account"):
            user = self._get_user(user_id)
            try:
                user.status = user.status.reactivate()
            except InvalidStatusTransition as e:
                raise InvalidInputError([str(e)]) from e
            user = self.repository.update(user)

        logger.info(f"Reactivated user {user_id}")
        return UserPublicView.from_model(user)

    async def list_users(self, limit: int = 20, offset: int = 0) -> list[UserPublicView]:
        """Active users, newest first."""
        if limit < 1 or offset < 0:
            raise InvalidInputError(["limit must be positive and offset non-negative"])
        limit = min(limit, MAX_PAGE_SIZE)

        with store_errors("list users"):
            users = self.repository.list_users(limit, offset)
        return [UserPublicView.from_model(u) for u in users]

    # Address operations
    async def list_addresses(self, user_id: UUID) -> list[AddressView]:
        return await self.address_service.list_addresses(user_id)

    async def get_address(self, user_id: UUID, address_id: UUID) -> AddressView:
        return await self.address_service.get_address(user_id, address_id)

    async def create_address(self, user_id: UUID, data: AddressInput) -> AddressView:
        return await self.address_service.create_address(user_id, data)

    async def update_address(
        self, user_id: UUID, address_id: UUID, data: AddressInput
    ) -> AddressView:
        return await self.address_service.update_address(user_id, address_id, data)

    async def delete_address(self, user_id: UUID, address_id: UUID) -> None:
        await self.address_service.delete_address(user_id, address_id)
