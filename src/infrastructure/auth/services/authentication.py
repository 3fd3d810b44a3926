"""
Authentication service.

Handles login, refresh-token exchange, logout, and the password flows
(change, forgot, reset).
"""

import logging
import secrets
from datetime import timedelta
from uuid import UUID

from email_validator import EmailNotValidError

from src.application.config import AuthConfig
from src.application.interfaces.exceptions import (
    RepositoryError,
    TokenNotFoundError,
    UserNotFoundError,
)
from src.application.interfaces.repositories import IUserRepository

from ..exceptions import (
    AccountDeactivatedError,
    IncorrectPasswordError,
    InvalidCredentialsError,
    InvalidInputError,
    InvalidOrExpiredTokenError,
    NotFoundError,
    PersistenceError,
    store_errors,
)
from ..jwt_service import InvalidTokenException, JWTService, generate_secure_token
from ..models import PasswordResetToken, User
from ..session_cache import RefreshTokenCache, SessionCacheError
from ..types import TokenPair
from .password_service import PasswordService
from .registration import normalize_email

logger = logging.getLogger(__name__)


class AuthenticationService:
    """User authentication service."""

    def __init__(
        self,
        repository: IUserRepository,
        jwt_service: JWTService,
        session_cache: RefreshTokenCache,
        password_service: PasswordService,
        config: AuthConfig,
    ):
        self.repository = repository
        self.jwt_service = jwt_service
        self.session_cache = session_cache
        self.password_service = password_service
        self.reset_token_ttl = timedelta(hours=config.password_reset_expire_hours)

    async def authenticate(self, identifier: str, password: str) -> TokenPair:
        """
        Authenticate user and issue a token pair.

        The identifier is tried as an email first, then as a username.

        Args:
            identifier: Email or username
            password: User password

        Returns:
            Access and refresh token pair

        Raises:
            InvalidCredentialsError: If the user is unknown or the password is wrong
            AccountDeactivatedError: If the credentials are right but the account is deactivated
        """
        with store_errors("login"):
            user = self._find_user(identifier)

        # Always perform password verification to prevent timing attacks
        if user is None:
            self.password_service.dummy_verify(password)
            logger.info("Login failed: unknown identifier")
            raise InvalidCredentialsError()

        if not self.password_service.verify_password(password, str(user.password_hash)):
            logger.info(f"Login failed for user {user.id}: wrong password")
            raise InvalidCredentialsError()

        if not user.status.can_authenticate:
            logger.info(f"Login refused for deactivated user {user.id}")
            raise AccountDeactivatedError()

        pair = self._issue(user)
        self._record_login(user, password)
        logger.info(f"User {user.id} logged in")
        return pair

    def _find_user(self, identifier: str) -> User | None:
        """Find user by email, then by username."""
        identifier = identifier.strip()
        try:
            return self.repository.get_by_email(normalize_email(identifier))
        except (UserNotFoundError, EmailNotValidError):
            pass
        try:
            return self.repository.get_by_username(identifier)
        except UserNotFoundError:
            return None

    def _issue(self, user: User) -> TokenPair:
        """Issue a pair and make its refresh token the cached current one."""
        pair = self.jwt_service.issue_token_pair(user.id, user.email, user.username, user.role)
        try:
            self.session_cache.put(
                user.id, pair.refresh_token, self.jwt_service.refresh_token_ttl_seconds
            )
        except SessionCacheError as e:
            # The pair is still returned; an older refresh token may stay usable
            logger.warning(f"Failed to cache refresh token for user {user.id}: {e.cause}")
        return pair

    def _record_login(self, user: User, password: str) -> None:
        """Best-effort bookkeeping after a successful login."""
        try:
            self.repository.update_last_login(user.id)
        except RepositoryError as e:
            logger.warning(f"Failed to update last login for user {user.id}: {e}")

        new_hash = self.password_service.rehash_if_needed(password, str(user.password_hash))
        if new_hash:
            try:
                user.password_hash = new_hash
                self.repository.update(user)
                logger.info(f"Upgraded password hash cost for user {user.id}")
            except RepositoryError as e:
                logger.warning(f"Failed to upgrade password hash for user {user.id}: {e}")

    async def refresh_tokens(self, refresh_token: str) -> TokenPair:
        """
        Exchange a refresh token for a new pair.

        The token must validate cryptographically and be the one currently
        cached for its subject.

        Raises:
            InvalidOrExpiredTokenError: If the token is invalid, stale or unknown
            AccountDeactivatedError: If the account was deactivated
        """
        try:
            claims = self.jwt_service.validate_refresh_token(refresh_token)
            user_id = UUID(claims.subject)
        except (InvalidTokenException, ValueError) as e:
            logger.info(f"Refresh rejected: {e}")
            raise InvalidOrExpiredTokenError() from e

        try:
            cached = self.session_cache.get(user_id)
        except SessionCacheError as e:
            logger.warning(f"Refresh rejected for user {user_id}: cache unavailable")
            raise InvalidOrExpiredTokenError() from e

        if cached is None or not secrets.compare_digest(
            cached.encode("utf-8"), refresh_token.encode("utf-8")
        ):
            logger.info(f"Refresh rejected for user {user_id}: token is not the current one")
            raise InvalidOrExpiredTokenError()

        with store_errors("refresh token"):
            try:
                user = self.repository.get_by_id(user_id)
            except UserNotFoundError as e:
                raise InvalidOrExpiredTokenError() from e

        if not user.status.can_authenticate:
            logger.info(f"Refresh refused for deactivated user {user_id}")
            raise AccountDeactivatedError()

        return self._issue(user)

    async def logout(self, user_id: UUID) -> None:
        """Forget the current refresh token so it can no longer be exchanged."""
        try:
            self.session_cache.evict(user_id)
        except SessionCacheError as e:
            logger.error(f"Failed to evict refresh token for user {user_id}: {e.cause}")
            raise PersistenceError() from e
        logger.info(f"User {user_id} logged out")

    async def change_password(
        self, user_id: UUID, current_password: str, new_password: str
    ) -> None:
        """
        Change password for an authenticated user.

        Raises:
            NotFoundError: If the user does not exist
            IncorrectPasswordError: If the current password does not match
            InvalidInputError: If the new password violates the policy
        """
        with store_errors("change password"):
            try:
                user = self.repository.get_by_id(user_id)
            except UserNotFoundError as e:
                raise NotFoundError("User") from e

            if not self.password_service.verify_password(current_password, str(user.password_hash)):
                logger.info(f"Password change rejected for user {user_id}: wrong current password")
                raise IncorrectPasswordError()

            self._validate_new_password(new_password)
            user.password_hash = self.password_service.hash_password(new_password)
            self.repository.update(user)

        logger.info(f"Password changed for user {user_id}")

    async def request_password_reset(self, email: str) -> None:
        """
        Mint a password reset token if the email belongs to a user.

        Returns the same way whether or not the account exists. Delivering
        the token to the user happens outside this service.
        """
        try:
            normalized = normalize_email(email)
        except EmailNotValidError:
            logger.info("Password reset requested for malformed email")
            return

        with store_errors("forgot password"):
            try:
                user = self.repository.get_by_email(normalized)
            except UserNotFoundError:
                logger.info("Password reset requested for unknown email")
                return

            token = PasswordResetToken.issue(user.id, generate_secure_token(), self.reset_token_ttl)
            self.repository.create_password_reset_token(token)

        logger.info(f"Password reset token issued for user {user.id}")

    async def reset_password(self, token: str, new_password: str) -> None:
        """
        Reset password with a reset token, consuming the token.

        Raises:
            InvalidOrExpiredTokenError: If the token is unknown, used or expired
            InvalidInputError: If the new password violates the policy
        """
        self._validate_new_password(new_password)

        with store_errors("reset password"):
            try:
                record = self.repository.get_valid_password_reset_token(token)
                user = self.repository.get_by_id(record.user_id)
                # Claimed before the write; a concurrent reset with the same token loses here
                self.repository.mark_password_reset_token_used(record.id)
            except (TokenNotFoundError, UserNotFoundError) as e:
                raise InvalidOrExpiredTokenError() from e

            user.password_hash = self.password_service.hash_password(new_password)
            self.repository.update(user)

        logger.info(f"Password reset for user {user.id}")

    def _validate_new_password(self, password: str) -> None:
        is_valid, errors = self.password_service.validate_password(password)
        if not is_valid:
            raise InvalidInputError(errors)
