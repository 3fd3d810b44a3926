"""
User registration service.

Handles account creation, input validation, and the e-mail verification
flow (verify and resend).
"""

import logging
import re
from datetime import timedelta
from uuid import UUID

from email_validator import EmailNotValidError, validate_email

from src.application.config import AuthConfig
from src.application.interfaces.exceptions import (
    DuplicateEntityError,
    RepositoryError,
    TokenNotFoundError,
    UserNotFoundError,
)
from src.application.interfaces.repositories import IUserRepository
from src.domain.entities.account import AccountStatus

from ..exceptions import (
    AlreadyVerifiedError,
    ConflictError,
    InvalidInputError,
    InvalidOrExpiredTokenError,
    NotFoundError,
    store_errors,
)
from ..jwt_service import generate_secure_token
from ..models import DEFAULT_ROLE, EmailVerificationToken, User, UserProfile
from ..types import UserPublicView
from .password_service import PasswordService

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_.-]{3,50}$")


def normalize_email(email: str) -> str:
    """Validate syntax and return the canonical lower-case form."""
    validated = validate_email(email.strip(), check_deliverability=False)
    return validated.normalized.lower()


class RegistrationService:
    """User registration service."""

    def __init__(
        self,
        repository: IUserRepository,
        password_service: PasswordService,
        config: AuthConfig,
    ):
        self.repository = repository
        self.password_service = password_service
        self.verification_ttl = timedelta(hours=config.email_verification_expire_hours)

    async def register_user(
        self,
        username: str,
        email: str,
        password: str,
        first_name: str | None = None,
        last_name: str | None = None,
        phone: str | None = None,
    ) -> UserPublicView:
        """
        Register a new user.

        The account starts active and unverified with the customer role.
        Profile and verification-token creation are best effort: their
        failure is logged and the registration still succeeds.

        Args:
            username: Unique username
            email: Unique email address
            password: Plain text password
            first_name: Optional first name
            last_name: Optional last name
            phone: Optional phone number

        Returns:
            Public view of the new user

        Raises:
            InvalidInputError: If username, email or password is rejected
            ConflictError: If the username or email is already registered
            PersistenceError: If the user row cannot be written
        """
        username = username.strip()
        email = self._validate(username, email, password, phone)

        with store_errors("register user"):
            self._check_user_exists(email, username)

            user = User(
                username=username,
                email=email,
                password_hash=self.password_service.hash_password(password),
                first_name=first_name,
                last_name=last_name,
                phone=phone,
                role=DEFAULT_ROLE,
            )
            user.status = AccountStatus.registered()

            try:
                user = self.repository.create(user)
            except DuplicateEntityError as e:
                # Lost a race with a concurrent registration
                field = "email" if e.identifier == email else "username"
                raise ConflictError(field) from e

        logger.info(f"Registered user {user.id} ({username})")

        self._create_profile(user)
        self._setup_email_verification(user)

        return UserPublicView.from_model(user)

    def _validate(self, username: str, email: str, password: str, phone: str | None) -> str:
        errors: list[str] = []

        if not USERNAME_PATTERN.match(username):
            errors.append(
                "Username must be 3-50 characters of letters, digits, '.', '_' or '-'"
            )

        normalized_email = email
        try:
            normalized_email = normalize_email(email)
        except EmailNotValidError as e:
            errors.append(f"Invalid email: {e!s}")

        _, password_errors = self.password_service.validate_password(password)
        errors.extend(password_errors)

        if phone is not None and len(phone) > 20:
            errors.append("Phone number must not exceed 20 characters")

        if errors:
            raise InvalidInputError(errors)
        return normalized_email

    def _check_user_exists(self, email: str, username: str) -> None:
        """Raise ConflictError when the email or username is taken."""
        for field, lookup, value in (
            ("email", self.repository.get_by_email, email),
            ("username", self.repository.get_by_username, username),
        ):
            try:
                lookup(value)
            except UserNotFoundError:
                continue
            logger.info(f"Registration rejected: {field} already registered")
            raise ConflictError(field)

    def _create_profile(self, user: User) -> None:
        try:
            self.repository.create_profile(UserProfile(user_id=user.id, preferences={}))
        except RepositoryError as e:
            logger.warning(f"Failed to create profile for user {user.id}: {e}")

    def _setup_email_verification(self, user: User) -> EmailVerificationToken | None:
        try:
            token = EmailVerificationToken.issue(user.id, generate_secure_token(), self.verification_ttl)
            return self.repository.create_email_verification_token(token)
        except RepositoryError as e:
            logger.warning(f"Failed to create verification token for user {user.id}: {e}")
            return None

    async def verify_email(self, verification_token: str) -> None:
        """
        Verify user email address.

        The token is consumed even when the account was verified in the meantime.

        Raises:
            InvalidOrExpiredTokenError: If the token is unknown, used or expired
        """
        with store_errors("verify email"):
            try:
                record = self.repository.get_valid_email_verification_token(verification_token)
                user = self.repository.get_by_id(record.user_id)
                self.repository.mark_email_verification_token_used(record.id)
            except (TokenNotFoundError, UserNotFoundError) as e:
                raise InvalidOrExpiredTokenError() from e

            if not user.status.is_verified:
                user.status = user.status.verify()
                self.repository.update(user)

        logger.info(f"Email verified for user {user.id}")

    async def resend_verification_email(self, user_id: UUID) -> None:
        """
        Mint a fresh verification token.

        Earlier tokens stay valid until they expire or one of them is used.

        Raises:
            NotFoundError: If the user does not exist
            AlreadyVerifiedError: If the email is already verified
        """
        with store_errors("resend verification"):
            try:
                user = self.repository.get_by_id(user_id)
            except UserNotFoundError as e:
                raise NotFoundError("User") from e

            if user.status.is_verified:
                raise AlreadyVerifiedError()

            token = EmailVerificationToken.issue(user.id, generate_secure_token(), self.verification_ttl)
            self.repository.create_email_verification_token(token)

        logger.info(f"Issued new verification token for user {user.id}")
