"""
SQLAlchemy User Repository Implementation

Concrete implementation of IUserRepository over a SQLAlchemy session.
Handles users, profiles, addresses and single-use tokens. Every public
write commits its own transaction; on failure the session is rolled back
and the error is mapped to the repository exception hierarchy.
"""

from __future__ import annotations

# Standard library imports
import logging
from collections.abc import Generator
from contextlib import contextmanager
from uuid import UUID

# Third-party imports
from sqlalchemy import select, update
from sqlalchemy import exc as sa_exc
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value

# Local imports
from src.application.interfaces.exceptions import (
    AddressNotFoundError,
    ConnectionError,
    DuplicateEntityError,
    IntegrityError,
    ProfileNotFoundError,
    RepositoryError,
    TokenNotFoundError,
    TransactionError,
    UserNotFoundError,
)
from src.application.interfaces.repositories import IUserRepository
from src.infrastructure.auth.models import (
    EmailVerificationToken,
    PasswordResetToken,
    User,
    UserAddress,
    UserProfile,
    utc_now,
)

logger = logging.getLogger(__name__)

_SingleUseToken = PasswordResetToken | EmailVerificationToken


def _duplicate_field(error: sa_exc.IntegrityError) -> str | None:
    """Best guess at which unique column a violation refers to."""
    text = str(error.orig).lower()
    for column in ("email", "username"):
        if column in text:
            return column
    if "unique" in text or "duplicate" in text:
        return "unknown"
    return None


class SQLAlchemyUserRepository(IUserRepository):
    """
    SQLAlchemy implementation of IUserRepository.

    One instance per session; the session is owned by the caller.
    """

    def __init__(self, session: Session) -> None:
        """
        Initialize repository with a database session.

        Args:
            session: SQLAlchemy session for the current unit of work
        """
        self.session = session

    # ------------------------------------------------------------------
    # Transaction helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _write(self, operation: str) -> Generator[None, None, None]:
        """Run the block and commit; roll back and map errors on failure."""
        try:
            yield
            self.session.commit()
        except RepositoryError:
            self.session.rollback()
            raise
        except sa_exc.IntegrityError as e:
            self.session.rollback()
            logger.warning(f"Integrity violation during {operation}: {e.orig}")
            raise IntegrityError(operation) from e
        except sa_exc.OperationalError as e:
            self.session.rollback()
            logger.error(f"Database unavailable during {operation}: {e}")
            raise ConnectionError(f"Database unavailable during {operation}", e) from e
        except sa_exc.SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Failed to {operation}: {e}")
            raise TransactionError(operation, e) from e

    @contextmanager
    def _read(self, operation: str) -> Generator[None, None, None]:
        try:
            yield
        except sa_exc.OperationalError as e:
            self.session.rollback()
            logger.error(f"Database unavailable during {operation}: {e}")
            raise ConnectionError(f"Database unavailable during {operation}", e) from e
        except sa_exc.SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Failed to {operation}: {e}")
            raise RepositoryError(f"Failed to {operation}", e) from e

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def create(self, user: User) -> User:
        """
        Persist a new user.

        Raises:
            DuplicateEntityError: If the username or email is already taken
        """
        try:
            self.session.add(user)
            self.session.commit()
        except sa_exc.IntegrityError as e:
            self.session.rollback()
            field = _duplicate_field(e)
            if field is None:
                raise IntegrityError("users", "constraint violated") from e
            identifier = {"email": user.email, "username": user.username}.get(field, user.username)
            raise DuplicateEntityError("User", identifier, e) from e
        except sa_exc.SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Failed to create user {user.username}: {e}")
            raise RepositoryError("Failed to create user", e) from e

        logger.debug(f"Inserted user {user.id}")
        return user

    def get_by_id(self, user_id: UUID) -> User:
        with self._read("get user by id"):
            user = self.session.get(User, user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def get_by_email(self, email: str) -> User:
        with self._read("get user by email"):
            user = self.session.scalars(select(User).where(User.email == email)).first()
        if user is None:
            raise UserNotFoundError(email)
        return user

    def get_by_username(self, username: str) -> User:
        with self._read("get user by username"):
            user = self.session.scalars(select(User).where(User.username == username)).first()
        if user is None:
            raise UserNotFoundError(username)
        return user

    def update(self, user: User) -> User:
        with self._write("update user"):
            user = self.session.merge(user)
            user.updated_at = utc_now()
        return user

    def delete(self, user_id: UUID) -> None:
        """Soft delete: the user is deactivated, never removed."""
        with self._write("delete user"):
            user = self.session.get(User, user_id)
            if user is None:
                raise UserNotFoundError(user_id)
            user.is_active = False
            user.updated_at = utc_now()
        logger.info(f"Deactivated user {user_id}")

    def list_users(self, limit: int, offset: int) -> list[User]:
        """Active users, newest first."""
        with self._read("list users"):
            stmt = (
                select(User)
                .where(User.is_active.is_(True))
                .order_by(User.created_at.desc())
                .limit(limit)
                .offset(offset)
            )
            return list(self.session.scalars(stmt).all())

    def update_last_login(self, user_id: UUID) -> None:
        with self._write("update last login"):
            user = self.session.get(User, user_id)
            if user is None:
                raise UserNotFoundError(user_id)
            user.last_login_at = utc_now()

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def create_profile(self, profile: UserProfile) -> UserProfile:
        with self._write("create profile"):
            if profile.preferences is None:
                profile.preferences = {}
            self.session.add(profile)
        return profile

    def get_profile(self, user_id: UUID) -> UserProfile:
        with self._read("get profile"):
            profile = self.session.get(UserProfile, user_id)
        if profile is None:
            raise ProfileNotFoundError(user_id)
        return profile

    def update_profile(self, profile: UserProfile) -> UserProfile:
        with self._write("update profile"):
            if self.session.get(UserProfile, profile.user_id) is None:
                raise ProfileNotFoundError(profile.user_id)
            profile = self.session.merge(profile)
            profile.updated_at = utc_now()
        return profile

    # ------------------------------------------------------------------
    # Addresses
    # ------------------------------------------------------------------

    def _clear_other_defaults(self, address: UserAddress, exclude_self: bool) -> None:
        stmt = select(UserAddress).where(
            UserAddress.user_id == address.user_id,
            UserAddress.type == address.type,
            UserAddress.is_default.is_(True),
        )
        if exclude_self:
            stmt = stmt.where(UserAddress.id != address.id)
        now = utc_now()
        for other in self.session.scalars(stmt).all():
            other.is_default = False
            other.updated_at = now

    def create_address(self, address: UserAddress) -> UserAddress:
        """
        Persist a new address.

        When flagged default, the user's other defaults of the same type are
        cleared in the same transaction.
        """
        with self._write("create address"):
            if address.is_default:
                self._clear_other_defaults(address, exclude_self=False)
            self.session.add(address)
        logger.debug(f"Inserted address {address.id} for user {address.user_id}")
        return address

    def get_addresses(self, user_id: UUID) -> list[UserAddress]:
        """Addresses of a user, defaults first, then newest first."""
        with self._read("list addresses"):
            stmt = (
                select(UserAddress)
                .where(UserAddress.user_id == user_id)
                .order_by(UserAddress.is_default.desc(), UserAddress.created_at.desc())
            )
            return list(self.session.scalars(stmt).all())

    def get_address_by_id(self, address_id: UUID) -> UserAddress:
        with self._read("get address"):
            address = self.session.get(UserAddress, address_id)
        if address is None:
            raise AddressNotFoundError(address_id)
        return address

    def update_address(self, address: UserAddress) -> UserAddress:
        with self._write("update address"):
            if self.session.get(UserAddress, address.id) is None:
                raise AddressNotFoundError(address.id)
            if address.is_default:
                self._clear_other_defaults(address, exclude_self=True)
            address = self.session.merge(address)
            address.updated_at = utc_now()
        return address

    def delete_address(self, address_id: UUID) -> None:
        with self._write("delete address"):
            address = self.session.get(UserAddress, address_id)
            if address is None:
                raise AddressNotFoundError(address_id)
            self.session.delete(address)

    # ------------------------------------------------------------------
    # Single-use tokens
    # ------------------------------------------------------------------

    def _create_token(self, token: _SingleUseToken, operation: str) -> _SingleUseToken:
        with self._write(operation):
            self.session.add(token)
        return token

    def _get_valid_token(
        self, model: type[PasswordResetToken] | type[EmailVerificationToken], token: str
    ) -> _SingleUseToken:
        with self._read(f"look up {model.__tablename__}"):
            stmt = select(model).where(
                model.token == token,
                model.used_at.is_(None),
                model.expires_at > utc_now(),
            )
            found = self.session.scalars(stmt).first()
        if found is None:
            raise TokenNotFoundError(model.__name__)
        return found

    def _mark_token_used(
        self, model: type[PasswordResetToken] | type[EmailVerificationToken], token_id: UUID
    ) -> None:
        """
        Consume a token exactly once.

        The write is conditional on ``used_at IS NULL`` so that of two
        concurrent consumers only one updates a row.

        Raises:
            TokenNotFoundError: If the token is unknown or already used
        """
        used_at = utc_now()
        with self._write(f"mark {model.__tablename__} used"):
            result = self.session.execute(
                update(model)
                .where(model.id == token_id, model.used_at.is_(None))
                .values(used_at=used_at)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise TokenNotFoundError(model.__name__)
            # Keep an instance already loaded in this session in step with the row
            loaded = self.session.identity_map.get(self.session.identity_key(model, token_id))
            if loaded is not None:
                set_committed_value(loaded, "used_at", used_at)

    def create_password_reset_token(self, token: PasswordResetToken) -> PasswordResetToken:
        return self._create_token(token, "create password reset token")  # type: ignore[return-value]

    def get_valid_password_reset_token(self, token: str) -> PasswordResetToken:
        return self._get_valid_token(PasswordResetToken, token)  # type: ignore[return-value]

    def mark_password_reset_token_used(self, token_id: UUID) -> None:
        self._mark_token_used(PasswordResetToken, token_id)

    def create_email_verification_token(
        self, token: EmailVerificationToken
    ) -> EmailVerificationToken:
        return self._create_token(token, "create email verification token")  # type: ignore[return-value]

    def get_valid_email_verification_token(self, token: str) -> EmailVerificationToken:
        return self._get_valid_token(EmailVerificationToken, token)  # type: ignore[return-value]

    def mark_email_verification_token_used(self, token_id: UUID) -> None:
        self._mark_token_used(EmailVerificationToken, token_id)
