"""
Database models for the user service.

This module defines SQLAlchemy models for users, their profile and
addresses, and the single-use tokens behind the password-reset and
e-mail-verification flows.
"""

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import declarative_base, relationship

from src.domain.entities.account import AccountStatus

Base = declarative_base()

DEFAULT_ROLE = "customer"
ADDRESS_TYPES = ("shipping", "billing")


def utc_now() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything is stored as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class User(Base):  # type: ignore[valid-type, misc]
    """User account with credentials and status flags."""

    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)

    # Contact information
    first_name = Column(String(100))
    last_name = Column(String(100))
    phone = Column(String(20))

    # Status
    is_active = Column(Boolean, nullable=False, default=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    role = Column(String(20), nullable=False, default=DEFAULT_ROLE)

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)
    last_login_at = Column(DateTime(timezone=True))

    # Relationships
    profile = relationship(
        "UserProfile", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    addresses = relationship("UserAddress", back_populates="user", cascade="all, delete-orphan")
    password_reset_tokens = relationship(
        "PasswordResetToken", back_populates="user", cascade="all, delete-orphan"
    )
    email_verification_tokens = relationship(
        "EmailVerificationToken", back_populates="user", cascade="all, delete-orphan"
    )

    __table_args__ = (Index("idx_users_active_created", "is_active", "created_at"),)

    @property
    def status(self) -> AccountStatus:
        return AccountStatus.from_flags(bool(self.is_active), bool(self.is_verified))

    @status.setter
    def status(self, value: AccountStatus) -> None:
        self.is_active, self.is_verified = value.as_flags()

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username}, status={self.status})>"


class UserProfile(Base):  # type: ignore[valid-type, misc]
    """Extended profile, one row per user."""

    __tablename__ = "user_profiles"

    user_id = Column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    avatar_url = Column(String(500))
    date_of_birth = Column(Date)
    gender = Column(String(20))
    bio = Column(Text)
    preferences = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    user = relationship("User", back_populates="profile")


class UserAddress(Base):  # type: ignore[valid-type, misc]
    """Shipping or billing address. At most one default per user and type."""

    __tablename__ = "user_addresses"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    type = Column(String(20), nullable=False, default="shipping")
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    company = Column(String(100))
    address_line1 = Column(String(255), nullable=False)
    address_line2 = Column(String(255))
    city = Column(String(100), nullable=False)
    state = Column(String(100))
    postal_code = Column(String(20), nullable=False)
    country = Column(String(2), nullable=False)
    phone = Column(String(20))
    is_default = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    user = relationship("User", back_populates="addresses")

    __table_args__ = (Index("idx_user_addresses_user_type", "user_id", "type"),)


class _SingleUseTokenMixin:
    """Columns and helpers shared by the password-reset and verification tokens."""

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    token = Column(String(255), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    @classmethod
    def issue(cls, user_id: Any, token: str, ttl: timedelta) -> Any:
        now = utc_now()
        return cls(user_id=user_id, token=token, created_at=now, expires_at=now + ttl)

    def is_valid(self, now: datetime | None = None) -> bool:
        """Unused and not yet expired."""
        now = now or utc_now()
        return self.used_at is None and as_utc(self.expires_at) > now


class PasswordResetToken(_SingleUseTokenMixin, Base):  # type: ignore[valid-type, misc]
    """Single-use password reset token."""

    __tablename__ = "password_reset_tokens"

    user_id = Column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user = relationship("User", back_populates="password_reset_tokens")


class EmailVerificationToken(_SingleUseTokenMixin, Base):  # type: ignore[valid-type, misc]
    """Single-use e-mail verification token."""

    __tablename__ = "email_verification_tokens"

    user_id = Column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user = relationship("User", back_populates="email_verification_tokens")


__all__ = [
    "Base",
    "User",
    "UserProfile",
    "UserAddress",
    "PasswordResetToken",
    "EmailVerificationToken",
    "DEFAULT_ROLE",
    "ADDRESS_TYPES",
    "utc_now",
    "as_utc",
]
