"""
Shared authentication types.

Value objects passed between the authentication services and their callers.
None of them carry a password hash.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any
from uuid import UUID

from .models import User, UserAddress, UserProfile


@dataclass(frozen=True)
class TokenPair:
    """Access and refresh token issued together."""

    access_token: str
    refresh_token: str
    expires_in: int  # access token lifetime in seconds
    token_type: str = "Bearer"


@dataclass(frozen=True)
class AccessClaims:
    """Verified claims of an access token."""

    user_id: UUID
    email: str
    username: str
    role: str
    jti: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class RefreshClaims:
    """Verified claims of a refresh token. The subject is left unparsed."""

    subject: str
    jti: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class UserPublicView:
    """User as shown to clients."""

    id: UUID
    username: str
    email: str
    first_name: str | None
    last_name: str | None
    phone: str | None
    is_active: bool
    is_verified: bool
    role: str
    created_at: datetime
    updated_at: datetime
    last_login_at: datetime | None = None

    @classmethod
    def from_model(cls, user: User) -> "UserPublicView":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            phone=user.phone,
            is_active=bool(user.is_active),
            is_verified=bool(user.is_verified),
            role=user.role,
            created_at=user.created_at,
            updated_at=user.updated_at,
            last_login_at=user.last_login_at,
        )


@dataclass
class ProfileUpdate:
    """Editable contact fields on the user record. None leaves a field unchanged."""

    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None


@dataclass(frozen=True)
class ProfileDetails:
    """Extended profile of a user."""

    user_id: UUID
    avatar_url: str | None
    date_of_birth: date | None
    gender: str | None
    bio: str | None
    preferences: dict[str, Any]

    @classmethod
    def from_model(cls, profile: UserProfile) -> "ProfileDetails":
        return cls(
            user_id=profile.user_id,
            avatar_url=profile.avatar_url,
            date_of_birth=profile.date_of_birth,
            gender=profile.gender,
            bio=profile.bio,
            preferences=dict(profile.preferences or {}),
        )


@dataclass
class ProfileDetailsUpdate:
    """Editable extended profile fields. None leaves a field unchanged."""

    avatar_url: str | None = None
    date_of_birth: date | None = None
    gender: str | None = None
    bio: str | None = None
    preferences: dict[str, Any] | None = None


@dataclass
class AddressInput:
    """Fields a caller supplies to create or replace an address."""

    first_name: str
    last_name: str
    address_line1: str
    city: str
    postal_code: str
    country: str
    type: str = "shipping"
    company: str | None = None
    address_line2: str | None = None
    state: str | None = None
    phone: str | None = None
    is_default: bool = False


@dataclass(frozen=True)
class AddressView:
    """Address as shown to clients."""

    id: UUID
    user_id: UUID
    type: str
    first_name: str
    last_name: str
    company: str | None
    address_line1: str
    address_line2: str | None
    city: str
    state: str | None
    postal_code: str
    country: str
    phone: str | None
    is_default: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, address: UserAddress) -> "AddressView":
        return cls(
            id=address.id,
            user_id=address.user_id,
            type=address.type,
            first_name=address.first_name,
            last_name=address.last_name,
            company=address.company,
            address_line1=address.address_line1,
            address_line2=address.address_line2,
            city=address.city,
            state=address.state,
            postal_code=address.postal_code,
            country=address.country,
            phone=address.phone,
            is_default=bool(address.is_default),
            created_at=address.created_at,
            updated_at=address.updated_at,
        )

