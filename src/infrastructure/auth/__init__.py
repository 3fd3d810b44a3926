"""
JWT-based authentication for the Commercium user service.

This package provides registration, login, refresh-token exchange,
password reset and email verification, plus profile and address management.
"""

from .exceptions import (
    AccountDeactivatedError,
    AlreadyVerifiedError,
    AuthError,
    ConflictError,
    IncorrectPasswordError,
    InvalidCredentialsError,
    InvalidInputError,
    InvalidOrExpiredTokenError,
    NotFoundError,
    PersistenceError,
)
from .jwt_service import (
    InvalidTokenException,
    JWTService,
    TokenExpiredException,
    generate_secure_token,
)
from .models import (
    Base,
    EmailVerificationToken,
    PasswordResetToken,
    User,
    UserAddress,
    UserProfile,
)
from .services import PasswordService, UserService
from .session_cache import RefreshTokenCache, SessionCacheError
from .types import (
    AccessClaims,
    AddressInput,
    AddressView,
    ProfileDetails,
    ProfileDetailsUpdate,
    ProfileUpdate,
    RefreshClaims,
    TokenPair,
    UserPublicView,
)

__all__ = [
    # JWT Service
    "JWTService",
    "TokenExpiredException",
    "InvalidTokenException",
    "generate_secure_token",
    # Session cache
    "RefreshTokenCache",
    "SessionCacheError",
    # Services
    "UserService",
    "PasswordService",
    # Errors
    "AuthError",
    "ConflictError",
    "InvalidCredentialsError",
    "AccountDeactivatedError",
    "InvalidOrExpiredTokenError",
    "IncorrectPasswordError",
    "NotFoundError",
    "AlreadyVerifiedError",
    "InvalidInputError",
    "PersistenceError",
    # Types
    "TokenPair",
    "AccessClaims",
    "RefreshClaims",
    "UserPublicView",
    "ProfileUpdate",
    "ProfileDetails",
    "ProfileDetailsUpdate",
    "AddressInput",
    "AddressView",
    # Models
    "Base",
    "User",
    "UserProfile",
    "UserAddress",
    "PasswordResetToken",
    "EmailVerificationToken",
]
