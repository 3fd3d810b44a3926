"""
JWT token management service for authentication.

This module handles creation and validation of the access and refresh
tokens. Both are HS256-signed with a shared secret and are told apart by
their audience claim, so a token of one kind never validates as the other.
"""

import logging
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID, uuid4

import jwt

from src.application.config import DEVELOPMENT_JWT_SECRET, JWTConfig
from src.application.interfaces.exceptions import ConfigurationError

from .types import AccessClaims, RefreshClaims, TokenPair

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

_REFRESH_REQUIRED_CLAIMS = ["exp", "iat", "nbf", "iss", "aud", "sub", "jti"]
_ACCESS_REQUIRED_CLAIMS = [*_REFRESH_REQUIRED_CLAIMS, "email", "username", "role"]


class InvalidTokenException(Exception):
    """Raised when a token is invalid."""

    pass


class TokenExpiredException(InvalidTokenException):
    """Raised when a token has expired."""

    pass


def generate_secure_token(nbytes: int = 32) -> str:
    """Random hex string for single-use tokens (64 characters by default)."""
    return secrets.token_hex(nbytes)


class JWTService:
    """
    JWT token service for creating and validating tokens.

    Supports:
    - Access tokens (15 minutes default)
    - Refresh tokens (24 hours default)
    - Separate audiences per token use
    """

    def __init__(self, config: JWTConfig):
        """
        Initialize JWT service.

        Args:
            config: Secret, issuer, lifetimes and audiences

        Raises:
            ConfigurationError: If the secret is empty
        """
        if not config.secret_key:
            raise ConfigurationError("JWT secret key must not be empty")
        if config.secret_key == DEVELOPMENT_JWT_SECRET:
            logger.warning(
                "Using the development JWT secret. Set JWT_SECRET_KEY before deploying; "
                "tokens signed with this secret can be forged by anyone."
            )

        self._secret = config.secret_key
        self.issuer = config.issuer
        self.algorithm = ALGORITHM
        self.access_audience = config.access_audience
        self.refresh_audience = config.refresh_audience
        self.access_token_expire = timedelta(minutes=config.access_token_expire_minutes)
        self.refresh_token_expire = timedelta(hours=config.refresh_token_expire_hours)
        self.leeway = timedelta(seconds=config.leeway_seconds)

    @property
    def access_token_ttl_seconds(self) -> int:
        return int(self.access_token_expire.total_seconds())

    @property
    def refresh_token_ttl_seconds(self) -> int:
        return int(self.refresh_token_expire.total_seconds())

    def create_access_token(self, user_id: UUID, email: str, username: str, role: str) -> str:
        """
        Create JWT access token.

        Args:
            user_id: User identifier
            email: User email
            username: Username
            role: User role

        Returns:
            Signed JWT access token
        """
        now = datetime.now(UTC)
        payload = {
            # Standard claims
            "iss": self.issuer,
            "sub": str(user_id),
            "aud": [self.access_audience],
            "exp": now + self.access_token_expire,
            "nbf": now,
            "iat": now,
            "jti": str(uuid4()),
            # User info
            "user_id": str(user_id),
            "email": email,
            "username": username,
            "role": role,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def create_refresh_token(self, user_id: UUID) -> str:
        """
        Create JWT refresh token.

        Carries no user details; the subject is looked up again on refresh.
        """
        now = datetime.now(UTC)
        payload = {
            "iss": self.issuer,
            "sub": str(user_id),
            "aud": [self.refresh_audience],
            "exp": now + self.refresh_token_expire,
            "nbf": now,
            "iat": now,
            "jti": str(uuid4()),
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def issue_token_pair(self, user_id: UUID, email: str, username: str, role: str) -> TokenPair:
        """Create an access and a refresh token for the user."""
        pair = TokenPair(
            access_token=self.create_access_token(user_id, email, username, role),
            refresh_token=self.create_refresh_token(user_id),
            expires_in=self.access_token_ttl_seconds,
        )
        logger.info(f"Issued token pair for user {user_id}")
        return pair

    def _decode(self, token: str, audience: str, required: list[str], kind: str) -> dict[str, Any]:
        if not token or not isinstance(token, str):
            raise InvalidTokenException(f"Invalid {kind} token: empty token")
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                audience=audience,
                leeway=self.leeway,
                options={
                    "verify_signature": True,
                    "verify_exp": True,
                    "verify_nbf": True,
                    "verify_iat": True,
                    "verify_aud": True,
                    "verify_iss": True,
                    "require": required,
                },
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredException(f"{kind.capitalize()} token has expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenException(f"Invalid {kind} token: {e!s}") from e
        return dict(payload)

    def validate_access_token(self, token: str) -> AccessClaims:
        """
        Verify and decode access token.

        Args:
            token: JWT access token

        Returns:
            Verified claims

        Raises:
            TokenExpiredException: If token is expired
            InvalidTokenException: If token is invalid for any other reason
        """
        payload = self._decode(token, self.access_audience, _ACCESS_REQUIRED_CLAIMS, "access")
        try:
            user_id = UUID(payload["sub"])
        except (ValueError, TypeError, AttributeError) as e:
            raise InvalidTokenException("Invalid access token: malformed subject") from e

        return AccessClaims(
            user_id=user_id,
            email=payload["email"],
            username=payload["username"],
            role=payload["role"],
            jti=payload["jti"],
            issued_at=datetime.fromtimestamp(payload["iat"], tz=UTC),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=UTC),
        )

    def validate_refresh_token(self, token: str) -> RefreshClaims:
        """
        Verify and decode refresh token.

        Only the signature, lifetime, issuer and refresh audience are checked
        here; whether the token is still the current one is up to the session
        cache.

        Raises:
            TokenExpiredException: If token is expired
            InvalidTokenException: If token is invalid for any other reason
        """
        payload = self._decode(token, self.refresh_audience, _REFRESH_REQUIRED_CLAIMS, "refresh")
        return RefreshClaims(
            subject=str(payload["sub"]),
            jti=payload["jti"],
            issued_at=datetime.fromtimestamp(payload["iat"], tz=UTC),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=UTC),
        )
