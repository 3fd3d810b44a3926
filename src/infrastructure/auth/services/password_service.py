"""
Password management service.

Handles password hashing, policy validation, and the dummy verification
used to keep login timing uniform for unknown accounts.
"""

import logging
import re
import secrets

import bcrypt

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of its input
BCRYPT_MAX_BYTES = 72


class PasswordHasher:
    """Bcrypt password hashing utility."""

    def __init__(self, rounds: int = 12) -> None:
        """Initialize with bcrypt rounds (cost factor)."""
        self.rounds = rounds
        self._dummy_hash: str | None = None

    def hash(self, password: str) -> str:
        """Hash a password using bcrypt."""
        salt = bcrypt.gensalt(rounds=self.rounds)
        hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Verify a password against its hash. Malformed hashes never verify."""
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except (ValueError, TypeError) as e:
            logger.error(f"Password verification failed: {e}")
            return False

    def needs_rehash(self, password_hash: str) -> bool:
        """Check if password needs rehashing with updated rounds."""
        hash_parts = password_hash.split("$")
        if len(hash_parts) >= 3 and hash_parts[2].isdigit():
            return int(hash_parts[2]) < self.rounds
        return False

    def dummy_verify(self, password: str) -> None:
        """Spend the same time as a real verification, for accounts that do not exist."""
        if self._dummy_hash is None:
            self._dummy_hash = self.hash(secrets.token_hex(16))
        self.verify(password, self._dummy_hash)


class PasswordValidator:
    """Password policy validator."""

    MIN_LENGTH = 8

    COMMON_PASSWORDS = {
        "password",
        "12345678",
        "123456789",
        "password1",
        "password123",
        "qwerty123",
        "letmein1",
        "iloveyou",
        "trustno1",
        "welcome1",
        "admin123",
        "abc12345",
    }

    def __init__(self, min_length: int = MIN_LENGTH) -> None:
        self.min_length = min_length

    def validate(self, password: str) -> tuple[bool, list[str]]:
        """
        Validate a password against the policy.

        Returns:
            Tuple of (is_valid, list_of_errors)
        """
        errors = []

        if len(password) < self.min_length:
            errors.append(f"Password must be at least {self.min_length} characters long")
        if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
            errors.append(f"Password must not exceed {BCRYPT_MAX_BYTES} bytes")

        if not re.search(r"[A-Za-z]", password):
            errors.append("Password must contain at least one letter")
        if not re.search(r"\d", password):
            errors.append("Password must contain at least one number")

        if password.lower() in self.COMMON_PASSWORDS:
            errors.append("Password is too common")

        return len(errors) == 0, errors


class PasswordService:
    """Password management service."""

    def __init__(self, rounds: int = 12, min_length: int = PasswordValidator.MIN_LENGTH) -> None:
        self.hasher = PasswordHasher(rounds=rounds)
        self.validator = PasswordValidator(min_length=min_length)

    def hash_password(self, password: str) -> str:
        """Hash a password."""
        return self.hasher.hash(password)

    def verify_password(self, password: str, password_hash: str) -> bool:
        """Verify a password against its hash."""
        return self.hasher.verify(password, password_hash)

    def dummy_verify(self, password: str) -> None:
        self.hasher.dummy_verify(password)

    def validate_password(self, password: str) -> tuple[bool, list[str]]:
        """Validate password against the policy."""
        return self.validator.validate(password)

    def needs_rehash(self, password_hash: str) -> bool:
        return self.hasher.needs_rehash(password_hash)

    def rehash_if_needed(self, password: str, password_hash: str) -> str | None:
        """Rehash password if the stored cost is below the configured rounds."""
        if self.needs_rehash(password_hash) and self.verify_password(password, password_hash):
            return self.hash_password(password)
        return None
