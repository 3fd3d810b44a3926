"""
Tests for password hashing and password policy.
"""

import bcrypt
import pytest

from src.infrastructure.auth.services.password_service import (
    PasswordHasher,
    PasswordService,
    PasswordValidator,
)


class TestPasswordHasher:
    @pytest.fixture
    def hasher(self):
        return PasswordHasher(rounds=4)

    def test_hash_and_verify(self, hasher):
        hashed = hasher.hash("Secret123!")

        assert hashed.startswith("$2")
        assert hashed != "Secret123!"
        assert hasher.verify("Secret123!", hashed)
        assert not hasher.verify("Secret123?", hashed)

    def test_hash_is_salted(self, hasher):
        assert hasher.hash("Secret123!") != hasher.hash("Secret123!")

    def test_malformed_hash_never_verifies(self, hasher):
        assert not hasher.verify("Secret123!", "not-a-bcrypt-hash")

    def test_needs_rehash(self):
        weak = PasswordHasher(rounds=4).hash("Secret123!")

        assert PasswordHasher(rounds=5).needs_rehash(weak)
        assert not PasswordHasher(rounds=4).needs_rehash(weak)
        assert not PasswordHasher(rounds=4).needs_rehash("garbage")

    def test_dummy_verify_does_not_raise(self, hasher):
        hasher.dummy_verify("anything")
        hasher.dummy_verify("anything else")


class TestPasswordValidator:
    @pytest.fixture
    def validator(self):
        return PasswordValidator()

    @pytest.mark.parametrize("password", ["Secret123!", "correct horse 9", "abcdefg1"])
    def test_accepts_policy_compliant_passwords(self, validator, password):
        is_valid, errors = validator.validate(password)

        assert is_valid, errors
        assert errors == []

    def test_rejects_short_password(self, validator):
        is_valid, errors = validator.validate("ab1")

        assert not is_valid
        assert any("at least 8" in e for e in errors)

    def test_rejects_password_over_bcrypt_limit(self, validator):
        is_valid, errors = validator.validate("a1" * 40)

        assert not is_valid
        assert any("72 bytes" in e for e in errors)

    def test_multibyte_characters_count_as_bytes(self, validator):
        # 30 characters, 90 bytes in UTF-8
        is_valid, _ = validator.validate("1" + "€" * 29)

        assert not is_valid

    def test_requires_letter_and_digit(self, validator):
        assert not validator.validate("12345678901")[0]
        assert not validator.validate("onlyletters")[0]
        assert not validator.validate("abcdefgh")[0]
        assert validator.validate("abcdefg1")[0]

    def test_rejects_common_password(self, validator):
        is_valid, errors = validator.validate("Password123")

        assert not is_valid
        assert "Password is too common" in errors

    def test_custom_minimum_length(self):
        assert not PasswordValidator(min_length=12).validate("Secret123!")[0]


class TestPasswordService:
    def test_rehash_if_needed_upgrades_weak_hash(self):
        weak_hash = bcrypt.hashpw(b"Secret123!", bcrypt.gensalt(rounds=4)).decode()
        service = PasswordService(rounds=5)

        new_hash = service.rehash_if_needed("Secret123!", weak_hash)

        assert new_hash is not None
        assert new_hash.split("$")[2] == "05"
        assert service.verify_password("Secret123!", new_hash)

    def test_rehash_if_needed_requires_correct_password(self):
        weak_hash = bcrypt.hashpw(b"Secret123!", bcrypt.gensalt(rounds=4)).decode()

        assert PasswordService(rounds=5).rehash_if_needed("wrong-pass1", weak_hash) is None

    def test_rehash_not_needed_at_current_cost(self):
        service = PasswordService(rounds=4)
        current = service.hash_password("Secret123!")

        assert service.rehash_if_needed("Secret123!", current) is None
