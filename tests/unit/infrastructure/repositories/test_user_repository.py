"""
Unit tests for SQLAlchemyUserRepository against in-memory SQLite.
"""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from src.application.interfaces.exceptions import (
    AddressNotFoundError,
    ConnectionError,
    DuplicateEntityError,
    ProfileNotFoundError,
    TokenNotFoundError,
    UserNotFoundError,
)
from src.infrastructure.auth.models import (
    EmailVerificationToken,
    PasswordResetToken,
    User,
    UserAddress,
    UserProfile,
)


def make_user(username="alice", email="alice@x.com", **kwargs):
    return User(username=username, email=email, password_hash="$2b$04$hash", **kwargs)


def make_address(user_id, **kwargs):
    fields = {
        "first_name": "Alice",
        "last_name": "Smith",
        "address_line1": "1 Main St",
        "city": "Springfield",
        "postal_code": "12345",
        "country": "US",
        "type": "shipping",
    }
    fields.update(kwargs)
    return UserAddress(user_id=user_id, **fields)


@pytest.fixture
def user(repository):
    return repository.create(make_user())


class TestUsers:
    def test_create_assigns_defaults(self, repository):
        created = repository.create(make_user())

        assert created.id is not None
        assert created.is_active is True
        assert created.is_verified is False
        assert created.role == "customer"
        assert created.created_at is not None

    def test_lookup_by_id_email_username(self, repository, user):
        assert repository.get_by_id(user.id).id == user.id
        assert repository.get_by_email("alice@x.com").id == user.id
        assert repository.get_by_username("alice").id == user.id

    def test_lookup_misses(self, repository):
        with pytest.raises(UserNotFoundError):
            repository.get_by_id(uuid4())
        with pytest.raises(UserNotFoundError):
            repository.get_by_email("nobody@x.com")
        with pytest.raises(UserNotFoundError):
            repository.get_by_username("nobody")

    def test_duplicate_email(self, repository, user):
        with pytest.raises(DuplicateEntityError) as exc_info:
            repository.create(make_user(username="alice2"))

        assert exc_info.value.identifier == "alice@x.com"
        # The session is usable again after the failed insert
        assert repository.get_by_username("alice").id == user.id

    def test_duplicate_username(self, repository, user):
        with pytest.raises(DuplicateEntityError) as exc_info:
            repository.create(make_user(email="other@x.com"))

        assert exc_info.value.identifier == "alice"

    def test_update_bumps_updated_at(self, repository, user):
        before = user.updated_at
        user.first_name = "Alicia"

        updated = repository.update(user)

        assert repository.get_by_id(user.id).first_name == "Alicia"
        assert updated.updated_at >= before

    def test_soft_delete(self, repository, user):
        repository.delete(user.id)

        found = repository.get_by_id(user.id)
        assert found.is_active is False
        # The instance loaded earlier in this session sees the change too
        assert user.is_active is False

    def test_delete_missing_user(self, repository):
        with pytest.raises(UserNotFoundError):
            repository.delete(uuid4())

    def test_list_users_active_newest_first(self, repository):
        base = datetime(2025, 1, 1, tzinfo=UTC)
        old = repository.create(make_user("old", "old@x.com", created_at=base))
        new = repository.create(make_user("new", "new@x.com", created_at=base + timedelta(days=1)))
        gone = repository.create(
            make_user("gone", "gone@x.com", created_at=base + timedelta(days=2))
        )
        repository.delete(gone.id)

        users = repository.list_users(limit=10, offset=0)

        assert [u.id for u in users] == [new.id, old.id]
        assert [u.id for u in repository.list_users(limit=1, offset=1)] == [old.id]

    def test_update_last_login(self, repository, user):
        assert user.last_login_at is None

        repository.update_last_login(user.id)

        assert repository.get_by_id(user.id).last_login_at is not None
        assert user.last_login_at is not None

    def test_update_last_login_is_stored(self, repository, db_session, user):
        repository.update_last_login(user.id)
        db_session.expire_all()

        assert repository.get_by_id(user.id).last_login_at is not None

    def test_update_last_login_missing_user(self, repository):
        with pytest.raises(UserNotFoundError):
            repository.update_last_login(uuid4())


class TestProfiles:
    def test_create_and_get(self, repository, user):
        repository.create_profile(UserProfile(user_id=user.id))

        profile = repository.get_profile(user.id)

        assert profile.preferences == {}

    def test_missing_profile(self, repository, user):
        with pytest.raises(ProfileNotFoundError):
            repository.get_profile(user.id)

    def test_update_profile(self, repository, user):
        profile = repository.create_profile(UserProfile(user_id=user.id))
        profile.bio = "Hello"
        profile.preferences = {"newsletter": True}

        repository.update_profile(profile)

        stored = repository.get_profile(user.id)
        assert stored.bio == "Hello"
        assert stored.preferences == {"newsletter": True}

    def test_update_missing_profile(self, repository, user):
        with pytest.raises(ProfileNotFoundError):
            repository.update_profile(UserProfile(user_id=user.id))


class TestAddresses:
    def test_create_and_list(self, repository, user):
        created = repository.create_address(make_address(user.id))

        assert repository.get_addresses(user.id)[0].id == created.id
        assert repository.get_address_by_id(created.id).city == "Springfield"

    def test_new_default_clears_previous_default(self, repository, user):
        first = repository.create_address(make_address(user.id, is_default=True))
        second = repository.create_address(make_address(user.id, is_default=True))

        addresses = repository.get_addresses(user.id)

        defaults = [a.id for a in addresses if a.is_default]
        assert defaults == [second.id]
        assert repository.get_address_by_id(first.id).is_default is False

    def test_defaults_are_per_type(self, repository, user):
        repository.create_address(make_address(user.id, is_default=True))
        repository.create_address(make_address(user.id, type="billing", is_default=True))

        addresses = repository.get_addresses(user.id)

        assert sum(a.is_default for a in addresses) == 2

    def test_defaults_are_per_user(self, repository, user):
        other = repository.create(make_user("bob", "bob@x.com"))
        mine = repository.create_address(make_address(user.id, is_default=True))
        repository.create_address(make_address(other.id, is_default=True))

        assert repository.get_address_by_id(mine.id).is_default is True

    def test_update_to_default_keeps_self(self, repository, user):
        first = repository.create_address(make_address(user.id, is_default=True))
        second = repository.create_address(make_address(user.id))

        second.is_default = True
        repository.update_address(second)

        assert repository.get_address_by_id(second.id).is_default is True
        assert repository.get_address_by_id(first.id).is_default is False

    def test_failed_commit_keeps_previous_default(
        self, repository, db_session, monkeypatch, user
    ):
        first = repository.create_address(make_address(user.id, is_default=True))
        second = repository.create_address(make_address(user.id))

        def flush_then_fail():
            db_session.flush()
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db_session, "commit", flush_then_fail)
        second.is_default = True

        with pytest.raises(ConnectionError):
            repository.update_address(second)

        monkeypatch.undo()
        addresses = repository.get_addresses(user.id)
        assert [(a.id, a.is_default) for a in addresses] == [(first.id, True), (second.id, False)]

    def test_update_missing_address(self, repository, user):
        with pytest.raises(AddressNotFoundError):
            repository.update_address(make_address(user.id, id=uuid4()))

    def test_delete_address(self, repository, user):
        address = repository.create_address(make_address(user.id))

        repository.delete_address(address.id)

        with pytest.raises(AddressNotFoundError):
            repository.get_address_by_id(address.id)
        with pytest.raises(AddressNotFoundError):
            repository.delete_address(address.id)


class TestSingleUseTokens:
    def test_valid_reset_token(self, repository, user):
        issued = repository.create_password_reset_token(
            PasswordResetToken.issue(user.id, "reset-abc", timedelta(hours=1))
        )

        found = repository.get_valid_password_reset_token("reset-abc")

        assert found.id == issued.id
        assert found.is_valid()

    def test_expired_token_is_not_returned(self, repository, user):
        repository.create_password_reset_token(
            PasswordResetToken.issue(user.id, "reset-old", timedelta(seconds=-1))
        )

        with pytest.raises(TokenNotFoundError):
            repository.get_valid_password_reset_token("reset-old")

    def test_unknown_token(self, repository):
        with pytest.raises(TokenNotFoundError):
            repository.get_valid_email_verification_token("nope")

    def test_used_token_is_not_returned(self, repository, user):
        token = repository.create_email_verification_token(
            EmailVerificationToken.issue(user.id, "verify-abc", timedelta(hours=24))
        )

        repository.mark_email_verification_token_used(token.id)

        with pytest.raises(TokenNotFoundError):
            repository.get_valid_email_verification_token("verify-abc")

    def test_token_is_consumed_exactly_once(self, repository, user):
        token = repository.create_password_reset_token(
            PasswordResetToken.issue(user.id, "reset-twice", timedelta(hours=1))
        )

        repository.mark_password_reset_token_used(token.id)
        first_used_at = token.used_at

        with pytest.raises(TokenNotFoundError):
            repository.mark_password_reset_token_used(token.id)
        assert first_used_at is not None
        assert token.used_at == first_used_at

    def test_stale_lookup_cannot_consume_again(self, repository, user):
        repository.create_email_verification_token(
            EmailVerificationToken.issue(user.id, "verify-race", timedelta(hours=24))
        )
        # Two requests found the token valid before either consumed it
        seen_by_first = repository.get_valid_email_verification_token("verify-race")
        seen_by_second = repository.get_valid_email_verification_token("verify-race")

        repository.mark_email_verification_token_used(seen_by_first.id)

        with pytest.raises(TokenNotFoundError):
            repository.mark_email_verification_token_used(seen_by_second.id)

    def test_mark_missing_token(self, repository):
        with pytest.raises(TokenNotFoundError):
            repository.mark_password_reset_token_used(uuid4())

    def test_token_kinds_are_separate(self, repository, user):
        repository.create_password_reset_token(
            PasswordResetToken.issue(user.id, "shared-value", timedelta(hours=1))
        )

        with pytest.raises(TokenNotFoundError):
            repository.get_valid_email_verification_token("shared-value")
