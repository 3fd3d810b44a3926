"""Global pytest configuration and fixtures."""

# Standard library imports
from pathlib import Path
from unittest.mock import Mock

# Load test environment variables
from dotenv import load_dotenv

test_env_path = Path(__file__).parent.parent / ".env.test"
if test_env_path.exists():
    load_dotenv(test_env_path, override=True)

# Third-party imports
import pytest
import redis
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Local imports
from src.application.config import AuthConfig, JWTConfig
from src.infrastructure.auth.jwt_service import JWTService
from src.infrastructure.auth.models import Base
from src.infrastructure.auth.services import PasswordService, UserService
from src.infrastructure.auth.session_cache import RefreshTokenCache
from src.infrastructure.repositories.user_repository import SQLAlchemyUserRepository

TEST_JWT_SECRET = "test-secret-key-that-is-long-enough-for-hs256"


@pytest.fixture
def engine():
    """In-memory SQLite database shared by every session of one test."""
    engine = create_engine(
        "sqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def redis_storage() -> dict[str, str]:
    """Backing dict of the mock Redis client, exposed for assertions."""
    return {}


@pytest.fixture
def redis_client(redis_storage):
    """Mock Redis client backed by a dict."""
    client = Mock(spec=redis.Redis)

    def mock_setex(key, ttl, value):
        redis_storage[key] = value
        return True

    def mock_get(key):
        return redis_storage.get(key)

    def mock_delete(*keys):
        removed = 0
        for key in keys:
            if redis_storage.pop(key, None) is not None:
                removed += 1
        return removed

    client.setex = Mock(side_effect=mock_setex)
    client.get = Mock(side_effect=mock_get)
    client.delete = Mock(side_effect=mock_delete)
    client.ping = Mock(return_value=True)
    return client


@pytest.fixture
def jwt_config() -> JWTConfig:
    return JWTConfig(secret_key=TEST_JWT_SECRET, issuer="commercium-test")


@pytest.fixture
def auth_config() -> AuthConfig:
    # Minimum bcrypt cost keeps the suite fast
    return AuthConfig(bcrypt_rounds=4)


@pytest.fixture
def jwt_service(jwt_config) -> JWTService:
    return JWTService(jwt_config)


@pytest.fixture
def session_cache(redis_client) -> RefreshTokenCache:
    return RefreshTokenCache(redis_client)


@pytest.fixture
def password_service(auth_config) -> PasswordService:
    return PasswordService(rounds=auth_config.bcrypt_rounds)


@pytest.fixture
def repository(db_session) -> SQLAlchemyUserRepository:
    return SQLAlchemyUserRepository(db_session)


@pytest.fixture
def user_service(repository, jwt_service, session_cache, password_service, auth_config) -> UserService:
    return UserService(repository, jwt_service, session_cache, password_service, auth_config)
