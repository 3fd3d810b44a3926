"""
Dependency Injection Container - Central container for application dependencies.

Builds the long-lived components of the user service once from an
ApplicationConfig (database engine, Redis client, token and password
services) and hands out a UserService per unit of work.
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager

import redis
from sqlalchemy.orm import Session

from src.application.config import ApplicationConfig
from src.infrastructure.auth.jwt_service import JWTService
from src.infrastructure.auth.services import PasswordService, UserService
from src.infrastructure.auth.session_cache import RefreshTokenCache, create_redis_client
from src.infrastructure.database.connection import DatabaseConnection
from src.infrastructure.repositories.user_repository import SQLAlchemyUserRepository

logger = logging.getLogger(__name__)


class AuthContainer:
    """
    Dependency Injection Container for the user service.

    Shared components are created once; the database session, repository and
    UserService are created per request.
    """

    def __init__(
        self,
        config: ApplicationConfig,
        database: DatabaseConnection,
        redis_client: redis.Redis,
    ) -> None:
        self.config = config
        self.database = database
        self.redis_client = redis_client

        self.jwt_service = JWTService(config.jwt)
        self.session_cache = RefreshTokenCache(redis_client)
        self.password_service = PasswordService(
            rounds=config.auth.bcrypt_rounds,
            min_length=config.auth.min_password_length,
        )

        logger.info("Dependency injection container initialized")

    @classmethod
    def from_config(cls, config: ApplicationConfig) -> "AuthContainer":
        """Validate the configuration and connect to the database and cache."""
        config.validate()
        database = DatabaseConnection(config.database)
        redis_client = create_redis_client(
            config.redis.url,
            socket_timeout=config.redis.socket_timeout,
            socket_connect_timeout=config.redis.socket_connect_timeout,
            max_connections=config.redis.max_connections,
        )
        return cls(config, database, redis_client)

    def user_service(self, session: Session) -> UserService:
        """Build a UserService bound to the given session."""
        return UserService(
            repository=SQLAlchemyUserRepository(session),
            jwt_service=self.jwt_service,
            session_cache=self.session_cache,
            password_service=self.password_service,
            config=self.config.auth,
        )

    @contextmanager
    def request_scope(self) -> Generator[UserService, None, None]:
        """UserService for one request; the session is closed afterwards."""
        with self.database.session_scope() as session:
            yield self.user_service(session)

    def health(self) -> dict[str, bool]:
        return {
            "database": self.database.health_check(),
            "session_cache": self.session_cache.ping(),
        }

    def close(self) -> None:
        """Release pooled database and Redis connections."""
        self.database.dispose()
        self.redis_client.close()
        logger.info("Container resources released")
