"""
Database Connection Management

Provides the SQLAlchemy engine and session factory for the credential store.
PostgreSQL is reached through the psycopg driver with SQLAlchemy's connection
pool; SQLite is supported for local development and tests.
"""

# Standard library imports
import logging
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

# Third-party imports
from sqlalchemy import Engine, create_engine, text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Local imports
from src.application.config import DatabaseConfig
from src.application.interfaces.exceptions import ConnectionError
from src.infrastructure.auth.models import Base

logger = logging.getLogger(__name__)


def create_db_engine(config: DatabaseConfig) -> Engine:
    """
    Create a SQLAlchemy engine from configuration.

    Pool size, overflow and checkout timeout bound how many requests can hold
    a connection at once; the connect timeout bounds each new connection.
    """
    kwargs: dict[str, Any] = {"echo": config.echo}

    if config.is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in config.url or config.url in ("sqlite://", "sqlite+pysqlite://"):
            # One shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
    else:
        kwargs.update(
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_timeout=config.pool_timeout,
            pool_pre_ping=True,
            connect_args={"connect_timeout": config.connect_timeout},
        )

    engine = create_engine(config.url, **kwargs)
    logger.info(f"Created database engine for dialect {engine.dialect.name}")
    return engine


class DatabaseConnection:
    """
    Database connection manager.

    Owns the engine and the session factory. Each request or unit of work gets
    its own session through session_scope().
    """

    def __init__(self, config: DatabaseConfig, engine: Engine | None = None) -> None:
        self.config = config
        self.engine = engine or create_db_engine(config)
        self.session_factory = sessionmaker(
            bind=self.engine, autoflush=False, expire_on_commit=False
        )

    def init_schema(self) -> None:
        """Create all tables that do not exist yet."""
        try:
            Base.metadata.create_all(self.engine)
        except OperationalError as e:
            raise ConnectionError("Could not reach database to create schema", e) from e
        logger.info("Database schema initialized")

    def new_session(self) -> Session:
        return self.session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope around a series of operations.

        Commits on success, rolls back on any exception and always closes.
        """
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def health_check(self) -> bool:
        """Run a trivial query; False when the database is unreachable."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Database health check failed: {e}")
            return False

    def dispose(self) -> None:
        """Close all pooled connections."""
        self.engine.dispose()
        logger.info("Database engine disposed")

