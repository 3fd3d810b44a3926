"""Infrastructure Layer for the Commercium User Service.

This module provides concrete implementations of the application layer interfaces.

Key modules:
- auth: token service, session cache, ORM models and the user services
- database: SQLAlchemy engine and session management
- repositories: SQLAlchemy implementation of the credential store
- monitoring: logging setup with correlation ids and credential masking
- container: wiring of all of the above from an ApplicationConfig

Example usage:
    from src.application.config_loader import ConfigLoader
    from src.infrastructure.container import AuthContainer
    from src.infrastructure.monitoring.logging import correlation_context, setup_logging

    config = ConfigLoader.from_env()
    setup_logging(config.logging)
    container = AuthContainer.from_config(config)
    container.database.init_schema()

    with correlation_context(), container.request_scope() as users:
        pair = await users.login("alice", "Secret123!")
"""
