"""
Configuration Loader - Handles IO operations for configuration management.

This module is responsible for loading configuration from environment
variables (optionally seeded from a .env file) and from YAML files, while
keeping the ApplicationConfig class focused on data representation and
validation.
"""

import os
from dataclasses import fields, replace
from typing import Any, TypeVar

import yaml
from dotenv import load_dotenv

from src.application.config import (
    ApplicationConfig,
    AuthConfig,
    DatabaseConfig,
    Environment,
    JWTConfig,
    LoggingConfig,
    RedisConfig,
)
from src.application.interfaces.exceptions import ConfigurationError

T = TypeVar("T")


def _merge_section(section: T, data: dict[str, Any] | None) -> T:
    """Overlay known keys from a YAML mapping onto a config dataclass."""
    if not data:
        return section
    known = {f.name for f in fields(section)}  # type: ignore[arg-type]
    unknown = set(data) - known
    if unknown:
        raise ConfigurationError(
            f"Unknown keys in {type(section).__name__}: {', '.join(sorted(unknown))}"
        )
    return replace(section, **data)  # type: ignore[type-var]


class ConfigLoader:
    """Handles loading and saving of configuration from various sources."""

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> ApplicationConfig:
        """
        Create configuration from environment variables.

        Variables already present in the process environment take precedence
        over values from the .env file.

        Args:
            dotenv_path: Optional explicit path to a .env file

        Returns:
            ApplicationConfig: Configuration loaded from environment
        """
        load_dotenv(dotenv_path)

        env_str = os.getenv("ENVIRONMENT", "development")
        try:
            environment = Environment(env_str)
        except ValueError as e:
            raise ConfigurationError(f"Invalid environment: {env_str}", e) from e

        return ApplicationConfig(
            environment=environment,
            database=DatabaseConfig.from_env(),
            redis=RedisConfig.from_env(),
            jwt=JWTConfig.from_env(),
            auth=AuthConfig.from_env(),
            logging=LoggingConfig.from_env(),
        )

    @classmethod
    def from_yaml(cls, path: str) -> ApplicationConfig:
        """
        Load configuration from YAML file.

        Missing sections and keys keep their defaults.

        Args:
            path: Path to YAML configuration file

        Returns:
            ApplicationConfig: Configuration loaded from YAML file
        """
        with open(path) as f:
            data = yaml.safe_load(f)

        config = ApplicationConfig()

        # Handle empty or null YAML files
        if not data:
            return config

        if "environment" in data:
            try:
                config.environment = Environment(data["environment"])
            except ValueError as e:
                raise ConfigurationError(f"Invalid environment: {data['environment']}", e) from e

        config.database = _merge_section(config.database, data.get("database"))
        config.redis = _merge_section(config.redis, data.get("redis"))
        config.jwt = _merge_section(config.jwt, data.get("jwt"))
        config.auth = _merge_section(config.auth, data.get("auth"))
        config.logging = _merge_section(config.logging, data.get("logging"))

        return config

    @classmethod
    def to_yaml(cls, config: ApplicationConfig) -> str:
        """
        Convert configuration to YAML string.

        Args:
            config: ApplicationConfig instance to convert

        Returns:
            str: YAML representation of the configuration, without secrets
        """
        return yaml.dump(config.to_dict(), default_flow_style=False)
