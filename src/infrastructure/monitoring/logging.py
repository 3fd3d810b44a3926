"""
Structured Logging for the User Service

Logging setup with plain-text or JSON structured output, correlation IDs
carried through context variables, and masking of credentials (passwords,
tokens, secrets) before anything reaches a handler.
"""

import json
import logging
import logging.handlers
import re
import sys
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from src.application.config import LoggingConfig

# Context variables for correlation tracking
correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)
user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s"


@dataclass
class SensitiveDataConfig:
    """Configuration for sensitive data masking."""

    # Credential patterns, matched against key=value and "key": "value" pairs
    credential_patterns: list[str] = field(
        default_factory=lambda: [
            r"password",
            r"password[_-]?hash",
            r"secret[_-]?key",
            r"access[_-]?token",
            r"refresh[_-]?token",
            r"reset[_-]?token",
            r"bearer",
            r"authorization",
        ]
    )

    # Replacement text
    mask_replacement: str = "***MASKED***"

    # Fields to completely exclude from logs
    excluded_fields: set[str] = field(
        default_factory=lambda: {"password", "password_hash", "secret", "token"}
    )


class SensitiveDataMasker:
    """Masks sensitive data in log messages and extra fields."""

    def __init__(self, config: SensitiveDataConfig) -> None:
        self.config = config
        self._compiled_patterns = self._compile_patterns()

    def _compile_patterns(self) -> list[re.Pattern[str]]:
        compiled = []
        for pattern in self.config.credential_patterns:
            try:
                full_pattern = rf'("{pattern}":\s*"[^"]*"|{pattern}=\S+|{pattern}:\s*(?:bearer\s+)?\S+)'
                compiled.append(re.compile(full_pattern, re.IGNORECASE))
            except re.error as e:
                logging.getLogger(__name__).warning(f"Invalid regex pattern '{pattern}': {e}")
        return compiled

    def mask_message(self, message: str) -> str:
        """Mask sensitive data in log message."""
        masked_message = message
        for pattern in self._compiled_patterns:
            masked_message = pattern.sub(lambda m: self._replace_value(m.group(0)), masked_message)
        return masked_message

    def mask_extra_fields(self, extra: dict[str, Any]) -> dict[str, Any]:
        """Mask sensitive data in extra log fields."""
        if not extra:
            return extra

        masked_extra: dict[str, Any] = {}
        for key, value in extra.items():
            if key.lower() in self.config.excluded_fields:
                continue

            if self._is_sensitive_field(key):
                masked_extra[key] = self.config.mask_replacement
            elif isinstance(value, str):
                masked_extra[key] = self.mask_message(value)
            elif isinstance(value, dict):
                masked_extra[key] = self.mask_extra_fields(value)
            else:
                masked_extra[key] = value

        return masked_extra

    def _is_sensitive_field(self, field_name: str) -> bool:
        field_lower = field_name.lower()
        return any(re.search(pattern, field_lower) for pattern in self.config.credential_patterns)

    def _replace_value(self, match: str) -> str:
        separator = _SEPARATOR_RE.match(match)
        if separator is None:
            return self.config.mask_replacement
        key_part = match[: separator.start(1)].rstrip()
        if separator.group(1) == "=":
            return f"{key_part}={self.config.mask_replacement}"
        return f'{key_part}: "{self.config.mask_replacement}"'


_SEPARATOR_RE = re.compile(r'^"?[\w-]+"?\s*([:=])')


class ContextFilter(logging.Filter):
    """Attach correlation and user ids from the current context to each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get() or "-"
        record.user_id = user_id_var.get()
        return True


class MaskingTextFormatter(logging.Formatter):
    """Plain-text formatter that masks credentials in the rendered line."""

    def __init__(self, fmt: str = TEXT_FORMAT, masker: SensitiveDataMasker | None = None) -> None:
        super().__init__(fmt)
        self.masker = masker or SensitiveDataMasker(SensitiveDataConfig())

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = "-"
        return self.masker.mask_message(super().format(record))


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logs."""

    # Attributes every LogRecord carries; anything else came in through `extra=`
    STANDARD_FIELDS = frozenset(
        {
            "name",
            "msg",
            "args",
            "levelname",
            "levelno",
            "pathname",
            "filename",
            "module",
            "exc_info",
            "exc_text",
            "stack_info",
            "lineno",
            "funcName",
            "created",
            "msecs",
            "relativeCreated",
            "thread",
            "threadName",
            "processName",
            "process",
            "taskName",
            "message",
            "correlation_id",
            "user_id",
        }
    )

    def __init__(
        self,
        sensitive_data_config: SensitiveDataConfig | None = None,
        include_extra: bool = True,
        sort_keys: bool = True,
    ):
        super().__init__()
        self.include_extra = include_extra
        self.sort_keys = sort_keys
        self.masker = SensitiveDataMasker(sensitive_data_config or SensitiveDataConfig())

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": self.masker.mask_message(record.getMessage()),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        correlation_id = getattr(record, "correlation_id", None)
        if correlation_id and correlation_id != "-":
            log_entry["correlation_id"] = correlation_id
        user_id = getattr(record, "user_id", None)
        if user_id:
            log_entry["user_id"] = user_id

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": self.masker.mask_message(str(record.exc_info[1]))
                if record.exc_info[1]
                else None,
                "traceback": self.formatException(record.exc_info),
            }

        if self.include_extra:
            extra = {
                key: self._serialize_value(value)
                for key, value in record.__dict__.items()
                if key not in self.STANDARD_FIELDS and not key.startswith("_")
            }
            if extra:
                log_entry["extra"] = self.masker.mask_extra_fields(extra)

        return json.dumps(log_entry, sort_keys=self.sort_keys, default=self._serialize_value)

    def _serialize_value(self, value: Any) -> Any:
        if isinstance(value, uuid.UUID):
            return str(value)
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, (set, frozenset)):
            return list(value)
        if hasattr(value, "__dict__"):
            return str(value)
        return value


# Correlation ID management
def generate_correlation_id() -> str:
    """Generate a new correlation ID."""
    return str(uuid.uuid4())


def get_correlation_id() -> str | None:
    return correlation_id_var.get()


@contextmanager
def correlation_context(
    correlation_id: str | None = None, user_id: str | None = None
) -> Generator[str, None, None]:
    """Context manager for correlation ID scope, typically one per request."""
    if correlation_id is None:
        correlation_id = generate_correlation_id()

    token = correlation_id_var.set(correlation_id)
    user_token = user_id_var.set(user_id) if user_id is not None else None
    try:
        yield correlation_id
    finally:
        correlation_id_var.reset(token)
        if user_token is not None:
            user_id_var.reset(user_token)


def setup_logging(config: LoggingConfig) -> logging.Logger:
    """
    Configure the root logger from a LoggingConfig.

    Replaces any handlers already installed on the root logger, so calling it
    twice does not duplicate output.

    Args:
        config: Logging configuration

    Returns:
        The configured root logger
    """
    if config.format == "json":
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = MaskingTextFormatter()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if config.file:
        handlers.append(
            logging.handlers.RotatingFileHandler(
                config.file,
                maxBytes=config.max_bytes,
                backupCount=config.backup_count,
            )
        )

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    context_filter = ContextFilter()
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)
        root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    # Quiet chatty third-party loggers
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    return root_logger
