"""
Unit tests for structured logging module.

Tests sensitive data masking, JSON formatting, correlation tracking and
root logger setup.
"""

import json
import logging
import sys

import pytest

from src.application.config import LoggingConfig
from src.infrastructure.monitoring.logging import (
    ContextFilter,
    JSONFormatter,
    MaskingTextFormatter,
    SensitiveDataConfig,
    SensitiveDataMasker,
    correlation_context,
    correlation_id_var,
    get_correlation_id,
    setup_logging,
    user_id_var,
)


def make_record(msg, *args, exc_info=None, **extra):
    record = logging.LogRecord(
        name="commercium.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=args,
        exc_info=exc_info,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestSensitiveDataMasker:
    @pytest.fixture
    def masker(self):
        return SensitiveDataMasker(SensitiveDataConfig())

    def test_masks_key_value_pairs(self, masker):
        masked = masker.mask_message("login attempt password=Secret123! user=alice")

        assert "Secret123!" not in masked
        assert "password=***MASKED***" in masked
        assert "user=alice" in masked

    def test_masks_json_style_pairs(self, masker):
        masked = masker.mask_message('{"refresh_token": "eyJhbGciOi.abc.def", "id": 1}')

        assert "eyJhbGciOi" not in masked
        assert '"refresh_token": "***MASKED***"' in masked
        assert '"id": 1' in masked

    def test_masks_colon_pairs(self, masker):
        masked = masker.mask_message("Authorization: Bearer abc.def.ghi")

        assert "abc.def.ghi" not in masked

    def test_masks_secret_key(self, masker):
        assert "hunter2" not in masker.mask_message("secret_key=hunter2")

    def test_leaves_plain_messages_alone(self, masker):
        message = "User registered: alice (3f0c)"

        assert masker.mask_message(message) == message

    def test_mask_extra_fields(self, masker):
        masked = masker.mask_extra_fields(
            {
                "password": "Secret123!",
                "access_token": "abc",
                "user_id": "42",
                "nested": {"reset_token": "xyz", "attempt": 2},
                "note": "password=Secret123!",
            }
        )

        assert "password" not in masked
        assert masked["access_token"] == "***MASKED***"
        assert masked["user_id"] == "42"
        assert masked["nested"] == {"reset_token": "***MASKED***", "attempt": 2}
        assert masked["note"] == "password=***MASKED***"

    def test_custom_replacement(self):
        masker = SensitiveDataMasker(SensitiveDataConfig(mask_replacement="[redacted]"))

        assert masker.mask_message("password=x") == "password=[redacted]"


class TestJSONFormatter:
    def test_basic_entry(self):
        record = make_record("User %s logged in", "alice")

        entry = json.loads(JSONFormatter().format(record))

        assert entry["message"] == "User alice logged in"
        assert entry["level"] == "INFO"
        assert entry["logger"] == "commercium.test"
        assert "correlation_id" not in entry

    def test_masks_message_and_extra(self):
        record = make_record("reset with reset_token=abcdef", request_path="/reset", password="x")

        entry = json.loads(JSONFormatter().format(record))

        assert "abcdef" not in entry["message"]
        assert entry["extra"] == {"request_path": "/reset"}

    def test_includes_context_ids(self):
        record = make_record("hello", correlation_id="req-1", user_id="user-9")

        entry = json.loads(JSONFormatter().format(record))

        assert entry["correlation_id"] == "req-1"
        assert entry["user_id"] == "user-9"

    def test_exception_is_masked(self):
        try:
            raise ValueError("bad password=Secret123!")
        except ValueError:
            record = make_record("failed", exc_info=sys.exc_info())

        entry = json.loads(JSONFormatter().format(record))

        assert entry["exception"]["type"] == "ValueError"
        assert "Secret123!" not in entry["exception"]["message"]


class TestMaskingTextFormatter:
    def test_masks_rendered_line(self):
        record = make_record("token refresh refresh_token=abc.def")

        line = MaskingTextFormatter().format(record)

        assert "abc.def" not in line
        assert "[-]" in line


class TestCorrelationContext:
    def test_generates_and_resets(self):
        assert get_correlation_id() is None

        with correlation_context() as correlation_id:
            assert correlation_id
            assert get_correlation_id() == correlation_id

        assert get_correlation_id() is None

    def test_explicit_ids(self):
        with correlation_context("req-7", user_id="user-1"):
            assert correlation_id_var.get() == "req-7"
            assert user_id_var.get() == "user-1"

        assert user_id_var.get() is None

    def test_filter_attaches_context(self):
        record = make_record("hello")

        with correlation_context("req-8"):
            assert ContextFilter().filter(record)

        assert record.correlation_id == "req-8"

    def test_filter_defaults(self):
        record = make_record("hello")

        ContextFilter().filter(record)

        assert record.correlation_id == "-"
        assert record.user_id is None


class TestSetupLogging:
    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        level = root.level
        yield
        for handler in list(root.handlers):
            if any(isinstance(f, ContextFilter) for f in handler.filters):
                root.removeHandler(handler)
                handler.close()
        root.setLevel(level)

    def test_text_logging_to_stdout(self):
        root = setup_logging(LoggingConfig(level="DEBUG"))

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, MaskingTextFormatter)

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logging(LoggingConfig())
        root = setup_logging(LoggingConfig())

        assert len(root.handlers) == 1

    def test_json_logging_to_file(self, tmp_path):
        log_file = tmp_path / "service.log"
        root = setup_logging(LoggingConfig(format="json", file=str(log_file)))

        with correlation_context("req-42"):
            logging.getLogger("commercium.auth").warning("login failed password=Secret123!")
        for handler in root.handlers:
            handler.flush()

        entry = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert entry["correlation_id"] == "req-42"
        assert entry["logger"] == "commercium.auth"
        assert "Secret123!" not in entry["message"]

    def test_quiets_sqlalchemy(self):
        setup_logging(LoggingConfig(level="DEBUG"))

        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
