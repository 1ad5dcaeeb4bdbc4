"""Unit tests for logging setup and log sanitization."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from homecrew.core.config import Settings
from homecrew.core.logging import (
    ContextFilter,
    get_request_id,
    redact_url,
    sanitize_error,
    sanitize_log_value,
    set_request_id,
    setup_logging,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSetupLogging:
    def test_writes_plain_log_file(self, tmp_path: Path, restore_root_logger: None) -> None:
        log_file = tmp_path / "logs" / "app.log"
        setup_logging(Settings(_env_file=None, log_file_path=str(log_file), log_level="INFO"))

        logging.getLogger("homecrew.test").info("hello")
        for handler in logging.getLogger().handlers:
            handler.flush()

        content = log_file.read_text()
        assert "homecrew.test" in content
        assert "hello" in content

    def test_json_log_includes_request_id(
        self, tmp_path: Path, restore_root_logger: None
    ) -> None:
        log_file = tmp_path / "app.jsonl"
        setup_logging(
            Settings(_env_file=None, log_file_path=str(log_file), log_json=True, log_level="INFO")
        )
        set_request_id("abc123")
        try:
            logging.getLogger("homecrew.test").warning("structured")
        finally:
            set_request_id(None)
        for handler in logging.getLogger().handlers:
            handler.flush()

        entries = [json.loads(line) for line in log_file.read_text().splitlines()]
        entry = next(e for e in entries if e["message"] == "structured")
        assert entry["level"] == "WARNING"
        assert entry["component"] == "homecrew.test"
        assert entry["request_id"] == "abc123"


class TestRequestContext:
    def test_context_filter_adds_request_id(self) -> None:
        set_request_id("r-1")
        try:
            record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
            assert ContextFilter().filter(record)
            assert record.request_id == "r-1"  # type: ignore[attr-defined]
        finally:
            set_request_id(None)
        assert get_request_id() is None


class TestSanitization:
    def test_paths_reduced_to_filename(self) -> None:
        message = sanitize_error(FileNotFoundError("missing /home/ann/secret/passport.jpg"))
        assert "/home/ann" not in message
        assert "passport.jpg" in message

    def test_credentials_redacted(self) -> None:
        message = sanitize_error(RuntimeError("auth failed token=abc123"))
        assert "abc123" not in message
        assert "[REDACTED]" in message

    def test_truncates_long_messages(self) -> None:
        assert sanitize_error(RuntimeError("x" * 1000), max_length=10).endswith("[truncated]")

    def test_control_characters_stripped(self) -> None:
        assert sanitize_log_value("Maria\nFAKE ENTRY") == "MariaFAKE ENTRY"

    def test_redact_url(self) -> None:
        assert (
            redact_url("postgresql+asyncpg://crew:pw@db:5432/homecrew")
            == "postgresql+asyncpg://[REDACTED]@db:5432/homecrew"
        )
        assert redact_url("sqlite+aiosqlite:///data/homecrew.db") == (
            "sqlite+aiosqlite:///data/homecrew.db"
        )
