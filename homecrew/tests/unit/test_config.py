"""Unit tests for application settings."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from homecrew.core.config import Settings, get_settings

pytestmark = pytest.mark.unit


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)

        assert settings.record_store_backend == "sql"
        assert settings.database_url.startswith("sqlite+aiosqlite://")
        assert settings.image_cache_capacity == 100
        assert settings.image_cache_disk_format == "PNG"
        assert settings.rollback_staff_on_document_failure is False
        assert settings.user_account_name == "homecrew.user"

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RECORD_STORE_BACKEND", "memory")
        monkeypatch.setenv("IMAGE_CACHE_CAPACITY", "5")
        monkeypatch.setenv("ROLLBACK_STAFF_ON_DOCUMENT_FAILURE", "true")

        settings = Settings(_env_file=None)

        assert settings.record_store_backend == "memory"
        assert settings.image_cache_capacity == 5
        assert settings.rollback_staff_on_document_failure is True

    def test_log_level_normalized(self) -> None:
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self) -> None:
        with pytest.raises(ValidationError, match="Invalid log level"):
            Settings(_env_file=None, log_level="chatty")

    def test_database_url_requires_async_driver(self) -> None:
        with pytest.raises(ValidationError, match="Invalid database URL"):
            Settings(_env_file=None, database_url="sqlite:///plain.db")

    @pytest.mark.parametrize("capacity", [0, 10001])
    def test_cache_capacity_bounds(self, capacity: int) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, image_cache_capacity=capacity)

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, record_store_backend="cloud")

    def test_path_properties(self) -> None:
        settings = Settings(_env_file=None, image_cache_dir="x/cache", staging_dir="x/staging")
        assert settings.image_cache_path == Path("x/cache")
        assert settings.staging_path == Path("x/staging")


class TestGetSettings:
    def test_cached(self) -> None:
        assert get_settings() is get_settings()

    def test_runtime_env_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        runtime_env = tmp_path / "runtime.env"
        runtime_env.write_text("USER_ACCOUNT_NAME=household.owner\n")
        monkeypatch.setenv("HOMECREW_RUNTIME_ENV_PATH", str(runtime_env))
        monkeypatch.chdir(tmp_path)

        assert get_settings().user_account_name == "household.owner"
