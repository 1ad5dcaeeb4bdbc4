"""Pytest configuration and shared fixtures.

Fixtures:
- test_settings: Settings pointing every directory at tmp_path, memory record store
- store / documents / staff_service / household_service: services over an in-memory store
- make_file / make_image: factories for document files on disk
- fixed_clock: deterministic clock for leaving dates

Hypothesis profiles (select with HYPOTHESIS_PROFILE): default, ci, fast.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from datetime import datetime
from pathlib import Path

import pytest
from hypothesis import HealthCheck, settings
from PIL import Image

from homecrew.core.config import Settings, get_settings
from homecrew.services.document_sync import DocumentSyncService
from homecrew.services.household_service import HouseholdService
from homecrew.services.staff_service import StaffService
from homecrew.store.memory import InMemoryRecordStore
from homecrew.tests.fakes import FIXED_NOW

settings.register_profile(
    "default",
    max_examples=50,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)
settings.register_profile(
    "ci",
    max_examples=200,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)
settings.register_profile("fast", max_examples=10)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Iterator[None]:
    """Each test builds its own Settings; never reuse a cached one."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        record_store_backend="memory",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'homecrew.db'}",
        asset_dir=str(tmp_path / "assets"),
        image_cache_dir=str(tmp_path / "cache"),
        staging_dir=str(tmp_path / "staging"),
        secret_store_dir=str(tmp_path / "secrets"),
        log_file_path=str(tmp_path / "logs" / "homecrew.log"),
        log_level="DEBUG",
    )


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def documents(store: InMemoryRecordStore) -> DocumentSyncService:
    return DocumentSyncService(store)


@pytest.fixture
def household_service(store: InMemoryRecordStore) -> HouseholdService:
    return HouseholdService(store)


@pytest.fixture
def staff_service(
    store: InMemoryRecordStore,
    documents: DocumentSyncService,
    fixed_clock: Callable[[], datetime],
) -> StaffService:
    return StaffService(store, documents, clock=fixed_clock)


@pytest.fixture
def make_file(tmp_path: Path) -> Callable[..., Path]:
    """Write a small file under tmp_path/picked and return its path."""
    picked = tmp_path / "picked"
    picked.mkdir(exist_ok=True)

    def _make(name: str = "passport.pdf", content: bytes = b"%PDF-1.4 test") -> Path:
        path = picked / name
        path.write_bytes(content)
        return path

    return _make


@pytest.fixture
def make_image(tmp_path: Path) -> Callable[..., Path]:
    """Write a solid-colour PNG under tmp_path/picked and return its path."""
    picked = tmp_path / "picked"
    picked.mkdir(exist_ok=True)

    def _make(
        name: str = "id_card.png",
        color: tuple[int, int, int] = (200, 30, 30),
        size: tuple[int, int] = (16, 12),
    ) -> Path:
        path = picked / name
        Image.new("RGB", size, color).save(path, format="PNG")
        return path

    return _make
