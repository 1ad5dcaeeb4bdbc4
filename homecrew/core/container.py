"""Dependency injection container for service initialization.

Services are constructed explicitly from ``Settings`` and held by one
container per application instance (stored on ``app.state``), so the record
store, image cache and secret store can be swapped for fakes in tests.

Usage:
    container = Container()
    wire_services(container, settings)

    staff_service = await container.get_async("staff_service")

    # Tests
    container.override("record_store", InMemoryRecordStore())
"""

__all__ = [
    "CircularDependencyError",
    "Container",
    "ServiceAlreadyRegisteredError",
    "ServiceNotFoundError",
    "wire_services",
]

import asyncio
import inspect
from collections.abc import Callable
from contextvars import ContextVar, Token
from typing import Any, TypeVar

from homecrew.core.config import Settings
from homecrew.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_resolving: ContextVar[tuple[str, ...]] = ContextVar("resolving", default=())


class ServiceNotFoundError(Exception):
    """Raised when a requested service is not registered."""

    def __init__(self, service_name: str) -> None:
        super().__init__(f"Service '{service_name}' not found in container")
        self.service_name = service_name


class ServiceAlreadyRegisteredError(Exception):
    """Raised when attempting to register a service that already exists."""

    def __init__(self, service_name: str) -> None:
        super().__init__(f"Service '{service_name}' is already registered")
        self.service_name = service_name


class CircularDependencyError(Exception):
    """Raised when a circular dependency is detected during resolution."""

    def __init__(self, service_name: str, resolution_stack: list[str]) -> None:
        chain = " -> ".join([*resolution_stack, service_name])
        super().__init__(f"Circular dependency detected: {chain}")
        self.service_name = service_name
        self.resolution_stack = resolution_stack


class ServiceRegistration:
    """Holds registration information for a service."""

    def __init__(self, factory: Callable[[], Any], *, is_async: bool = False) -> None:
        self.factory = factory
        self.is_async = is_async
        self.instance: Any = None


class Container:
    """Singleton service registry with async construction and test overrides."""

    def __init__(self) -> None:
        self._registrations: dict[str, ServiceRegistration] = {}
        self._overrides: dict[str, Any] = {}
        self._async_locks: dict[str, asyncio.Lock] = {}

    def _register(self, name: str, registration: ServiceRegistration) -> None:
        if name in self._registrations:
            raise ServiceAlreadyRegisteredError(name)
        self._registrations[name] = registration
        logger.debug(f"Registered service: {name}")

    def register_singleton(self, name: str, factory: Callable[[], T] | type[T]) -> None:
        """Register a service created once by a synchronous factory."""
        self._register(name, ServiceRegistration(factory))

    def register_async_singleton(self, name: str, factory: Callable[[], Any]) -> None:
        """Register a service created once by an async factory."""
        self._register(name, ServiceRegistration(factory, is_async=True))

    def _registration(self, name: str) -> ServiceRegistration:
        if name not in self._registrations:
            raise ServiceNotFoundError(name)
        return self._registrations[name]

    @staticmethod
    def _enter(name: str) -> Token[tuple[str, ...]]:
        # The stack is per task, so concurrent resolutions never see each other
        stack = _resolving.get()
        if name in stack:
            raise CircularDependencyError(name, list(stack))
        return _resolving.set((*stack, name))

    def get(self, name: str) -> Any:
        """Get a synchronous service by name.

        Raises:
            ServiceNotFoundError: If service is not registered
            CircularDependencyError: If circular dependency detected
        """
        if name in self._overrides:
            return self._overrides[name]

        registration = self._registration(name)
        if registration.is_async:
            raise RuntimeError(f"Service '{name}' is async. Use get_async() instead.")
        if registration.instance is not None:
            return registration.instance

        token = self._enter(name)
        try:
            registration.instance = registration.factory()
            return registration.instance
        finally:
            _resolving.reset(token)

    async def get_async(self, name: str) -> Any:
        """Get any service by name, awaiting async factories.

        Concurrent first calls for the same service construct it once.

        Raises:
            ServiceNotFoundError: If service is not registered
            CircularDependencyError: If circular dependency detected
        """
        if name in self._overrides:
            return self._overrides[name]

        registration = self._registration(name)
        if registration.instance is not None:
            return registration.instance
        if not registration.is_async:
            return self.get(name)

        token = self._enter(name)
        try:
            lock = self._async_locks.setdefault(name, asyncio.Lock())
            async with lock:
                if registration.instance is None:
                    registration.instance = await registration.factory()
                return registration.instance
        finally:
            _resolving.reset(token)

    def override(self, name: str, instance: Any) -> None:
        """Override a service with a specific instance (tests)."""
        self._overrides[name] = instance
        logger.debug(f"Service override set: {name}")

    def clear_all_overrides(self) -> None:
        self._overrides.clear()

    async def shutdown(self) -> None:
        """Call close() on every constructed service that has one."""
        logger.info("Container shutdown initiated")
        for name, registration in self._registrations.items():
            instance = registration.instance
            if instance is None:
                continue
            close = getattr(instance, "close", None)
            if close is not None:
                try:
                    if inspect.iscoroutinefunction(close):
                        await close()
                    else:
                        close()
                    logger.debug(f"Closed service: {name}")
                except Exception as e:
                    logger.warning(f"Error closing service {name}: {e}")
            registration.instance = None
        logger.info("Container shutdown complete")


def wire_services(container: Container, settings: Settings) -> None:
    """Register every application service built from ``settings``.

    Services:
    - database (async, sql backend only) and record_store
    - asset_store, staging_area, image_cache, thumbnail_loader
    - document_sync, household_service, staff_service, cascade_delete
    - secret_store, auth_service
    """
    from homecrew.core.database import Database
    from homecrew.services.auth_service import AuthService
    from homecrew.services.cascade_delete import CascadeDeleteService
    from homecrew.services.document_sync import DocumentSyncService
    from homecrew.services.household_service import HouseholdService
    from homecrew.services.image_cache import ImageCache
    from homecrew.services.staff_service import StaffService
    from homecrew.services.thumbnail_loader import DocumentThumbnailLoader
    from homecrew.store.assets import AssetStore
    from homecrew.store.memory import InMemoryRecordStore
    from homecrew.store.secrets import FileSecretStore
    from homecrew.store.sql import SqlRecordStore
    from homecrew.store.staging import StagingArea

    container.register_singleton("settings", lambda: settings)
    container.register_singleton("asset_store", lambda: AssetStore(settings.asset_dir))
    container.register_singleton("staging_area", lambda: StagingArea(settings.staging_path))

    async def database_factory() -> Database:
        database = Database(settings.database_url, echo=settings.debug)
        await database.init()
        return database

    container.register_async_singleton("database", database_factory)

    async def record_store_factory() -> Any:
        assets = container.get("asset_store")
        if settings.record_store_backend == "memory":
            return InMemoryRecordStore(assets)
        database = await container.get_async("database")
        return SqlRecordStore(database, assets)

    container.register_async_singleton("record_store", record_store_factory)

    async def document_sync_factory() -> DocumentSyncService:
        return DocumentSyncService(await container.get_async("record_store"))

    container.register_async_singleton("document_sync", document_sync_factory)

    async def household_factory() -> HouseholdService:
        return HouseholdService(await container.get_async("record_store"))

    container.register_async_singleton("household_service", household_factory)

    async def staff_factory() -> StaffService:
        return StaffService(
            await container.get_async("record_store"),
            await container.get_async("document_sync"),
            rollback_on_document_failure=settings.rollback_staff_on_document_failure,
        )

    container.register_async_singleton("staff_service", staff_factory)

    async def cascade_factory() -> CascadeDeleteService:
        return CascadeDeleteService(
            await container.get_async("record_store"),
            await container.get_async("document_sync"),
        )

    container.register_async_singleton("cascade_delete", cascade_factory)

    container.register_singleton(
        "image_cache",
        lambda: ImageCache(
            settings.image_cache_path,
            capacity=settings.image_cache_capacity,
            disk_format=settings.image_cache_disk_format,
        ),
    )
    container.register_singleton(
        "thumbnail_loader", lambda: DocumentThumbnailLoader(container.get("image_cache"))
    )

    container.register_singleton("secret_store", lambda: FileSecretStore(settings.secret_store_dir))
    container.register_singleton(
        "auth_service",
        lambda: AuthService(container.get("secret_store"), settings.user_account_name),
    )
    logger.info(f"Services wired (record store: {settings.record_store_backend})")
