"""Database connection and session management using SQLAlchemy 2.0 async patterns.

Supports SQLite through aiosqlite (default, development and tests) and
PostgreSQL through asyncpg. The engine is owned by a ``Database`` instance
created by the container, never by module globals.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from homecrew.core.logging import get_logger, redact_url

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def _is_sqlite(url: str) -> bool:
    """Check if the database URL is for SQLite."""
    return "sqlite" in url


def _ensure_sqlite_parent(url: str) -> None:
    # sqlite+aiosqlite:///relative/path.db or sqlite+aiosqlite:////abs/path.db
    _, _, path = url.partition(":///")
    if path and path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)


class Database:
    """Async engine plus session factory for one database URL."""

    def __init__(self, url: str, *, echo: bool = False) -> None:
        self.url = url
        self.echo = echo
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        """Get the async engine.

        Raises:
            RuntimeError: If the database has not been initialized.
        """
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Get the async session factory.

        Raises:
            RuntimeError: If the database has not been initialized.
        """
        if self._session_factory is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        return self._session_factory

    async def init(self) -> None:
        """Create the engine and all tables registered on ``Base``."""
        if self._engine is not None:
            return

        engine_kwargs: dict[str, Any] = {"echo": self.echo}
        if _is_sqlite(self.url):
            _ensure_sqlite_parent(self.url)
        else:
            engine_kwargs.update(pool_size=5, max_overflow=10, pool_pre_ping=True)

        self._engine = create_async_engine(self.url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

        # Import models so they register with Base.metadata
        from homecrew.store import sql  # noqa: F401

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"Database initialized: {redact_url(self.url)}")

    async def close(self) -> None:
        """Dispose of the engine. Safe to call more than once."""
        if self._engine is not None:
            try:
                await self._engine.dispose()
            finally:
                self._engine = None
                self._session_factory = None

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession]:
        """Get an async session that commits on success and rolls back on error.

        Usage:
            async with database.session() as session:
                result = await session.execute(select(Model))
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
