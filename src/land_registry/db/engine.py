"""Async database engine and session management for parcel storage."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from land_registry.core.config import DatabaseConfig
from land_registry.db.base import Base

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Owns the async engine and hands out sessions to the parcel repository.

    Production runs against PostgreSQL through asyncpg; tests pass an
    ``sqlite+aiosqlite`` URL and call :meth:`create_schema` instead of
    running migrations.

    Usage::

        db = DatabaseManager.from_config(settings.db)
        async with db.session() as session:
            ...
        await db.close()
    """

    def __init__(
        self,
        database_url: str,
        echo: bool = False,
        pool_size: int = 5,
    ) -> None:
        engine_kwargs: dict[str, Any] = {"echo": echo}
        # SQLite uses a static pool that rejects sizing arguments
        if not database_url.startswith("sqlite"):
            engine_kwargs["pool_size"] = pool_size
            engine_kwargs["pool_pre_ping"] = True
        self._engine: AsyncEngine = create_async_engine(database_url, **engine_kwargs)
        self._sessions: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self._engine,
            expire_on_commit=False,
        )

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> DatabaseManager:
        if not config.database_url:
            raise ValueError("DatabaseConfig.database_url is not set")
        return cls(config.database_url, echo=config.echo, pool_size=config.pool_size)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    def session(self) -> AsyncSession:
        return self._sessions()

    async def create_schema(self) -> None:
        """Create the parcel tables directly from the ORM metadata."""
        import land_registry.db.models  # noqa: F401

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Created parcel schema on %s", self._engine.url.render_as_string())

    async def close(self) -> None:
        await self._engine.dispose()
