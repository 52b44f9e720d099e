"""Connection pool for the correspondence store."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

if TYPE_CHECKING:
    from filing_desk.api.config import APIConfig

logger = structlog.get_logger(__name__)


class Database:
    """Owns the async engine; repositories get one session per request.

    Typical usage:
        db = Database.from_config(config)
        await db.connect()
        async with db.session() as session:
            repo = CorrespondenceRepository(session)
    """

    def __init__(self, url: str, *, echo: bool = False, **engine_options: Any) -> None:
        """Initialize without connecting.

        Args:
            url: Async SQLAlchemy URL.
            echo: Log SQL statements.
            **engine_options: Passed to ``create_async_engine`` (pool sizing).
        """
        self.url = url
        self.echo = echo
        self.engine_options = engine_options
        self._engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker[AsyncSession] | None = None

    @classmethod
    def from_config(cls, config: APIConfig) -> Database:
        """Build from service settings."""
        return cls(
            config.database_url,
            echo=config.database_echo,
            pool_size=config.pool_size,
            max_overflow=config.pool_max_overflow,
            pool_recycle=config.pool_recycle_seconds,
            pool_pre_ping=True,
        )

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    async def connect(self) -> None:
        """Create the engine and session factory; a second call is a no-op."""
        if self._engine is not None:
            return
        self._engine = create_async_engine(self.url, echo=self.echo, **self.engine_options)
        # Records are converted to schemas after commit
        self._sessions = async_sessionmaker(self._engine, expire_on_commit=False)

    async def disconnect(self) -> None:
        """Dispose of the pool."""
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessions = None

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Open a session, rolling back if the block raises.

        Raises:
            RuntimeError: If ``connect`` has not been awaited.
        """
        if self._sessions is None:
            raise RuntimeError("Database is not connected")
        async with self._sessions() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def ping(self) -> bool:
        """Run ``SELECT 1``; False when not connected or unreachable."""
        if self._engine is None:
            return False
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as exc:
            await logger.awarning("database_ping_failed", error=str(exc))
            return False
        return True


_database: Database | None = None


def get_database() -> Database:
    """Get the database connected at startup.

    Raises:
        RuntimeError: Outside the application lifespan.
    """
    if _database is None:
        raise RuntimeError("Database is not available until the application has started")
    return _database


def set_database(db: Database | None) -> None:
    """Install (or clear, with None) the application database."""
    global _database
    _database = db
