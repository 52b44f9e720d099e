"""Tests for the database connection pool."""

from __future__ import annotations

from collections.abc import Iterator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from filing_desk.api.config import APIConfig
from filing_desk.api.database import Database, get_database, set_database

URL = "postgresql+asyncpg://desk@localhost/filing_desk"


@pytest.fixture(autouse=True)
def clear_database() -> Iterator[None]:
    """Clear the application database after each test."""
    yield
    set_database(None)


class TestFromConfig:
    """Tests for Database.from_config."""

    def test_pool_options(self) -> None:
        """Test pool settings are taken from the service config."""
        config = APIConfig(_env_file=None, pool_size=3, pool_max_overflow=2, database_echo=True)

        db = Database.from_config(config)

        assert db.url == config.database_url
        assert db.echo is True
        assert db.engine_options["pool_size"] == 3
        assert db.engine_options["max_overflow"] == 2
        assert db.engine_options["pool_pre_ping"] is True


class TestLifecycle:
    """Tests for connect and disconnect."""

    @pytest.mark.asyncio
    async def test_connect_once(self) -> None:
        """Test the engine is created once with the configured options."""
        engine = MagicMock()
        engine.dispose = AsyncMock()
        db = Database(URL, pool_size=2)

        with patch(
            "filing_desk.api.database.create_async_engine", return_value=engine
        ) as create:
            await db.connect()
            await db.connect()

        create.assert_called_once_with(URL, echo=False, pool_size=2)
        assert db.is_connected is True

        await db.disconnect()

        engine.dispose.assert_awaited_once()
        assert db.is_connected is False

    @pytest.mark.asyncio
    async def test_disconnect_when_not_connected(self) -> None:
        """Test disconnect without connect does nothing."""
        db = Database(URL)

        await db.disconnect()

        assert db.is_connected is False


class TestSession:
    """Tests for Database.session."""

    @pytest.mark.asyncio
    async def test_requires_connect(self) -> None:
        """Test sessions cannot be opened before connect."""
        with pytest.raises(RuntimeError, match="not connected"):
            async with Database(URL).session():
                pass

    @pytest.mark.asyncio
    async def test_rolls_back_on_error(self) -> None:
        """Test the session is rolled back when the block raises."""
        session = AsyncMock()
        factory = MagicMock()
        factory.return_value.__aenter__ = AsyncMock(return_value=session)
        factory.return_value.__aexit__ = AsyncMock(return_value=False)
        db = Database(URL)
        db._sessions = factory

        with pytest.raises(ValueError, match="bad entry"):
            async with db.session() as active:
                assert active is session
                raise ValueError("bad entry")

        session.rollback.assert_awaited_once()


class TestPing:
    """Tests for Database.ping."""

    @pytest.mark.asyncio
    async def test_not_connected(self) -> None:
        """Test ping is False before connect."""
        assert await Database(URL).ping() is False

    @pytest.mark.asyncio
    async def test_unreachable(self) -> None:
        """Test connection errors are logged and reported as False."""
        db = Database(URL)
        engine = MagicMock()
        engine.connect.side_effect = OSError("connection refused")
        db._engine = engine

        with patch("filing_desk.api.database.logger") as mock_logger:
            mock_logger.awarning = AsyncMock()
            assert await db.ping() is False

        mock_logger.awarning.assert_awaited_once_with(
            "database_ping_failed", error="connection refused"
        )

    @pytest.mark.asyncio
    async def test_reachable(self) -> None:
        """Test a successful SELECT 1."""
        conn = AsyncMock()
        engine = MagicMock()
        engine.connect.return_value.__aenter__ = AsyncMock(return_value=conn)
        engine.connect.return_value.__aexit__ = AsyncMock(return_value=False)
        db = Database(URL)
        db._engine = engine

        assert await db.ping() is True
        conn.execute.assert_awaited_once()


class TestApplicationDatabase:
    """Tests for get_database and set_database."""

    def test_unavailable_before_startup(self) -> None:
        """Test get_database raises outside the lifespan."""
        with pytest.raises(RuntimeError, match="not available"):
            get_database()

    def test_installed(self) -> None:
        """Test the installed database is returned."""
        db = Database(URL)
        set_database(db)

        assert get_database() is db
