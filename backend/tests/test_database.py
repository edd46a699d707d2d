"""Tests for database connection, session, and engine options."""
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings
from db.session import engine_options


async def test_database_connection(db_session: AsyncSession) -> None:
    """Test that we can connect to the database."""
    result = await db_session.execute(text("SELECT 1"))
    assert result.scalar() == 1


async def test_database_session_is_async(db_session: AsyncSession) -> None:
    """Test that the session is an async session."""
    assert isinstance(db_session, AsyncSession)


def test_engine_options__postgres_pool_and_timeouts() -> None:
    """Server databases get pool sizing and a per-statement timeout."""
    settings = Settings(
        _env_file=None,
        database_url="postgresql+asyncpg://localhost/app",
        JWT_SECRET="x" * 32,
        DB_POOL_SIZE=7,
        DB_COMMAND_TIMEOUT=3.5,
    )

    options = engine_options(settings)

    assert options["pool_size"] == 7
    assert options["pool_pre_ping"] is True
    assert options["connect_args"] == {"command_timeout": 3.5}


def test_engine_options__sqlite_has_none() -> None:
    """SQLite gets no pool arguments."""
    settings = Settings(_env_file=None, database_url="sqlite+aiosqlite://", JWT_SECRET="x" * 32)

    assert engine_options(settings) == {}
