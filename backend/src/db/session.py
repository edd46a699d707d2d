"""Async SQLAlchemy session factory."""
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from core.config import Settings, get_settings


def engine_options(settings: Settings) -> dict[str, Any]:
    """
    Pool and timeout options for the configured database.

    SQLite (local tooling and tests) uses a static pool that rejects sizing
    arguments, so those only apply to server databases.
    """
    if settings.is_sqlite:
        return {}
    return {
        "pool_pre_ping": True,
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_timeout": settings.db_pool_timeout,
        # asyncpg: per-statement timeout in seconds
        "connect_args": {"command_timeout": settings.db_command_timeout},
    }


settings = get_settings()

engine = create_async_engine(
    settings.database_url,
    echo=False,
    **engine_options(settings),
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """
    Yield an async database session.

    Uses unit-of-work pattern: services use flush() for refreshing objects,
    commit happens once here at request end. This ensures atomic transactions
    per request - if anything fails, all changes are rolled back.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
