"""Pytest fixtures for testing."""
import os

# Must be set before any app imports that trigger Settings validation.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret-key-with-at-least-32-characters")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("REDIS_ENABLED", "false")

from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncConnection,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from core.credentials import CredentialIssuer  # noqa: E402
from models.base import Base  # noqa: E402
from tests.fakes import InMemoryKeyValueStore  # noqa: E402

# Set TEST_DATABASE_URL (e.g. a local PostgreSQL) to run against a real server.
TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")
TEST_JWT_SECRET = os.environ["JWT_SECRET"]


def _enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """
    Let SQLite run nested transactions the way PostgreSQL does.

    pysqlite's implicit BEGIN handling breaks SAVEPOINT, so transactions are
    begun explicitly. Foreign keys are off by default in SQLite.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, _connection_record) -> None:  # noqa: ANN001
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn) -> None:  # noqa: ANN001
        conn.exec_driver_sql("BEGIN")


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """Create an async engine for testing."""
    if TEST_DATABASE_URL.startswith("sqlite"):
        engine = create_async_engine(
            TEST_DATABASE_URL,
            echo=False,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        _enable_sqlite_savepoints(engine)
    else:
        engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    if not TEST_DATABASE_URL.startswith("sqlite"):
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_connection(async_engine: AsyncEngine) -> AsyncGenerator[AsyncConnection]:
    """
    Create a connection with a transaction that will be rolled back after the test.

    This provides test isolation - each test runs in its own transaction
    that is rolled back, so tests don't affect each other.
    """
    async with async_engine.connect() as connection:
        transaction = await connection.begin()
        try:
            yield connection
        finally:
            await transaction.rollback()


@pytest.fixture
async def db_session(db_connection: AsyncConnection) -> AsyncGenerator[AsyncSession]:
    """
    Create an async session bound to the test transaction.

    Uses begin_nested() for savepoints, allowing the session's flush/commit
    to work within our outer test transaction.
    """
    session_factory = async_sessionmaker(
        bind=db_connection,
        class_=AsyncSession,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )

    async with session_factory() as session:
        yield session


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    """Fresh in-memory store standing in for Redis."""
    return InMemoryKeyValueStore()


@pytest.fixture
def issuer() -> CredentialIssuer:
    """Credential issuer using the test secret and a one-hour lifetime."""
    return CredentialIssuer(TEST_JWT_SECRET, expire_seconds=3600)


@pytest.fixture
async def client(
    db_session: AsyncSession,
    kv_store: InMemoryKeyValueStore,
) -> AsyncGenerator[AsyncClient]:
    """
    Create a test client with database session and key-value store overrides.

    Auth rate limiting is off (no counter); rate limit tests install one.
    """
    # Clear the settings cache so it picks up the environment set above
    from core.config import get_settings

    get_settings.cache_clear()

    from api.main import app
    from core.auth import get_key_value_store
    from core.rate_limiter import get_window_counter
    from db.session import get_async_session

    async def override_get_async_session() -> AsyncGenerator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_async_session
    app.dependency_overrides[get_key_value_store] = lambda: kv_store
    app.dependency_overrides[get_window_counter] = lambda: None

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()
