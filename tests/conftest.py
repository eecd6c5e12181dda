"""Pytest configuration and fixtures."""

import os

# Settings are read at import time; give the test run its own defaults
os.environ.setdefault("DATABASE_URL", "sqlite:///./netpool_test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("OTEL_EXPORT_CONSOLE", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_FORMAT", "json")

from typing import AsyncGenerator, Dict  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402
from opentelemetry import trace  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, StaticPool  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

from netpool.main import app  # noqa: E402
from netpool.api.deps import get_db  # noqa: E402
from netpool.core.security import create_access_token  # noqa: E402
from netpool.models import IpAssignment, IpPool  # noqa: E402

# In-memory SQLite unless a dedicated test database is configured
TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")


def _create_test_engine():
    if TEST_DATABASE_URL.startswith("sqlite"):
        # One shared connection so every session sees the same memory database
        return create_async_engine(
            TEST_DATABASE_URL,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    engine = _create_test_engine()

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with async_session_maker() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with a test database session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    """Bearer header carrying a token signed with the test secret."""
    token = create_access_token(subject="noc-operator")
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture(scope="function")
async def test_pool(db_session: AsyncSession) -> IpPool:
    """Create the LAN-A pool."""
    pool = IpPool(
        name="LAN-A",
        subnet="10.0.0.0/24",
        mask="255.255.255.0",
        gateway="10.0.0.1",
        dns_primary="1.1.1.1",
    )
    db_session.add(pool)
    await db_session.commit()
    await db_session.refresh(pool)
    return pool


@pytest_asyncio.fixture(scope="function")
async def test_assignment(db_session: AsyncSession, test_pool: IpPool) -> IpAssignment:
    """Create an active assignment in LAN-A."""
    assignment = IpAssignment(
        pool_id=test_pool.id,
        ip="10.0.0.5",
        status="active",
        customer_name="Acme Corp",
        customer_id="C-100",
        assignment_type="static",
    )
    db_session.add(assignment)
    await db_session.commit()
    await db_session.refresh(assignment)
    return assignment


@pytest.fixture(scope="session", autouse=True)
def shutdown_tracer_provider():
    """Shutdown OpenTelemetry TracerProvider after all tests complete.

    This fixture ensures that the BatchSpanProcessor's background thread
    is properly shut down before pytest closes stdout/stderr, preventing
    "I/O operation on closed file" errors.
    """
    yield

    try:
        tracer_provider = trace.get_tracer_provider()
        if hasattr(tracer_provider, "force_flush"):
            tracer_provider.force_flush(timeout_millis=5000)
        if hasattr(tracer_provider, "shutdown"):
            tracer_provider.shutdown()
    except Exception:
        # Ignore any errors during shutdown
        pass
