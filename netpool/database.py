"""Database connection and session management."""

from typing import Any, AsyncGenerator, Dict

from sqlmodel import create_engine, SQLModel
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from netpool.config import settings


def to_async_url(url: str) -> str:
    """Map a sync database URL onto its async driver."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


def _engine_kwargs(url: str) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {"echo": settings.DATABASE_ECHO}
    # SQLite pools do not take sizing arguments
    if not url.startswith("sqlite"):
        kwargs.update(pool_pre_ping=True, pool_size=10, max_overflow=20)
    return kwargs


# Create synchronous engine for table creation and scripts
sync_engine = create_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))

# Create async engine for FastAPI
async_database_url = to_async_url(settings.DATABASE_URL)

async_engine = create_async_engine(
    async_database_url, **_engine_kwargs(async_database_url)
)

# Create async session factory
async_session_maker = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


def create_db_and_tables() -> None:
    """Create all database tables. Used for testing and initial setup."""
    # Import models so they register on the metadata
    import netpool.models  # noqa: F401

    SQLModel.metadata.create_all(sync_engine)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Get an async database session for FastAPI endpoints."""
    async with async_session_maker() as session:
        yield session
