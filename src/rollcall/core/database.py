"""
Database Engine and Sessions

Async SQLAlchemy engine built from Settings.DATABASE_URL. Each worker gets
its own AsyncSession from ``get_db``; nothing is shared between requests.
"""

from collections.abc import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from rollcall.config import settings
from rollcall.core.models import Base


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """SQLite ignores foreign keys unless each connection turns them on."""

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, _connection_record):  # type: ignore[no-untyped-def]
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(database_url: str | None = None) -> AsyncEngine:
    """Create an async engine; pool sizing only applies to server databases."""
    url = database_url or settings.DATABASE_URL
    kwargs: dict[str, object] = {"echo": settings.DATABASE_ECHO}
    if url.startswith("sqlite"):
        new_engine = create_async_engine(url, **kwargs)
        enable_sqlite_foreign_keys(new_engine)
        return new_engine

    kwargs["pool_size"] = settings.DATABASE_POOL_SIZE
    kwargs["pool_pre_ping"] = True
    return create_async_engine(url, **kwargs)


engine = build_engine()

async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a session and always close it."""
    async with async_session_maker() as session:
        yield session


async def init_models(bind: AsyncEngine | None = None) -> None:
    """Create all tables. Local development and tests only; use Alembic elsewhere."""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose of the connection pool."""
    await engine.dispose()
