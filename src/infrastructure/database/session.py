"""Database engine and session factories."""

from typing import Any, AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.config import settings


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create the async engine for ``url``.

    asyncpg keeps a prepared statement cache per connection, which
    transaction-mode poolers (pgbouncer, Supavisor) cannot honour.
    """
    connect_args: dict[str, Any] = {}
    if url.startswith("postgresql+asyncpg") and ("pooler" in url or "pgbouncer" in url):
        connect_args["statement_cache_size"] = 0
    return create_async_engine(
        url,
        echo=echo,
        pool_pre_ping=url.startswith("postgresql"),
        connect_args=connect_args,
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Sessions keep loaded rows usable after commit; groups are detached snapshots."""
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = build_engine(settings.async_database_url, echo=settings.debug)
async_session_factory = build_session_factory(engine)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a session for request-scoped reads such as the health check."""
    async with async_session_factory() as session:
        yield session
