"""Async engine and request-scoped sessions for the reward tables."""

from typing import Any, AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ioo_rewards.core.config import settings

ASYNC_POSTGRES_SCHEME = "postgresql+asyncpg://"
_SYNC_POSTGRES_SCHEMES = ("postgres://", "postgresql://")


def to_async_url(url: str) -> str:
    """Point a plain Postgres URL (as hosting providers hand out) at asyncpg."""
    for scheme in _SYNC_POSTGRES_SCHEMES:
        if url.startswith(scheme):
            return ASYNC_POSTGRES_SCHEME + url[len(scheme):]
    return url


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create the engine; server databases get connection liveness checks."""
    url = to_async_url(url)
    options: dict[str, Any] = {"echo": echo}
    if not url.startswith("sqlite"):
        options["pool_pre_ping"] = True
    return create_async_engine(url, **options)


engine = build_engine(settings.database_url, echo=settings.debug)

session_factory = async_sessionmaker(engine, expire_on_commit=False)


async def get_db() -> AsyncIterator[AsyncSession]:
    """Session for one request. Work the endpoint did not commit is rolled back on close."""
    async with session_factory() as session:
        yield session
