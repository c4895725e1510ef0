from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from booking_api.core.config import Settings


def to_async_database_url(database_url: str) -> str:
    """Use asyncpg for postgres URLs and strip psycopg-only params (sslmode, channel_binding)."""
    parsed = urlparse(database_url)
    if parsed.scheme not in ("postgresql", "postgres"):
        return database_url
    query = parse_qs(parsed.query, keep_blank_values=True)
    query.pop("sslmode", None)
    query.pop("channel_binding", None)
    new_query = urlencode(query, doseq=True)
    return urlunparse(("postgresql+asyncpg", parsed.netloc, parsed.path, parsed.params, new_query, parsed.fragment))


def build_engine(settings: Settings) -> AsyncEngine:
    url = to_async_database_url(settings.database_url)
    kwargs: dict = {"echo": settings.env == "development", "pool_pre_ping": True}
    if url.startswith("postgresql+asyncpg"):
        kwargs.update(pool_size=5, max_overflow=10)
        if settings.database_ssl:
            # asyncpg takes ssl via connect_args instead of sslmode
            kwargs["connect_args"] = {"ssl": True}
    return create_async_engine(url, **kwargs)


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@asynccontextmanager
async def session_scope(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(engine: AsyncEngine) -> None:
    """Create tables if using create_all; prefer Alembic in production."""
    import booking_api.models  # noqa: F401 - register tables

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
