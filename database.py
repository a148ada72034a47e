from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from config import settings


def engine_kwargs(database_url: str, echo: bool = False) -> dict:
    """Return dialect-specific engine options for SQLite vs PostgreSQL."""
    kwargs: dict = {"echo": echo}
    if database_url.startswith("sqlite"):
        kwargs["poolclass"] = StaticPool
        kwargs["connect_args"] = {"check_same_thread": False}
    return kwargs


engine = create_async_engine(
    settings.database_url,
    **engine_kwargs(settings.database_url, echo=settings.debug),
)


def session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Sessions keep loaded attributes after commit; route handlers serialize records after the write."""
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False, autoflush=False)


AsyncSessionLocal = session_factory(engine)


class Base(DeclarativeBase):
    pass


@asynccontextmanager
async def transaction(factory: async_sessionmaker[AsyncSession] | None = None) -> AsyncIterator[AsyncSession]:
    """One unit of work: commit on success, roll back and re-raise on any error."""
    async with (factory or AsyncSessionLocal)() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db():
    async with transaction() as session:
        yield session


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Create missing tables on `bind` (the app engine by default)."""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
