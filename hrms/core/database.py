# hrms/core/database.py
from typing import AsyncIterator
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import NullPool
from hrms.core.config import settings
from hrms.models.base import Base

database_url = settings.DATABASE_URL


def build_engine(url: str, pooled: bool = True):
    """Create an async engine; pool sizing only applies to server databases.

    Unpooled engines open a connection per checkout, so nothing outlives the
    event loop that created it.
    """
    engine_kwargs = {"echo": False, "future": True, "pool_pre_ping": True}
    if not pooled:
        engine_kwargs["poolclass"] = NullPool
    elif not url.startswith("sqlite"):
        engine_kwargs.update(
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
            pool_timeout=60,
            pool_recycle=3600,  # Recycle connections every hour
        )
    return create_async_engine(url, **engine_kwargs)


engine = build_engine(database_url)

async_session_maker = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

async def get_async_session() -> AsyncIterator[AsyncSession]:
    async with async_session_maker() as session:
        yield session


__all__ = ["Base", "engine", "async_session_maker", "get_async_session", "build_engine"]
