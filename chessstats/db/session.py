"""
Database engine and session factory – async SQLAlchemy.

The engine is built once at startup from Settings and handed to the
document store; nothing here is created at import time.
"""

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from chessstats.config import Settings


def build_engine(settings: Settings) -> AsyncEngine:
    url = settings.database_url_async

    if url.startswith("sqlite"):
        if make_url(url).database in (None, "", ":memory:"):
            # In-memory SQLite must share one connection or every session sees an empty DB
            return create_async_engine(
                url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        return create_async_engine(url, connect_args={"check_same_thread": False})

    return create_async_engine(
        url,
        echo=not settings.is_production,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
