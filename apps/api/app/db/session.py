"""Database engine and session management."""
from __future__ import annotations

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ..core.config import settings


def build_engine(url: str, *, ssl_required: bool = False, **kwargs: object) -> AsyncEngine:
    """Create an async engine; extra keyword arguments go to SQLAlchemy."""

    connect_args: dict[str, object] = {}
    if ssl_required:
        connect_args["ssl"] = True
    return create_async_engine(url, echo=False, pool_pre_ping=True, connect_args=connect_args, **kwargs)


def build_sessionmaker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, expire_on_commit=False, class_=AsyncSession)


engine = build_engine(settings.database_url, ssl_required=settings.database_ssl_required)
SessionLocal = build_sessionmaker(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency to provide an async session."""

    async with SessionLocal() as session:
        yield session
