"""Shared fixtures: an in-memory database per test and an API client bound to it."""
from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ROOM_SWEEPER_ENABLED", "false")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("LIVEKIT_API_KEY", "test-key")
os.environ.setdefault("LIVEKIT_API_SECRET", "test-livekit-secret")
os.environ.setdefault("LIVEKIT_URL", "http://media.test")

from datetime import datetime, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from app.db.session import build_engine, build_sessionmaker, get_session
from app.main import app
from app.models.base import Base
from app.services.auth import CallerIdentity, create_access_token

T0 = datetime(2025, 10, 10, 12, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def engine():
    engine = build_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def sessionmaker(engine):
    return build_sessionmaker(engine)


@pytest_asyncio.fixture
async def session(sessionmaker):
    async with sessionmaker() as session:
        yield session


@pytest_asyncio.fixture
async def client(sessionmaker):
    async def _session_override():
        async with sessionmaker() as session:
            yield session

    app.dependency_overrides[get_session] = _session_override
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    app.dependency_overrides.clear()


def auth_headers(subject: str = "u1", groups: tuple[str, ...] = (), name: str = "User One") -> dict[str, str]:
    token, _ = create_access_token(
        CallerIdentity(subject=subject, email=f"{subject}@example.com", name=name, username=subject, groups=groups)
    )
    return {"Authorization": f"Bearer {token}"}
