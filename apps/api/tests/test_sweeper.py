"""Tests for the background expiration sweeper."""
from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from app.core.config import settings
from app.core.errors import RoomNotFoundError
from app.main import app, lifespan
from app.services import participants as participants_service
from app.services import rooms as rooms_service
from app.services.sweeper import ExpirationSweeper
from conftest import T0


@pytest.mark.asyncio
async def test_run_once_retires_only_expired_rooms(session, sessionmaker):
    expired = await rooms_service.create_room(session, "standup", now=T0)
    fresh = await rooms_service.create_room(session, "retro", now=T0 + timedelta(minutes=20))
    owned = await rooms_service.create_room(session, "team-sync", "u1", now=T0)
    expired_id, fresh_id, owned_id = expired.id, fresh.id, owned.id
    await participants_service.add_participant(session, expired_id, None, "alice", "Alice", True, now=T0)

    sweeper = ExpirationSweeper(sessionmaker, interval_seconds=60)
    retired = await sweeper.run_once(now=T0 + timedelta(minutes=35))

    assert retired == 1
    later = T0 + timedelta(minutes=35)
    stats = await rooms_service.get_room_stats(session, expired_id, now=later)
    assert stats.is_active is False
    assert stats.active_participants == 0
    assert stats.total_participants == 1
    assert (await rooms_service.get_room_by_id(session, fresh_id)).name == "retro"
    assert (await rooms_service.get_room_by_id(session, owned_id)).name == "team-sync"

    # A second pass finds nothing left to do.
    assert await sweeper.run_once(now=later) == 0


@pytest.mark.asyncio
async def test_swept_room_stays_missing_for_readers(session, sessionmaker):
    await rooms_service.create_room(session, "standup", now=T0)

    await ExpirationSweeper(sessionmaker).run_once(now=T0 + timedelta(minutes=31))

    with pytest.raises(RoomNotFoundError):
        await rooms_service.get_room(session, "standup", now=T0 + timedelta(minutes=31))


@pytest.mark.asyncio
async def test_sweeper_survives_failed_ticks(sessionmaker, monkeypatch):
    sweeper = ExpirationSweeper(sessionmaker, interval_seconds=0.01)
    ticks: list[int] = []

    async def flaky_run_once(*, now=None):
        ticks.append(1)
        if len(ticks) == 1:
            raise RuntimeError("database went away")
        return 0

    monkeypatch.setattr(sweeper, "run_once", flaky_run_once)

    sweeper.start()
    assert sweeper.running is True
    for _ in range(100):
        if len(ticks) >= 3:
            break
        await asyncio.sleep(0.01)
    await sweeper.stop()

    assert len(ticks) >= 3
    assert sweeper.running is False


@pytest.mark.asyncio
async def test_stop_without_start_is_noop(sessionmaker):
    sweeper = ExpirationSweeper(sessionmaker)

    await sweeper.stop()

    assert sweeper.running is False


@pytest.mark.asyncio
async def test_app_lifespan_runs_sweeper(monkeypatch):
    monkeypatch.setattr(settings, "room_sweeper_enabled", True)
    monkeypatch.setattr(settings, "database_auto_create", False)

    async with lifespan(app):
        assert app.state.sweeper.running is True

    assert app.state.sweeper.running is False
