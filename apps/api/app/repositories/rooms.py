"""Room persistence helpers."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Select, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.room import Room
from . import participants as participants_repo


async def get_by_id(session: AsyncSession, room_id: str) -> Room | None:
    """Return a room by identifier regardless of its status."""

    return await session.get(Room, room_id, populate_existing=True)


async def get_active_by_name(session: AsyncSession, name: str) -> Room | None:
    """Return the active room holding ``name``, if any."""

    stmt: Select[tuple[Room]] = select(Room).where(Room.name == name, Room.is_active.is_(True))
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_active_by_id(session: AsyncSession, room_id: str, *, for_update: bool = False) -> Room | None:
    """Return an active room by identifier, optionally locking the row."""

    stmt: Select[tuple[Room]] = select(Room).where(Room.id == room_id, Room.is_active.is_(True))
    if for_update:
        stmt = stmt.with_for_update()
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_expired_active(session: AsyncSession, *, now: datetime) -> list[Room]:
    """Return active rooms whose deadline lies before ``now``."""

    stmt = (
        select(Room)
        .where(
            Room.expires_at.is_not(None),
            Room.expires_at < now,
            Room.is_active.is_(True),
        )
        .order_by(Room.expires_at.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def create_room(
    session: AsyncSession,
    *,
    name: str,
    created_at: datetime,
    created_by: str | None = None,
    expires_at: datetime | None = None,
    max_duration: int | None = None,
) -> Room:
    """Insert a new active room and flush so constraint violations surface here."""

    room = Room(
        name=name,
        created_by=created_by,
        created_at=created_at,
        expires_at=expires_at,
        max_duration=max_duration,
        is_active=True,
    )
    session.add(room)
    await session.flush()
    return room


async def retire(session: AsyncSession, room_id: str, *, now: datetime) -> bool:
    """Flip an active room to inactive and close its roster.

    Returns False when the room was already inactive; participants are closed
    either way so a half-finished retirement converges.
    """

    result = await session.execute(
        update(Room).where(Room.id == room_id, Room.is_active.is_(True)).values(is_active=False)
    )
    await participants_repo.close_all(session, room_id=room_id, left_at=now)
    return result.rowcount > 0


async def deactivate(session: AsyncSession, room_id: str, *, now: datetime) -> int:
    """Unconditionally mark a room inactive and return how many participants were closed."""

    await session.execute(update(Room).where(Room.id == room_id).values(is_active=False))
    return await participants_repo.close_all(session, room_id=room_id, left_at=now)


async def set_expires_at(session: AsyncSession, room: Room, expires_at: datetime) -> Room:
    room.expires_at = expires_at
    session.add(room)
    await session.flush()
    return room
