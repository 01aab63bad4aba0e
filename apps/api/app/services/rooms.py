"""Room lifecycle: creation, lazy expiration, extension and deactivation.

Expiration is enforced on two paths. Readers going through ``get_room`` retire an
expired room the moment they observe it, and the background sweeper retires the
rest in batches. Either path may win a race; both converge on ``is_active = false``.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import ensure_utc, utcnow
from ..core.config import settings
from ..core.errors import InvalidRoomOperationError, RoomConflictError, RoomNotFoundError
from ..db.transaction import transaction
from ..models.room import Room
from ..repositories import participants as participants_repo
from ..repositories import rooms as rooms_repo
from ..schemas import rooms as schemas

logger = logging.getLogger(__name__)

MIN_EXTENSION_MINUTES = 1


async def create_room(
    session: AsyncSession,
    name: str,
    created_by: str | None = None,
    *,
    now: datetime | None = None,
) -> Room:
    """Create a guest room (no caller) or an unlimited room owned by ``created_by``."""

    now = ensure_utc(now or utcnow())

    try:
        async with transaction(session):
            existing = await rooms_repo.get_active_by_name(session, name)
            if existing is not None:
                if not existing.is_expired(now):
                    raise RoomConflictError(f"Room '{name}' already exists and is active")
                await rooms_repo.retire(session, existing.id, now=now)
                logger.info("Retired expired room %s (%s) before reusing its name", name, existing.id)

            if created_by is None:
                minutes = settings.guest_room_minutes
                room = await rooms_repo.create_room(
                    session,
                    name=name,
                    created_at=now,
                    expires_at=now + timedelta(minutes=minutes),
                    max_duration=minutes,
                )
            else:
                room = await rooms_repo.create_room(session, name=name, created_at=now, created_by=created_by)
    except IntegrityError as exc:
        # Another request created an active room with this name between our check and insert.
        raise RoomConflictError(f"Room '{name}' already exists and is active") from exc

    logger.info("Created %s room %s (%s)", "guest" if room.is_guest_room else "owned", room.name, room.id)
    return room


async def get_room(session: AsyncSession, name: str, *, now: datetime | None = None) -> Room:
    """Return the active room called ``name``; expired rooms are retired and reported missing."""

    now = ensure_utc(now or utcnow())
    expired = False

    async with transaction(session):
        room = await rooms_repo.get_active_by_name(session, name)
        if room is not None and room.is_expired(now):
            expired = True
            await rooms_repo.retire(session, room.id, now=now)

    if room is None or expired:
        if expired:
            logger.info("Room %s (%s) expired on read", name, room.id)
        raise RoomNotFoundError(f"Room '{name}' not found")
    return room


async def get_room_by_id(session: AsyncSession, room_id: str) -> Room:
    """Return an active room by identifier without re-checking its deadline."""

    async with transaction(session):
        room = await rooms_repo.get_active_by_id(session, room_id)
    if room is None:
        raise RoomNotFoundError("Room not found")
    return room


async def extend_room(
    session: AsyncSession,
    room_id: str,
    additional_minutes: int,
    *,
    now: datetime | None = None,
) -> Room:
    """Push a guest room's deadline forward by ``additional_minutes``.

    The minutes are added to the stored deadline, not to the current time. A room
    whose deadline has already passed is retired instead of being revived.
    """

    max_minutes = settings.room_extension_max_minutes
    if not MIN_EXTENSION_MINUTES <= additional_minutes <= max_minutes:
        raise InvalidRoomOperationError(
            f"additional_minutes must be between {MIN_EXTENSION_MINUTES} and {max_minutes}"
        )

    now = ensure_utc(now or utcnow())
    expired = False

    async with transaction(session):
        room = await rooms_repo.get_active_by_id(session, room_id, for_update=True)
        if room is None:
            raise RoomNotFoundError("Room not found")
        if room.expires_at is None:
            raise InvalidRoomOperationError("Rooms without a time limit cannot be extended")
        if room.is_expired(now):
            expired = True
            await rooms_repo.retire(session, room.id, now=now)
        else:
            new_deadline = ensure_utc(room.expires_at) + timedelta(minutes=additional_minutes)
            await rooms_repo.set_expires_at(session, room, new_deadline)

    if expired:
        logger.info("Refused to extend expired room %s (%s)", room.name, room.id)
        raise RoomNotFoundError("Room not found")

    logger.info("Extended room %s (%s) by %d minutes", room.name, room.id, additional_minutes)
    return room


async def deactivate_room(session: AsyncSession, room_id: str, *, now: datetime | None = None) -> None:
    """Mark the room inactive and close its roster in one transaction. Idempotent."""

    now = ensure_utc(now or utcnow())
    async with transaction(session):
        closed = await rooms_repo.deactivate(session, room_id, now=now)
    logger.info("Deactivated room %s, closed %d participant(s)", room_id, closed)


async def get_room_stats(session: AsyncSession, room_id: str, *, now: datetime | None = None) -> schemas.RoomStats:
    """Return a read-only snapshot of a room, active or not."""

    now = ensure_utc(now or utcnow())
    async with transaction(session):
        room = await rooms_repo.get_by_id(session, room_id)
        if room is None:
            raise RoomNotFoundError("Room not found")
        active_count = await participants_repo.count_joined(session, room_id)
        total_count = await participants_repo.count_all(session, room_id)

    return schemas.RoomStats(
        room_id=room.id,
        room_name=room.name,
        created_at=ensure_utc(room.created_at),
        expires_at=ensure_utc(room.expires_at) if room.expires_at is not None else None,
        time_remaining=room.time_remaining(now),
        is_guest_room=room.is_guest_room,
        active_participants=active_count,
        total_participants=total_count,
        is_active=room.is_active,
        is_expired=room.is_expired(now),
    )
