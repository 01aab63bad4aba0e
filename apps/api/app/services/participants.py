"""Participant join/leave bookkeeping scoped to a room.

Callers resolve the room first (``rooms.get_room``); nothing here re-checks
whether the room is active or expired.
"""
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import ensure_utc, utcnow
from ..core.errors import ParticipantNotFoundError
from ..db.transaction import transaction
from ..models.room import RoomParticipant
from ..repositories import participants as participants_repo

logger = logging.getLogger(__name__)


async def add_participant(
    session: AsyncSession,
    room_id: str,
    user_id: str | None,
    identity: str,
    name: str,
    is_guest: bool,
    *,
    now: datetime | None = None,
) -> RoomParticipant:
    """Join ``identity`` to the room, returning the existing entry if it is already joined."""

    now = ensure_utc(now or utcnow())

    try:
        async with transaction(session):
            participant = await participants_repo.get_joined(session, room_id=room_id, identity=identity)
            if participant is not None:
                return participant
            participant = await participants_repo.create_participant(
                session,
                room_id=room_id,
                user_id=user_id,
                identity=identity,
                name=name,
                is_guest=is_guest,
                joined_at=now,
            )
    except IntegrityError:
        # A concurrent join for the same identity won; hand back its row.
        async with transaction(session):
            participant = await participants_repo.get_joined(session, room_id=room_id, identity=identity)
        if participant is None:
            raise
        return participant

    logger.info("Participant %s joined room %s", identity, room_id)
    return participant


async def remove_participant(
    session: AsyncSession,
    room_id: str,
    identity: str,
    *,
    now: datetime | None = None,
) -> None:
    """Mark ``identity`` as having left the room."""

    now = ensure_utc(now or utcnow())
    async with transaction(session):
        updated = await participants_repo.mark_left(session, room_id=room_id, identity=identity, left_at=now)
    if updated == 0:
        raise ParticipantNotFoundError(f"Participant '{identity}' not found in room")
    logger.info("Participant %s left room %s", identity, room_id)


async def get_active_participants(session: AsyncSession, room_id: str) -> list[RoomParticipant]:
    async with transaction(session):
        return await participants_repo.list_joined(session, room_id)
