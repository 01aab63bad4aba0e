"""Participant persistence helpers."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.room import RoomParticipant


async def get_joined(session: AsyncSession, *, room_id: str, identity: str) -> RoomParticipant | None:
    """Return the row for ``identity`` if it is currently in the room."""

    stmt: Select[tuple[RoomParticipant]] = select(RoomParticipant).where(
        RoomParticipant.room_id == room_id,
        RoomParticipant.identity == identity,
        RoomParticipant.left_at.is_(None),
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def create_participant(
    session: AsyncSession,
    *,
    room_id: str,
    identity: str,
    name: str,
    joined_at: datetime,
    user_id: str | None = None,
    is_guest: bool = False,
) -> RoomParticipant:
    participant = RoomParticipant(
        room_id=room_id,
        user_id=user_id,
        identity=identity,
        name=name,
        is_guest=is_guest,
        joined_at=joined_at,
        left_at=None,
    )
    session.add(participant)
    await session.flush()
    return participant


async def mark_left(session: AsyncSession, *, room_id: str, identity: str, left_at: datetime) -> int:
    """Set ``left_at`` on the joined row for ``identity``; returns rows updated."""

    result = await session.execute(
        update(RoomParticipant)
        .where(
            RoomParticipant.room_id == room_id,
            RoomParticipant.identity == identity,
            RoomParticipant.left_at.is_(None),
        )
        .values(left_at=left_at)
    )
    return result.rowcount


async def close_all(session: AsyncSession, *, room_id: str, left_at: datetime) -> int:
    """Mark every joined participant of the room as left."""

    result = await session.execute(
        update(RoomParticipant)
        .where(RoomParticipant.room_id == room_id, RoomParticipant.left_at.is_(None))
        .values(left_at=left_at)
    )
    return result.rowcount


async def list_joined(session: AsyncSession, room_id: str) -> list[RoomParticipant]:
    """Return joined participants in join order."""

    stmt = (
        select(RoomParticipant)
        .where(RoomParticipant.room_id == room_id, RoomParticipant.left_at.is_(None))
        .order_by(RoomParticipant.joined_at.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def count_joined(session: AsyncSession, room_id: str) -> int:
    stmt = select(func.count(RoomParticipant.id)).where(
        RoomParticipant.room_id == room_id,
        RoomParticipant.left_at.is_(None),
    )
    result = await session.execute(stmt)
    return result.scalar_one()


async def count_all(session: AsyncSession, room_id: str) -> int:
    stmt = select(func.count(RoomParticipant.id)).where(RoomParticipant.room_id == room_id)
    result = await session.execute(stmt)
    return result.scalar_one()
