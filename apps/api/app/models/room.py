"""Room and participant models."""
from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from ..core.clock import ensure_utc, utcnow
from .base import Base

UNLIMITED = -1


def _new_id() -> str:
    return str(uuid4())


class Room(Base):
    """Conference room; guest rooms carry a deadline, owned rooms do not."""

    __tablename__ = "rooms"
    __table_args__ = (
        # Names are only unique among active rooms so a retired name can be reused.
        Index(
            "uq_rooms_active_name",
            "name",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String, nullable=False, index=True)
    created_by: Mapped[str | None] = mapped_column(String)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    max_duration: Mapped[int | None] = mapped_column(Integer)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    @property
    def is_guest_room(self) -> bool:
        return self.created_by is None

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return ensure_utc(now or utcnow()) > ensure_utc(self.expires_at)

    def time_remaining(self, now: datetime | None = None) -> int:
        """Whole minutes left, ``UNLIMITED`` without a deadline, 0 once past it."""

        if self.expires_at is None:
            return UNLIMITED
        remaining = ensure_utc(self.expires_at) - ensure_utc(now or utcnow())
        if remaining.total_seconds() <= 0:
            return 0
        return int(remaining.total_seconds() // 60)


class RoomParticipant(Base):
    """One join of an identity to a room; ``left_at`` is set once on departure."""

    __tablename__ = "room_participants"
    __table_args__ = (
        Index(
            "uq_room_participants_joined_identity",
            "room_id",
            "identity",
            unique=True,
            postgresql_where=text("left_at IS NULL"),
            sqlite_where=text("left_at IS NULL"),
        ),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    room_id: Mapped[str] = mapped_column(ForeignKey("rooms.id"), nullable=False, index=True)
    user_id: Mapped[str | None] = mapped_column(String)
    identity: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    is_guest: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    left_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
