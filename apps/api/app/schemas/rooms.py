"""Data contracts for room lifecycle endpoints."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from ..core.clock import ensure_utc
from ..models.room import Room, RoomParticipant


def _utc(value: datetime | None) -> datetime | None:
    return ensure_utc(value) if value is not None else None


class RoomCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=128, description="Human-chosen room name")


class RoomResponse(BaseModel):
    room_id: str
    name: str
    created_at: datetime
    expires_at: datetime | None = None
    max_duration: int | None = Field(default=None, description="Guest allocation in minutes")
    is_guest_room: bool
    time_remaining: int | None = Field(default=None, description="Minutes left; omitted for unlimited rooms")

    @classmethod
    def from_room(cls, room: Room, *, now: datetime | None = None) -> "RoomResponse":
        return cls(
            room_id=room.id,
            name=room.name,
            created_at=ensure_utc(room.created_at),
            expires_at=_utc(room.expires_at),
            max_duration=room.max_duration,
            is_guest_room=room.is_guest_room,
            time_remaining=room.time_remaining(now) if room.expires_at is not None else None,
        )


class RoomStats(BaseModel):
    room_id: str
    room_name: str
    created_at: datetime
    expires_at: datetime | None = None
    time_remaining: int = Field(..., description="Minutes left, -1 when unlimited")
    is_guest_room: bool
    active_participants: int
    total_participants: int
    is_active: bool
    is_expired: bool


class RoomExtendRequest(BaseModel):
    additional_minutes: int = Field(..., ge=1, le=60)


class RoomExtendResponse(BaseModel):
    message: str = "Room extended successfully"
    expires_at: datetime | None
    time_remaining: int


class JoinRoomRequest(BaseModel):
    identity: str = Field(..., min_length=1, description="Session-scoped participant handle")
    name: str = Field(..., min_length=1, description="Display name")


class ParticipantResponse(BaseModel):
    participant_id: str
    room_id: str
    user_id: str | None = None
    identity: str
    name: str
    is_guest: bool
    joined_at: datetime
    left_at: datetime | None = None

    @classmethod
    def from_participant(cls, participant: RoomParticipant) -> "ParticipantResponse":
        return cls(
            participant_id=participant.id,
            room_id=participant.room_id,
            user_id=participant.user_id,
            identity=participant.identity,
            name=participant.name,
            is_guest=participant.is_guest,
            joined_at=ensure_utc(participant.joined_at),
            left_at=_utc(participant.left_at),
        )


class JoinRoomResponse(ParticipantResponse):
    room_expires_at: datetime | None = None
    time_remaining: int | None = None


class ParticipantListResponse(BaseModel):
    room_id: str
    room_name: str
    participants: list[ParticipantResponse]
    count: int


class MessageResponse(BaseModel):
    message: str
