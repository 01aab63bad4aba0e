"""Room lifecycle endpoints for guests and signed-in users."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.session import get_session
from ..dependencies import get_current_identity, get_optional_identity
from ..schemas import rooms as rooms_schema
from ..services import participants as participants_service
from ..services import rooms as rooms_service
from ..services.auth import CallerIdentity
from ..services.policy import RoomAction, require_authorized

public_router = APIRouter()
router = APIRouter()


@public_router.post("", response_model=rooms_schema.RoomResponse, status_code=status.HTTP_201_CREATED)
async def create_room(
    payload: rooms_schema.RoomCreateRequest,
    session: AsyncSession = Depends(get_session),
    identity: CallerIdentity | None = Depends(get_optional_identity),
) -> rooms_schema.RoomResponse:
    """Create a room; anonymous callers get a time-boxed guest room."""

    created_by = identity.subject if identity else None
    room = await rooms_service.create_room(session, payload.name, created_by)
    return rooms_schema.RoomResponse.from_room(room)


@public_router.get("/{room_name}", response_model=rooms_schema.RoomStats)
async def get_room(room_name: str, session: AsyncSession = Depends(get_session)) -> rooms_schema.RoomStats:
    room = await rooms_service.get_room(session, room_name)
    return await rooms_service.get_room_stats(session, room.id)


@public_router.post("/{room_name}/join", response_model=rooms_schema.JoinRoomResponse)
async def join_room(
    room_name: str,
    payload: rooms_schema.JoinRoomRequest,
    session: AsyncSession = Depends(get_session),
    identity: CallerIdentity | None = Depends(get_optional_identity),
) -> rooms_schema.JoinRoomResponse:
    """Record a participant joining; repeated joins return the same entry."""

    room = await rooms_service.get_room(session, room_name)
    room_view = rooms_schema.RoomResponse.from_room(room)
    user_id = identity.subject if identity else None
    participant = await participants_service.add_participant(
        session, room_view.room_id, user_id, payload.identity, payload.name, is_guest=identity is None
    )

    base = rooms_schema.ParticipantResponse.from_participant(participant)
    return rooms_schema.JoinRoomResponse(
        **base.model_dump(),
        room_expires_at=room_view.expires_at,
        time_remaining=room_view.time_remaining,
    )


@public_router.post("/{room_name}/leave/{identity}", response_model=rooms_schema.MessageResponse)
async def leave_room(
    room_name: str,
    identity: str,
    session: AsyncSession = Depends(get_session),
) -> rooms_schema.MessageResponse:
    room = await rooms_service.get_room(session, room_name)
    await participants_service.remove_participant(session, room.id, identity)
    return rooms_schema.MessageResponse(message="Left room successfully")


@public_router.get("/{room_name}/participants", response_model=rooms_schema.ParticipantListResponse)
async def list_participants(
    room_name: str,
    session: AsyncSession = Depends(get_session),
) -> rooms_schema.ParticipantListResponse:
    room = await rooms_service.get_room(session, room_name)
    participants = await participants_service.get_active_participants(session, room.id)
    return rooms_schema.ParticipantListResponse(
        room_id=room.id,
        room_name=room.name,
        participants=[rooms_schema.ParticipantResponse.from_participant(item) for item in participants],
        count=len(participants),
    )


@router.post("/{room_name}/extend", response_model=rooms_schema.RoomExtendResponse)
async def extend_room(
    room_name: str,
    payload: rooms_schema.RoomExtendRequest,
    session: AsyncSession = Depends(get_session),
) -> rooms_schema.RoomExtendResponse:
    """Push a guest room's deadline forward."""

    room = await rooms_service.get_room(session, room_name)
    room = await rooms_service.extend_room(session, room.id, payload.additional_minutes)
    room_view = rooms_schema.RoomResponse.from_room(room)
    return rooms_schema.RoomExtendResponse(
        expires_at=room_view.expires_at,
        time_remaining=room.time_remaining(),
    )


@router.delete("/{room_name}", response_model=rooms_schema.MessageResponse)
async def deactivate_room(
    room_name: str,
    session: AsyncSession = Depends(get_session),
    identity: CallerIdentity = Depends(get_current_identity),
) -> rooms_schema.MessageResponse:
    """Deactivate a room; allowed for its creator and for admins."""

    room = await rooms_service.get_room(session, room_name)
    if room.created_by != identity.subject:
        require_authorized(identity.groups, RoomAction.DEACTIVATE_ROOM)
    await rooms_service.deactivate_room(session, room.id)
    return rooms_schema.MessageResponse(message="Room deactivated successfully")


@router.get(
    "/{room_name}/stats",
    response_model=rooms_schema.RoomStats,
    dependencies=[Depends(get_current_identity)],
)
async def get_room_stats(room_name: str, session: AsyncSession = Depends(get_session)) -> rooms_schema.RoomStats:
    room = await rooms_service.get_room(session, room_name)
    return await rooms_service.get_room_stats(session, room.id)
