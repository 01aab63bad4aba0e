"""Join token issuance and media server moderation endpoints."""
from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import ensure_utc, utcnow
from ..core.config import settings
from ..db.session import get_session
from ..dependencies import get_current_identity, get_optional_identity
from ..schemas import rooms as rooms_schema
from ..schemas.rtc import LiveParticipantsResponse, RecordingResponse, RtcTokenRequest, RtcTokenResponse
from ..services import rooms as rooms_service
from ..services import rtc as rtc_service
from ..services.auth import CallerIdentity
from ..services.media import MediaClient, get_media_client
from ..services.policy import RoomAction, is_authorized, require_authorized

router = APIRouter()


@router.post("/{room_name}/token", response_model=RtcTokenResponse)
async def create_rtc_token(
    room_name: str,
    payload: RtcTokenRequest,
    session: AsyncSession = Depends(get_session),
    identity: CallerIdentity | None = Depends(get_optional_identity),
) -> RtcTokenResponse:
    """Return a join token for an active room.

    Tokens for guest rooms expire no later than the room itself.
    """

    room = await rooms_service.get_room(session, room_name)

    participant_identity = payload.identity or (identity.subject if identity else None)
    if not participant_identity:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="identity is required for guests")
    display_name = payload.name or (identity.name if identity else "") or participant_identity

    can_record = bool(
        payload.can_record and identity and is_authorized(identity.groups, RoomAction.GRANT_RECORDING)
    )
    valid_for = None
    if room.expires_at is not None:
        valid_for = ensure_utc(room.expires_at) - utcnow()
        if valid_for <= timedelta(0):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Room '{room_name}' not found")

    metadata = {"user_id": identity.subject, "email": identity.email} if identity else None
    token = rtc_service.issue_token(
        room.name,
        participant_identity,
        name=display_name,
        can_publish=payload.can_publish,
        can_subscribe=payload.can_subscribe,
        can_publish_data=can_record,
        metadata=metadata,
        valid_for=valid_for,
    )
    return RtcTokenResponse(
        token=token.token,
        expires_in=token.expires_in,
        server_url=settings.livekit_url,
        room_name=room.name,
        identity=participant_identity,
        name=display_name,
    )


@router.get(
    "/{room_name}/live-participants",
    response_model=LiveParticipantsResponse,
    dependencies=[Depends(get_current_identity)],
)
async def list_live_participants(
    room_name: str,
    media: MediaClient = Depends(get_media_client),
) -> LiveParticipantsResponse:
    """Return the participants the media server currently sees in the room."""

    participants = await media.list_participants(room_name)
    return LiveParticipantsResponse(participants=participants, count=len(participants))


@router.delete("/{room_name}/participants/{identity}", response_model=rooms_schema.MessageResponse)
async def remove_live_participant(
    room_name: str,
    identity: str,
    caller: CallerIdentity = Depends(get_current_identity),
    media: MediaClient = Depends(get_media_client),
) -> rooms_schema.MessageResponse:
    require_authorized(caller.groups, RoomAction.REMOVE_PARTICIPANT)
    await media.remove_participant(room_name, identity)
    return rooms_schema.MessageResponse(message="Participant removed successfully")


@router.post("/{room_name}/recording/start", response_model=RecordingResponse)
async def start_recording(
    room_name: str,
    caller: CallerIdentity = Depends(get_current_identity),
    media: MediaClient = Depends(get_media_client),
) -> RecordingResponse:
    require_authorized(caller.groups, RoomAction.START_RECORDING)
    info = await media.start_recording(room_name)
    return RecordingResponse(
        message="Recording started successfully",
        egress_id=info.get("egress_id"),
        status=info.get("status"),
        started_at=info.get("started_at"),
    )


@router.post("/{room_name}/recording/stop", response_model=RecordingResponse)
async def stop_recording(
    room_name: str,
    caller: CallerIdentity = Depends(get_current_identity),
    media: MediaClient = Depends(get_media_client),
) -> RecordingResponse:
    require_authorized(caller.groups, RoomAction.STOP_RECORDING)
    info = await media.stop_recording(room_name)
    return RecordingResponse(
        message="Recording stopped successfully",
        egress_id=info.get("egress_id"),
        status=info.get("status"),
        ended_at=info.get("ended_at"),
    )
