"""Data contracts for media server endpoints."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class RtcTokenRequest(BaseModel):
    identity: str | None = Field(default=None, description="Participant handle; defaults to the caller's user id")
    name: str | None = Field(default=None, description="Display name; defaults to the caller's name")
    can_publish: bool = True
    can_subscribe: bool = True
    can_record: bool = Field(default=False, description="Request data-publish rights used for recording control")


class RtcTokenResponse(BaseModel):
    token: str = Field(..., description="JWT token for the RTC backend")
    expires_in: int = Field(..., ge=1, description="Seconds until expiration")
    server_url: str
    room_name: str
    identity: str
    name: str


class LiveParticipantsResponse(BaseModel):
    participants: list[dict[str, Any]]
    count: int


class RecordingResponse(BaseModel):
    message: str
    egress_id: str | None = None
    status: str | int | None = None
    started_at: int | str | None = None
    ended_at: int | str | None = None
