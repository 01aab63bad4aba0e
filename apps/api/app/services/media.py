"""Client for the media server's room and egress APIs (Twirp over JSON)."""
from __future__ import annotations

import logging
from datetime import datetime
from functools import lru_cache
from typing import Any

import httpx

from ..core.clock import utcnow
from ..core.config import settings
from ..core.errors import MediaServerError, RoomConflictError, RoomNotFoundError
from . import rtc

logger = logging.getLogger(__name__)

ROOM_SERVICE = "livekit.RoomService"
EGRESS_SERVICE = "livekit.Egress"
RECORDING_LAYOUT = "speaker-light"

# Egress status arrives either as the enum name or its number.
_IN_PROGRESS_STATUSES = {"EGRESS_STARTING", "EGRESS_ACTIVE", 0, 1}


def is_recording(egress: dict[str, Any]) -> bool:
    return egress.get("status", "EGRESS_STARTING") in _IN_PROGRESS_STATUSES


class MediaClient:
    """Thin async wrapper over the media server API."""

    def __init__(
        self,
        base_url: str,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._transport = transport
        self._timeout = timeout

    async def _call(self, service: str, method: str, payload: dict[str, Any], token: str) -> dict[str, Any]:
        url = f"{self._base_url}/twirp/{service}/{method}"
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
                response = await client.post(url, json=payload, headers={"Authorization": f"Bearer {token}"})
                response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Media server call %s/%s failed: %s", service, method, exc)
            raise MediaServerError(f"Media server request failed: {method}") from exc
        if not response.content:
            return {}
        return response.json()

    async def list_participants(self, room: str) -> list[dict[str, Any]]:
        token = rtc.server_token(room=room, room_admin=True)
        data = await self._call(ROOM_SERVICE, "ListParticipants", {"room": room}, token)
        return list(data.get("participants") or [])

    async def remove_participant(self, room: str, identity: str) -> None:
        token = rtc.server_token(room=room, room_admin=True)
        await self._call(ROOM_SERVICE, "RemoveParticipant", {"room": room, "identity": identity}, token)

    async def list_egress(self, room: str) -> list[dict[str, Any]]:
        token = rtc.server_token(room_record=True)
        data = await self._call(EGRESS_SERVICE, "ListEgress", {"room_name": room}, token)
        return list(data.get("items") or [])

    async def start_recording(self, room: str, *, now: datetime | None = None) -> dict[str, Any]:
        """Start a composite recording unless one is already running."""

        egresses = await self.list_egress(room)
        if any(is_recording(egress) for egress in egresses):
            raise RoomConflictError("Recording already in progress")

        started = now or utcnow()
        payload = {
            "room_name": room,
            "layout": RECORDING_LAYOUT,
            "file": {"filepath": f"{room}-{int(started.timestamp())}.mp4"},
        }
        token = rtc.server_token(room_record=True)
        info = await self._call(EGRESS_SERVICE, "StartRoomCompositeEgress", payload, token)
        logger.info("Started recording %s for room %s", info.get("egress_id"), room)
        return info

    async def stop_recording(self, room: str) -> dict[str, Any]:
        egresses = await self.list_egress(room)
        active = next((egress for egress in egresses if is_recording(egress)), None)
        if active is None:
            raise RoomNotFoundError("No active recording found")

        token = rtc.server_token(room_record=True)
        info = await self._call(EGRESS_SERVICE, "StopEgress", {"egress_id": active.get("egress_id")}, token)
        logger.info("Stopped recording %s for room %s", active.get("egress_id"), room)
        return info


@lru_cache
def get_media_client() -> MediaClient:
    """FastAPI dependency returning the shared media client."""

    return MediaClient(settings.livekit_url)
