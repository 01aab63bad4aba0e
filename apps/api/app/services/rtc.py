"""Media server access tokens.

Join tokens follow LiveKit's JWT layout: the API key is the issuer, the
participant identity is the subject and permissions live in the ``video`` grant.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from jose import jwt

from ..core.clock import ensure_utc, utcnow
from ..core.config import settings

SERVER_TOKEN_TTL = timedelta(minutes=10)


@dataclass(slots=True)
class RtcToken:
    token: str
    expires_in: int


def _sign(subject: str, video: dict[str, Any], valid_for: timedelta, now: datetime, **claims: Any) -> RtcToken:
    issued = int(now.timestamp())
    expires_in = max(1, int(valid_for.total_seconds()))
    payload = {
        "iss": settings.livekit_api_key,
        "sub": subject,
        "nbf": issued,
        "exp": issued + expires_in,
        "video": video,
        **claims,
    }
    token = jwt.encode(payload, settings.livekit_api_secret, algorithm="HS256")
    return RtcToken(token=token, expires_in=expires_in)


def issue_token(
    room: str,
    identity: str,
    *,
    name: str = "",
    can_publish: bool = True,
    can_subscribe: bool = True,
    can_publish_data: bool = False,
    metadata: dict[str, Any] | None = None,
    valid_for: timedelta | None = None,
    now: datetime | None = None,
) -> RtcToken:
    """Produce a join token for ``identity`` in ``room``.

    ``valid_for`` shortens the default validity window, e.g. to the time a guest
    room has left; it never extends it.
    """

    now = ensure_utc(now or utcnow())
    window = timedelta(hours=settings.livekit_token_ttl_hours)
    if valid_for is not None:
        window = min(window, valid_for)

    video = {
        "roomJoin": True,
        "room": room,
        "canPublish": can_publish,
        "canSubscribe": can_subscribe,
        "canPublishData": can_publish_data,
    }
    claims: dict[str, Any] = {"name": name or identity}
    if metadata:
        claims["metadata"] = json.dumps(metadata)
    return _sign(identity, video, window, now, **claims)


def server_token(*, room: str | None = None, room_admin: bool = False, room_record: bool = False) -> str:
    """Short-lived token authorising calls to the media server's own API."""

    video: dict[str, Any] = {}
    if room is not None:
        video["room"] = room
    if room_admin:
        video["roomAdmin"] = True
    if room_record:
        video["roomRecord"] = True
    return _sign(settings.livekit_api_key, video, SERVER_TOKEN_TTL, utcnow()).token
