"""Group-based authorization for privileged room actions."""
from __future__ import annotations

import enum
from collections.abc import Iterable

from ..core.config import settings
from ..core.errors import ForbiddenError


class RoomAction(str, enum.Enum):
    CREATE_ROOM = "create_room"
    JOIN_ROOM = "join_room"
    LEAVE_ROOM = "leave_room"
    EXTEND_ROOM = "extend_room"
    REMOVE_PARTICIPANT = "remove_participant"
    START_RECORDING = "start_recording"
    STOP_RECORDING = "stop_recording"
    GRANT_RECORDING = "grant_recording"
    DEACTIVATE_ROOM = "deactivate_room"


OPEN_ACTIONS = frozenset(
    {
        RoomAction.CREATE_ROOM,
        RoomAction.JOIN_ROOM,
        RoomAction.LEAVE_ROOM,
        RoomAction.EXTEND_ROOM,
    }
)
RECORDING_ACTIONS = frozenset(
    {
        RoomAction.START_RECORDING,
        RoomAction.STOP_RECORDING,
        RoomAction.GRANT_RECORDING,
    }
)


def is_authorized(
    groups: Iterable[str],
    action: RoomAction,
    *,
    privileged_groups: Iterable[str] | None = None,
    recording_groups: Iterable[str] | None = None,
) -> bool:
    """Return True when a caller with ``groups`` may perform ``action``.

    Open actions only need optional authentication. Everything else needs a
    privileged group; recording actions also accept the recording groups.
    """

    if action in OPEN_ACTIONS:
        return True

    allowed = set(settings.privileged_groups if privileged_groups is None else privileged_groups)
    if action in RECORDING_ACTIONS:
        allowed |= set(settings.recording_groups if recording_groups is None else recording_groups)
    return not allowed.isdisjoint(groups)


def require_authorized(groups: Iterable[str], action: RoomAction) -> None:
    if not is_authorized(groups, action):
        if action in RECORDING_ACTIONS:
            raise ForbiddenError("Recording access required")
        raise ForbiddenError("Admin access required")
