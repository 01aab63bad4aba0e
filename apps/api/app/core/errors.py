"""Error kinds raised by the room services and their HTTP status codes."""
from __future__ import annotations

from fastapi import status


class RoomServiceError(Exception):
    """Base class for failures reported to API callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class RoomNotFoundError(RoomServiceError):
    """The room is missing, inactive or expired."""

    status_code = status.HTTP_404_NOT_FOUND


class ParticipantNotFoundError(RoomNotFoundError):
    """No joined participant matches the identity."""


class RoomConflictError(RoomServiceError):
    status_code = status.HTTP_409_CONFLICT


class InvalidRoomOperationError(RoomServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


class ForbiddenError(RoomServiceError):
    status_code = status.HTTP_403_FORBIDDEN


class StoreFailureError(RoomServiceError):
    """The database rejected or failed an operation."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class MediaServerError(RoomServiceError):
    """The media server returned an error or could not be reached."""

    status_code = status.HTTP_502_BAD_GATEWAY
