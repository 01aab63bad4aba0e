"""Expose ORM models."""
from .room import UNLIMITED, Room, RoomParticipant

__all__ = [
    "UNLIMITED",
    "Room",
    "RoomParticipant",
]
