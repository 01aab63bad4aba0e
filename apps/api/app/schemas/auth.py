"""Data contracts for caller identity."""
from __future__ import annotations

from pydantic import BaseModel


class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    username: str
    groups: list[str]
