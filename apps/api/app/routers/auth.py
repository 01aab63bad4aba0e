"""Caller identity endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from ..dependencies import get_current_identity
from ..schemas.auth import UserResponse
from ..services.auth import CallerIdentity

router = APIRouter()


@router.get("/me", response_model=UserResponse)
async def read_current_user(identity: CallerIdentity = Depends(get_current_identity)) -> UserResponse:
    """Return the user the bearer token was issued for."""

    return UserResponse(
        id=identity.subject,
        email=identity.email,
        name=identity.name,
        username=identity.username,
        groups=list(identity.groups),
    )
