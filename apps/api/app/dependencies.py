"""FastAPI dependencies resolving the caller from the Authorization header."""
from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .services.auth import CallerIdentity, InvalidTokenError, verify_access_token

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_optional_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> CallerIdentity | None:
    """Return the caller when a bearer token is present; anonymous guests get None.

    A token that is present but invalid is rejected rather than silently
    downgrading the caller to a guest.
    """

    if credentials is None:
        return None
    try:
        return verify_access_token(credentials.credentials)
    except InvalidTokenError as exc:
        logger.info("Rejected bearer token: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


async def get_current_identity(
    identity: CallerIdentity | None = Depends(get_optional_identity),
) -> CallerIdentity:
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity
