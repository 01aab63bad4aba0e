"""Bearer token issuance and verification for SSO-authenticated callers."""
from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from jose import JWTError, jwt

from ..core.clock import ensure_utc, utcnow
from ..core.config import settings


class InvalidTokenError(Exception):
    """The bearer token is malformed, expired or carries a bad signature."""


@dataclass(slots=True, frozen=True)
class CallerIdentity:
    """User asserted by the identity provider for the current request."""

    subject: str
    email: str = ""
    name: str = ""
    username: str = ""
    groups: tuple[str, ...] = field(default_factory=tuple)


def create_access_token(identity: CallerIdentity, *, now: datetime | None = None) -> tuple[str, datetime]:
    """Sign an access token for ``identity`` and return it with its expiry."""

    issued_at = ensure_utc(now or utcnow())
    expires_at = issued_at + timedelta(hours=settings.access_token_ttl_hours)
    claims = {
        "user_id": identity.subject,
        "email": identity.email,
        "name": identity.name,
        "username": identity.username,
        "groups": list(identity.groups),
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
        "jti": secrets.token_hex(16),
    }
    token = jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return token, expires_at


def verify_access_token(token: str) -> CallerIdentity:
    """Decode a bearer token into the caller it was issued for."""

    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise InvalidTokenError(str(exc)) from exc

    subject = claims.get("user_id") or claims.get("sub")
    if not subject:
        raise InvalidTokenError("Token has no subject")

    groups = claims.get("groups") or []
    if not isinstance(groups, list):
        groups = []
    return CallerIdentity(
        subject=str(subject),
        email=str(claims.get("email") or ""),
        name=str(claims.get("name") or ""),
        username=str(claims.get("username") or ""),
        groups=tuple(str(group) for group in groups if isinstance(group, str)),
    )
