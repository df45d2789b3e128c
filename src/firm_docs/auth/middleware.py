"""Identity resolution: session user first, trusted service headers second."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastapi import HTTPException, Request, status

USER_ID_HEADER = "X-User-Id"
USER_ROLE_HEADER = "X-User-Role"


@dataclass(frozen=True)
class Identity:
    user_id: str
    role: str = ""


def get_user(request: Request) -> dict[str, Any] | None:
    """Extract the authenticated user from the session, if present."""
    session = request.scope.get("session")
    return session.get("user") if session else None


def resolve_identity(request: Request) -> Identity | None:
    user = get_user(request)
    if user and user.get("id"):
        return Identity(user_id=str(user["id"]), role=str(user.get("role", "")).lower())

    settings = request.app.state.settings
    if settings.app.trust_identity_headers:
        user_id = request.headers.get(USER_ID_HEADER, "").strip()
        if user_id:
            role = request.headers.get(USER_ROLE_HEADER, "").strip().lower()
            return Identity(user_id=user_id, role=role)
    return None


def require_identity(request: Request) -> Identity:
    """Return the caller's identity or raise HTTP 401."""
    identity = resolve_identity(request)
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return identity
