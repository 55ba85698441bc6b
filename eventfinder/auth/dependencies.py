from __future__ import annotations

from fastapi import HTTPException, Request

from ..store.models import Role


def require_user(request: Request) -> dict:
    """Raise 401 if no user is logged in."""
    user = request.session.get("user")
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def require_organiser(request: Request) -> dict:
    """Raise 401 if not logged in, 403 unless the session user organises events."""
    user = require_user(request)
    if user.get("role") != Role.organiser.value:
        raise HTTPException(status_code=403, detail="Organiser access required")
    return user
