"""Auth router — current user profile."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from leavedesk.auth.dependencies import get_current_user
from leavedesk.directory.schemas import DirectoryEntry

router = APIRouter(prefix="", tags=["auth"])


# ── GET /me ─────────────────────────────────────────────────────────

@router.get("/me", response_model=DirectoryEntry)
async def me(user: DirectoryEntry = Depends(get_current_user)):
    """Return the resolved identity of the caller."""
    return user
