"""Auth dependencies — JWT validation, identity resolution, permission checks."""

from __future__ import annotations

import logging
from typing import Callable

from fastapi import Depends, Request
from fastapi.exceptions import HTTPException
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.common.constants import PERMISSIONS
from leavedesk.common.exceptions import ForbiddenException
from leavedesk.config import settings
from leavedesk.database import get_db
from leavedesk.directory.schemas import DirectoryEntry
from leavedesk.directory.service import Directory

logger = logging.getLogger(__name__)


def _extract_bearer(request: Request) -> str:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid Authorization header.")
    return auth_header[7:].strip()


def validate_domain(email: str) -> None:
    """Ensure the email belongs to the allowed domain."""
    if not email.endswith(f"@{settings.ALLOWED_DOMAIN}"):
        raise ForbiddenException(
            detail=f"Only @{settings.ALLOWED_DOMAIN} accounts are permitted.",
        )


# ── Directory (request-scoped cache) ────────────────────────────────

async def get_directory(db: AsyncSession = Depends(get_db)) -> Directory:
    """FastAPI dependency: one Directory (and cache) per request."""
    return Directory(db)


# ── Core dependency ─────────────────────────────────────────────────

async def get_current_user(
    request: Request,
    directory: Directory = Depends(get_directory),
) -> DirectoryEntry:
    """Verify the bearer token and resolve the caller from the directory."""
    token = _extract_bearer(request)

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired.")
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token.")

    email = str(payload.get("email") or "").strip().lower()
    if not email:
        raise HTTPException(status_code=401, detail="Token carries no email claim.")

    validate_domain(email)

    user = await directory.get_by_email(email)
    if user is None:
        logger.info("Rejected token for unknown user %s", email)
        raise ForbiddenException(detail="This account is not allowed to use the system.")

    request.state.user = user
    return user


# ── Permission-based dependency ─────────────────────────────────────

def require_permission(permission: str) -> Callable:
    """Return a FastAPI dependency that enforces a specific permission string."""

    async def _check(
        user: DirectoryEntry = Depends(get_current_user),
    ) -> DirectoryEntry:
        role_permissions = PERMISSIONS.get(user.role, [])
        if permission not in role_permissions:
            raise ForbiddenException(
                detail=f"Permission '{permission}' is not granted to role '{user.role.value}'.",
            )
        return user

    return _check
