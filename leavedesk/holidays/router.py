"""Holidays router — read and replace the holiday set of a year."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.auth.dependencies import get_current_user, require_permission
from leavedesk.database import get_db
from leavedesk.directory.schemas import DirectoryEntry
from leavedesk.holidays.schemas import HolidaysOut, HolidaysReplace, HolidaysReplaced
from leavedesk.holidays.service import HolidayService

router = APIRouter(prefix="", tags=["holidays"])


# ── GET /holidays ───────────────────────────────────────────────────

@router.get("/holidays", response_model=HolidaysOut)
async def list_holidays(
    year: int = Query(...),
    _user: DirectoryEntry = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    dates = await HolidayService.list_for_year(db, year)
    return HolidaysOut(year=year, dates=dates)


# ── PUT /holidays ───────────────────────────────────────────────────

@router.put("/holidays", response_model=HolidaysReplaced)
async def replace_holidays(
    body: HolidaysReplace,
    user: DirectoryEntry = Depends(require_permission("holiday:configure")),
    db: AsyncSession = Depends(get_db),
):
    """Replace the whole holiday set of ``body.year``."""
    count = await HolidayService.replace_year(
        db, body.year, body.dates, actor_email=user.email,
    )
    return HolidaysReplaced(year=body.year, count=count)
