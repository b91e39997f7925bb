"""Calendar resolver — consumable-day counting.

A day is consumable when its ISO weekday is one of the employee's working
days and it is not a holiday. Both ends of the range are inclusive.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Collection, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.common.dates import iter_days, years_spanned
from leavedesk.directory.service import Directory
from leavedesk.holidays.service import HolidayService


def count_consumable_days(
    start: date,
    end: date,
    working_days: Collection[int],
    holidays: Collection[date],
) -> int:
    """Count the days in [start, end] that are working days and not holidays.

    An inverted range yields 0.
    """
    weekdays = set(working_days)
    closed = set(holidays)
    return sum(
        1
        for day in iter_days(start, end)
        if day.isoweekday() in weekdays and day not in closed
    )


class CalendarResolver:
    """Loads holiday and working-day facts, then counts."""

    @staticmethod
    async def count_consumable_days(
        db: AsyncSession,
        start: date,
        end: date,
        employee_id: Optional[uuid.UUID],
        directory: Optional[Directory] = None,
    ) -> int:
        if start > end:
            return 0
        directory = directory or Directory(db)
        holidays = await HolidayService.dates_for_years(db, years_spanned(start, end))
        working_days = await directory.working_days_for(employee_id)
        return count_consumable_days(start, end, working_days, holidays)
