"""Holiday service — per-year holiday sets used by the day count."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Iterable, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.common.dates import parse_date_key, to_date_key
from leavedesk.common.exceptions import ValidationException
from leavedesk.holidays.models import Holiday

logger = logging.getLogger(__name__)


def _validate_year(year: Any) -> int:
    if isinstance(year, bool) or not isinstance(year, int) or year <= 0:
        raise ValidationException(
            "invalid_year", {"year": ["Year must be a positive integer."]},
        )
    return year


class HolidayService:
    """Async holiday operations."""

    @staticmethod
    async def dates_for_years(db: AsyncSession, years: Iterable[int]) -> set[date]:
        """Union of the holiday sets filed under each of *years*."""
        wanted = sorted(set(years))
        if not wanted:
            return set()
        result = await db.execute(
            select(Holiday.holiday_date).where(Holiday.year.in_(wanted))
        )
        return {row[0] for row in result.all()}

    @staticmethod
    async def list_for_year(db: AsyncSession, year: int) -> list[str]:
        _validate_year(year)
        result = await db.execute(
            select(Holiday.holiday_date)
            .where(Holiday.year == year)
            .order_by(Holiday.holiday_date)
        )
        return [to_date_key(row[0]) for row in result.all()]

    @staticmethod
    async def replace_year(
        db: AsyncSession,
        year: int,
        values: Optional[list[Any]],
        *,
        actor_email: str,
    ) -> int:
        """Replace the holiday set of *year* wholesale.

        Unparsable entries are dropped silently. Delete and insert share the
        caller's transaction, so readers never observe a half-written year.
        Returns the number of holidays stored.
        """
        _validate_year(year)

        days: set[date] = set()
        for value in values or []:
            parsed = parse_date_key(value)
            if parsed is not None:
                days.add(parsed)

        await db.execute(delete(Holiday).where(Holiday.year == year))
        db.add_all(
            Holiday(year=year, holiday_date=day, created_by=actor_email)
            for day in sorted(days)
        )
        await db.flush()

        logger.info(
            "Holidays for %s replaced by %s: %d dates (%d entries ignored)",
            year, actor_email, len(days), len(values or []) - len(days),
        )
        return len(days)
