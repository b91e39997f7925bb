"""Consumable-day counting: pure counting and the DB-backed resolver."""

from __future__ import annotations

from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.directory.service import Directory
from leavedesk.leave.calendar import CalendarResolver, count_consumable_days
from tests.factories import _seed_employee, _seed_holidays, _seed_working_days

WEEKDAYS = [1, 2, 3, 4, 5]


# ═════════════════════════════════════════════════════════════════════
# 1. count_consumable_days — pure logic tests (no DB)
# ═════════════════════════════════════════════════════════════════════


class TestCountConsumableDays:

    def test_holiday_inside_range_is_skipped(self):
        """Wed 2025-01-01 (holiday) .. Fri 2025-01-03 → Thu + Fri."""
        total = count_consumable_days(
            date(2025, 1, 1), date(2025, 1, 3), WEEKDAYS, {date(2025, 1, 1)},
        )
        assert total == 2

    def test_weekends_excluded(self):
        # 2025-01-06 is Monday, 2025-01-12 is Sunday
        total = count_consumable_days(date(2025, 1, 6), date(2025, 1, 12), WEEKDAYS, set())
        assert total == 5

    def test_custom_working_days(self):
        """Mon/Wed/Fri worker over a full week → 3."""
        total = count_consumable_days(date(2025, 1, 6), date(2025, 1, 12), [1, 3, 5], set())
        assert total == 3

    def test_weekend_worker_counts_sunday(self):
        total = count_consumable_days(date(2025, 1, 12), date(2025, 1, 12), [6, 7], set())
        assert total == 1

    def test_single_weekend_day_is_zero(self):
        assert count_consumable_days(date(2025, 1, 11), date(2025, 1, 11), WEEKDAYS, set()) == 0

    def test_inverted_range_is_zero(self):
        assert count_consumable_days(date(2025, 1, 10), date(2025, 1, 6), WEEKDAYS, set()) == 0

    def test_holiday_on_weekend_not_double_subtracted(self):
        total = count_consumable_days(
            date(2025, 1, 6), date(2025, 1, 12), WEEKDAYS, {date(2025, 1, 11)},
        )
        assert total == 5


# ═════════════════════════════════════════════════════════════════════
# 2. CalendarResolver — holidays and working days from the database
# ═════════════════════════════════════════════════════════════════════


class TestCalendarResolver:

    async def test_defaults_to_monday_to_friday(self, db: AsyncSession):
        emp = await _seed_employee(db)
        await _seed_holidays(db, 2025, [date(2025, 1, 1)])

        total = await CalendarResolver.count_consumable_days(
            db, date(2025, 1, 1), date(2025, 1, 3), emp.id,
        )
        assert total == 2

    async def test_uses_employee_working_days(self, db: AsyncSession):
        emp = await _seed_employee(db)
        await _seed_working_days(db, emp.id, [3])

        total = await CalendarResolver.count_consumable_days(
            db, date(2025, 1, 6), date(2025, 1, 19), emp.id, Directory(db),
        )
        # Two Wednesdays: 8th and 15th
        assert total == 2

    async def test_holidays_loaded_for_every_year_spanned(self, db: AsyncSession):
        emp = await _seed_employee(db)
        await _seed_holidays(db, 2024, [date(2024, 12, 31)])
        await _seed_holidays(db, 2025, [date(2025, 1, 1)])

        # Mon 2024-12-30 .. Thu 2025-01-02
        total = await CalendarResolver.count_consumable_days(
            db, date(2024, 12, 30), date(2025, 1, 2), emp.id,
        )
        assert total == 2

    async def test_other_years_do_not_leak(self, db: AsyncSession):
        emp = await _seed_employee(db)
        await _seed_holidays(db, 2026, [date(2026, 1, 1)])

        total = await CalendarResolver.count_consumable_days(
            db, date(2025, 1, 1), date(2025, 1, 3), emp.id,
        )
        assert total == 3

    async def test_empty_working_day_set_falls_back(self, db: AsyncSession):
        emp = await _seed_employee(db)
        await _seed_working_days(db, emp.id, [])

        total = await CalendarResolver.count_consumable_days(
            db, date(2025, 1, 6), date(2025, 1, 12), emp.id,
        )
        assert total == 5
