"""Directory service — employee/department lookups and working-day patterns.

A ``Directory`` is created per unit of work with an explicit cache mapping.
The default cache lives as long as the instance (request-scoped); callers
that want a longer-lived or time-bounded policy pass their own mapping.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, MutableMapping, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.common.constants import DEFAULT_WORKING_DAYS
from leavedesk.common.dates import normalize_weekdays
from leavedesk.common.exceptions import NotFoundException, ValidationException
from leavedesk.directory.models import Department, Employee, WorkingDaySet
from leavedesk.directory.schemas import DirectoryEntry, UserOut

logger = logging.getLogger(__name__)


class Directory:
    """Read-mostly view over employees, departments and working days."""

    def __init__(
        self,
        db: AsyncSession,
        cache: Optional[MutableMapping[tuple[str, str], Any]] = None,
    ) -> None:
        self.db = db
        self.cache: MutableMapping[tuple[str, str], Any] = {} if cache is None else cache

    # ─────────────────────────────────────────────────────────────────
    # Lookups
    # ─────────────────────────────────────────────────────────────────

    def _remember(self, entry: DirectoryEntry) -> DirectoryEntry:
        self.cache[("id", str(entry.id))] = entry
        self.cache[("email", entry.email)] = entry
        return entry

    async def get_by_id(self, employee_id: uuid.UUID) -> Optional[DirectoryEntry]:
        """Return the active employee with this id, or ``None``."""
        cached = self.cache.get(("id", str(employee_id)))
        if cached is not None:
            return cached

        result = await self.db.execute(
            select(Employee).where(
                Employee.id == employee_id, Employee.is_active.is_(True),
            )
        )
        employee = result.scalars().first()
        if employee is None:
            return None
        return self._remember(DirectoryEntry.model_validate(employee))

    async def get_by_email(self, email: str) -> Optional[DirectoryEntry]:
        """Return the active employee with this (case-insensitive) email."""
        key = (email or "").strip().lower()
        if not key:
            return None
        cached = self.cache.get(("email", key))
        if cached is not None:
            return cached

        result = await self.db.execute(
            select(Employee).where(
                Employee.email == key, Employee.is_active.is_(True),
            )
        )
        employee = result.scalars().first()
        if employee is None:
            return None
        return self._remember(DirectoryEntry.model_validate(employee))

    async def require(self, employee_id: uuid.UUID) -> DirectoryEntry:
        entry = await self.get_by_id(employee_id)
        if entry is None:
            raise NotFoundException("Employee", employee_id)
        return entry

    async def list_employees(
        self,
        *,
        department_id: Optional[uuid.UUID] = None,
        employee_id: Optional[uuid.UUID] = None,
    ) -> list[DirectoryEntry]:
        """Active employees ordered by email, optionally narrowed."""
        query = (
            select(Employee)
            .where(Employee.is_active.is_(True))
            .order_by(Employee.email)
        )
        if department_id is not None:
            query = query.where(Employee.department_id == department_id)
        if employee_id is not None:
            query = query.where(Employee.id == employee_id)

        result = await self.db.execute(query)
        return [
            self._remember(DirectoryEntry.model_validate(emp))
            for emp in result.scalars().all()
        ]

    # ─────────────────────────────────────────────────────────────────
    # Working days
    # ─────────────────────────────────────────────────────────────────

    async def working_days_for(self, employee_id: Optional[uuid.UUID]) -> list[int]:
        """ISO weekdays the employee works; Monday–Friday when unset."""
        if employee_id is None:
            return list(DEFAULT_WORKING_DAYS)

        key = ("working_days", str(employee_id))
        cached = self.cache.get(key)
        if cached is not None:
            return list(cached)

        row = await self.db.get(WorkingDaySet, employee_id)
        days = normalize_weekdays(row.working_days) if row is not None else []
        if not days:
            days = list(DEFAULT_WORKING_DAYS)
        self.cache[key] = tuple(days)
        return days

    async def set_working_days(
        self,
        employee_id: uuid.UUID,
        values: Any,
        *,
        actor_email: str,
    ) -> list[int]:
        """Replace the employee's working-day pattern."""
        days = normalize_weekdays(values)
        if not days:
            raise ValidationException(
                "invalid_working_days",
                {"working_days": ["At least one weekday between 1 and 7 is required."]},
            )

        row = await self.db.get(WorkingDaySet, employee_id)
        if row is None:
            row = WorkingDaySet(employee_id=employee_id, working_days=days)
            self.db.add(row)
        else:
            row.working_days = days
            row.updated_at = datetime.now(timezone.utc)
        row.updated_by = actor_email
        await self.db.flush()

        self.cache[("working_days", str(employee_id))] = tuple(days)
        logger.info(
            "Working days for employee %s set to %s by %s",
            employee_id, days, actor_email,
        )
        return days

    async def list_users(
        self,
        *,
        department_id: Optional[uuid.UUID] = None,
        employee_id: Optional[uuid.UUID] = None,
    ) -> list[UserOut]:
        entries = await self.list_employees(
            department_id=department_id, employee_id=employee_id,
        )
        return [
            UserOut(
                **entry.model_dump(),
                working_days=await self.working_days_for(entry.id),
            )
            for entry in entries
        ]

    # ─────────────────────────────────────────────────────────────────
    # Departments
    # ─────────────────────────────────────────────────────────────────

    async def list_departments(self) -> list[Department]:
        result = await self.db.execute(select(Department).order_by(Department.name))
        return list(result.scalars().all())

    async def create_department(
        self,
        name: Optional[str],
        manager_id: Optional[uuid.UUID] = None,
    ) -> Department:
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValidationException(
                "missing_name", {"name": ["Department name is required."]},
            )

        department = Department(name=cleaned, manager_id=manager_id)
        self.db.add(department)
        await self.db.flush()
        logger.info("Department %s created (%s)", department.id, cleaned)
        return department
