"""Balance ledger — the only writer of leave balances and their adjustments.

Every state this module returns or persists satisfies::

    available == assigned_annual + carried_over + extra - consumed
"""

from __future__ import annotations

import logging
import math
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.common.exceptions import InvalidArgumentException
from leavedesk.config import settings
from leavedesk.leave.models import BalanceAdjustment, LeaveBalance

logger = logging.getLogger(__name__)

# Upper bound of the Integer balance columns
MAX_DAYS = 2**31 - 1


def _recompute(balance: LeaveBalance) -> None:
    balance.available = (
        balance.assigned_annual
        + balance.carried_over
        + balance.extra
        - balance.consumed
    )
    balance.updated_at = datetime.now(timezone.utc)


def _as_finite(field: str, value: Any) -> float:
    if isinstance(value, bool):
        number = math.nan
    else:
        try:
            number = float(value)
        except (TypeError, ValueError):
            number = math.nan
    if not math.isfinite(number):
        raise InvalidArgumentException(
            "invalid_argument", {field: ["Must be a finite number."]},
        )
    return number


def _in_range(field: str, value: int, low: int = 0) -> int:
    if not low <= value <= MAX_DAYS:
        raise InvalidArgumentException(
            "invalid_argument", {field: [f"Must be between {low} and {MAX_DAYS}."]},
        )
    return value


def _override(field: str, value: Any) -> Optional[int]:
    """Validate an absolute override: finite, non-negative, rounded to int."""
    if value is None:
        return None
    return _in_range(field, int(round(_as_finite(field, value))))


def balance_query(employee_id: uuid.UUID, *, lock: bool = False):
    """Select one balance row; with *lock* only leave_balances is locked."""
    query = select(LeaveBalance).where(LeaveBalance.employee_id == employee_id)
    if lock:
        query = query.with_for_update(of=LeaveBalance).execution_options(
            populate_existing=True,
        )
    return query


class BalanceLedger:
    """Async balance primitives; all validation happens before any write."""

    @staticmethod
    async def get_or_init(
        db: AsyncSession,
        employee_id: uuid.UUID,
        *,
        lock: bool = False,
    ) -> LeaveBalance:
        """Return the employee's balance, creating it with the defaults if absent.

        Creation is an insert-if-absent, so two concurrent first readers end up
        with the same row. With ``lock=True`` the row is selected ``FOR UPDATE``
        and stays locked until the surrounding transaction ends.
        """
        query = balance_query(employee_id, lock=lock)

        balance = (await db.execute(query)).scalars().first()
        if balance is not None:
            return balance

        default = settings.DEFAULT_ANNUAL_DAYS
        dialect = db.get_bind().dialect.name
        insert = pg_insert if dialect == "postgresql" else sqlite_insert
        await db.execute(
            insert(LeaveBalance)
            .values(
                employee_id=employee_id,
                assigned_annual=default,
                carried_over=0,
                extra=0,
                consumed=0,
                available=default,
                updated_at=datetime.now(timezone.utc),
            )
            .on_conflict_do_nothing(index_elements=["employee_id"])
        )
        logger.debug("Initialised balance for employee %s", employee_id)

        result = await db.execute(query.execution_options(populate_existing=True))
        return result.scalars().one()

    @staticmethod
    async def apply_consumption(
        db: AsyncSession,
        employee_id: uuid.UUID,
        delta_days: int,
    ) -> LeaveBalance:
        """Add *delta_days* (negative to reverse) to consumed, floored at 0."""
        balance = await BalanceLedger.get_or_init(db, employee_id, lock=True)
        before = balance.consumed
        balance.consumed = max(0, balance.consumed + int(delta_days))
        _recompute(balance)
        await db.flush()

        logger.info(
            "Consumption for employee %s: %+d (consumed %d -> %d, available %d)",
            employee_id, delta_days, before, balance.consumed, balance.available,
        )
        return balance

    @staticmethod
    async def apply_manual_adjustment(
        db: AsyncSession,
        employee_id: uuid.UUID,
        *,
        actor_email: str,
        assigned_annual: Any = None,
        carried_over: Any = None,
        delta_extra: Any = None,
        comment: Optional[str] = None,
    ) -> LeaveBalance:
        """Override assigned/carried-over days and move ``extra`` by a delta.

        A non-zero delta needs a comment. An adjustment record is appended when
        the delta is non-zero or a comment was given.
        """
        new_assigned = _override("assigned_annual", assigned_annual)
        new_carried = _override("carried_over", carried_over)
        delta = 0
        if delta_extra is not None:
            delta = _in_range(
                "delta_extra", int(round(_as_finite("delta_extra", delta_extra))), -MAX_DAYS,
            )
        note = (comment or "").strip()
        if delta != 0 and not note:
            raise InvalidArgumentException(
                "missing_comment",
                {"comment": ["A comment is required when changing extra days."]},
            )

        balance = await BalanceLedger.get_or_init(db, employee_id, lock=True)
        assigned = balance.assigned_annual if new_assigned is None else new_assigned
        carried = balance.carried_over if new_carried is None else new_carried
        extra = _in_range("delta_extra", max(0, balance.extra + delta))
        _in_range("available", assigned + carried + extra - balance.consumed, -MAX_DAYS)

        balance.assigned_annual = assigned
        balance.carried_over = carried
        balance.extra = extra
        _recompute(balance)

        if delta != 0 or note:
            adjustment = BalanceAdjustment(
                employee_id=employee_id,
                delta_extra=delta,
                comment=note or None,
                assigned_annual=balance.assigned_annual,
                carried_over=balance.carried_over,
                created_by=actor_email,
            )
            db.add(adjustment)
            balance.last_adjustment = adjustment

        await db.flush()
        logger.info(
            "Balance of employee %s adjusted by %s: assigned=%d carried=%d "
            "extra=%d (%+d) available=%d",
            employee_id, actor_email, balance.assigned_annual,
            balance.carried_over, balance.extra, delta, balance.available,
        )
        return balance

    @staticmethod
    async def list_adjustments(
        db: AsyncSession,
        employee_id: uuid.UUID,
        *,
        limit: int = 100,
    ) -> list[BalanceAdjustment]:
        """Adjustment history of one employee, newest first."""
        result = await db.execute(
            select(BalanceAdjustment)
            .where(BalanceAdjustment.employee_id == employee_id)
            .order_by(BalanceAdjustment.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
