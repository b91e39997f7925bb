"""Leave service layer — request lifecycle, balances and the team calendar.

Business logic:
  - Submit / edit / approve / reject with overlap protection
  - Consumable-day counting on approval, reversal when an approved request is edited
  - Scoped listings (own, department, organisation) with on-read estimates
  - Balance reads and manual adjustments through the ledger

Every mutating operation checks all of its preconditions before writing and
runs inside the caller's transaction, so a failure leaves no partial state.
Operations that touch an employee's requests or balance first lock that
employee's balance row, which serializes them per employee.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.common.constants import ACTIVE_STATUSES, LeaveStatus
from leavedesk.common.dates import parse_date_key, years_spanned
from leavedesk.common.exceptions import (
    ConflictError,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from leavedesk.config import settings
from leavedesk.directory.schemas import DirectoryEntry
from leavedesk.directory.service import Directory
from leavedesk.holidays.service import HolidayService
from leavedesk.leave import authority
from leavedesk.leave.calendar import CalendarResolver, count_consumable_days
from leavedesk.leave.ledger import BalanceLedger
from leavedesk.leave.models import LeaveRequest
from leavedesk.leave.overlap import has_overlap
from leavedesk.leave.schemas import (
    ApproveResult,
    BalanceAdjustmentOut,
    BalanceAdjustRequest,
    BalanceOut,
    CalendarEntry,
    LeaveRequestCreate,
    LeaveRequestOut,
    LeaveRequestUpdate,
    RequesterSnapshot,
)

logger = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════
# LeaveService
# ═════════════════════════════════════════════════════════════════════


class LeaveService:
    """Async leave operations: lifecycle, listings, balances."""

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _parse_range(start_raw: object, end_raw: object) -> tuple[date, date]:
        start = parse_date_key(start_raw)
        end = parse_date_key(end_raw)
        if start is None or end is None:
            errors: dict[str, list[str]] = {}
            if start is None:
                errors["start_date"] = ["Expected a valid YYYY-MM-DD date."]
            if end is None:
                errors["end_date"] = ["Expected a valid YYYY-MM-DD date."]
            raise ValidationException("invalid_dates", errors)
        if start > end:
            raise ValidationException(
                "invalid_range",
                {"end_date": ["End date must be on or after the start date."]},
            )
        return start, end

    @staticmethod
    def _snapshot(leave_request: LeaveRequest) -> RequesterSnapshot:
        return RequesterSnapshot(
            employee_id=leave_request.employee_id,
            email=leave_request.employee_email,
            display_name=leave_request.employee_name,
            role=leave_request.employee_role,
            department_id=leave_request.department_id,
        )

    @staticmethod
    async def _requester_for_authority(
        leave_request: LeaveRequest,
        directory: Directory,
    ) -> RequesterSnapshot:
        """The stored snapshot, with the role looked up by email when it is missing."""
        snapshot = LeaveService._snapshot(leave_request)
        if snapshot.role is not None:
            return snapshot
        entry = await directory.get_by_email(snapshot.email)
        if entry is None:
            return snapshot
        return snapshot.model_copy(update={"role": entry.role})

    @staticmethod
    async def _load(
        db: AsyncSession,
        request_id: uuid.UUID,
        *,
        refresh: bool = False,
    ) -> LeaveRequest:
        query = select(LeaveRequest).where(LeaveRequest.id == request_id)
        if refresh:
            query = query.execution_options(populate_existing=True)
        leave_request = (await db.execute(query)).scalars().first()
        if leave_request is None:
            raise NotFoundException("LeaveRequest", request_id)
        return leave_request

    @staticmethod
    def to_out(
        leave_request: LeaveRequest,
        estimated_days: Optional[int] = None,
    ) -> LeaveRequestOut:
        out = LeaveRequestOut.model_validate(leave_request)
        out.estimated_days = estimated_days
        return out

    @staticmethod
    async def _with_estimates(
        db: AsyncSession,
        requests: Sequence[LeaveRequest],
        directory: Directory,
    ) -> list[LeaveRequestOut]:
        """Serialize *requests*, attaching an estimate to the pending ones.

        Holidays are loaded once for every year any pending request spans.
        """
        pending = [r for r in requests if r.status == LeaveStatus.pending]
        years: set[int] = set()
        for item in pending:
            if item.start_date <= item.end_date:
                years.update(years_spanned(item.start_date, item.end_date))
        holidays = await HolidayService.dates_for_years(db, years) if years else set()

        items: list[LeaveRequestOut] = []
        for item in requests:
            estimate = None
            if item.status == LeaveStatus.pending:
                working_days = await directory.working_days_for(item.employee_id)
                estimate = count_consumable_days(
                    item.start_date, item.end_date, working_days, holidays,
                )
            items.append(LeaveService.to_out(item, estimate))
        return items

    @staticmethod
    def _scoped(query, actor: DirectoryEntry):
        """Narrow a LeaveRequest query to what *actor* may see."""
        scope = authority.read_scope(actor)
        if scope == "own":
            return query.where(LeaveRequest.employee_id == actor.id)
        if scope == "department":
            if actor.department_id is None:
                return query.where(LeaveRequest.employee_id == actor.id)
            return query.where(
                or_(
                    LeaveRequest.department_id == actor.department_id,
                    LeaveRequest.employee_id == actor.id,
                )
            )
        return query

    # ─────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def submit(
        db: AsyncSession,
        actor: DirectoryEntry,
        body: LeaveRequestCreate,
    ) -> LeaveRequest:
        """Create a pending request for the caller."""
        if not authority.can_submit(actor):
            raise ForbiddenException(detail="Your role cannot submit leave requests.")

        start, end = LeaveService._parse_range(body.start_date, body.end_date)

        await BalanceLedger.get_or_init(db, actor.id, lock=True)
        if await has_overlap(db, actor.id, start, end):
            raise ConflictError(
                "overlap",
                "The dates overlap another pending or approved request.",
            )

        note = (body.note or "").strip() or None
        leave_request = LeaveRequest(
            employee_id=actor.id,
            employee_email=actor.email,
            employee_name=actor.display_name,
            employee_role=actor.role,
            department_id=actor.department_id,
            start_date=start,
            end_date=end,
            status=LeaveStatus.pending,
            note=note,
            consumed_days=0,
        )
        db.add(leave_request)
        await db.flush()

        logger.info(
            "Leave request %s submitted by %s for %s..%s",
            leave_request.id, actor.email, start, end,
        )
        return leave_request

    @staticmethod
    async def edit(
        db: AsyncSession,
        actor: DirectoryEntry,
        request_id: uuid.UUID,
        body: LeaveRequestUpdate,
    ) -> LeaveRequest:
        """Change the dates or note of a request; it always returns to pending.

        An approved request first gives its consumed days back to the balance,
        so the next approval counts from scratch.
        """
        leave_request = await LeaveService._load(db, request_id)
        if not authority.can_edit(actor, LeaveService._snapshot(leave_request)):
            raise ForbiddenException(detail="You can only edit your own requests.")

        await BalanceLedger.get_or_init(db, leave_request.employee_id, lock=True)
        leave_request = await LeaveService._load(db, request_id, refresh=True)

        if leave_request.status == LeaveStatus.rejected:
            raise ConflictError(
                "invalid_state", "A rejected request can no longer be edited.",
            )

        start_raw = (body.start_date or "").strip() or leave_request.start_date
        end_raw = (body.end_date or "").strip() or leave_request.end_date
        start, end = LeaveService._parse_range(start_raw, end_raw)

        if await has_overlap(
            db, leave_request.employee_id, start, end,
            exclude_request_id=leave_request.id,
        ):
            raise ConflictError(
                "overlap",
                "The dates overlap another pending or approved request.",
            )

        previous_status = leave_request.status
        if previous_status == LeaveStatus.approved:
            await BalanceLedger.apply_consumption(
                db, leave_request.employee_id, -leave_request.consumed_days,
            )
            leave_request.approver_email = None
            leave_request.approved_at = None
            leave_request.consumed_days = 0

        leave_request.status = LeaveStatus.pending
        leave_request.start_date = start
        leave_request.end_date = end
        note = (body.note or "").strip()
        if note:
            leave_request.note = note
        await db.flush()

        logger.info(
            "Leave request %s edited by %s: %s..%s (was %s)",
            leave_request.id, actor.email, start, end, previous_status.value,
        )
        return leave_request

    @staticmethod
    async def approve(
        db: AsyncSession,
        actor: DirectoryEntry,
        request_id: uuid.UUID,
        directory: Directory,
    ) -> ApproveResult:
        """Approve a pending request and charge its consumable days to the balance."""
        leave_request = await LeaveService._load(db, request_id)
        requester = await LeaveService._requester_for_authority(leave_request, directory)
        if not authority.can_approve(actor, requester):
            raise ForbiddenException(detail="You cannot decide on this request.")

        await BalanceLedger.get_or_init(db, leave_request.employee_id, lock=True)
        leave_request = await LeaveService._load(db, request_id, refresh=True)

        if leave_request.status != LeaveStatus.pending:
            raise ConflictError(
                "invalid_state",
                f"Only pending requests can be approved (status is {leave_request.status.value}).",
            )
        start = parse_date_key(leave_request.start_date)
        end = parse_date_key(leave_request.end_date)
        if start is None or end is None or start > end:
            raise ValidationException(
                "invalid_dates", {"dates": ["The stored date range is not valid."]},
            )
        if await has_overlap(
            db, leave_request.employee_id, start, end,
            exclude_request_id=leave_request.id,
        ):
            raise ConflictError(
                "overlap",
                "Another active request of this employee overlaps these dates.",
            )

        consumed = await CalendarResolver.count_consumable_days(
            db, start, end, leave_request.employee_id, directory,
        )
        await BalanceLedger.apply_consumption(db, leave_request.employee_id, consumed)

        leave_request.status = LeaveStatus.approved
        leave_request.approver_email = actor.email
        leave_request.approved_at = datetime.now(timezone.utc)
        leave_request.consumed_days = consumed
        await db.flush()

        logger.info(
            "Leave request %s approved by %s: %d days",
            leave_request.id, actor.email, consumed,
        )
        return ApproveResult(id=leave_request.id, consumed_days=consumed)

    @staticmethod
    async def reject(
        db: AsyncSession,
        actor: DirectoryEntry,
        request_id: uuid.UUID,
        directory: Directory,
    ) -> LeaveRequest:
        """Reject a pending request. The balance is not touched."""
        leave_request = await LeaveService._load(db, request_id)
        requester = await LeaveService._requester_for_authority(leave_request, directory)
        if not authority.can_approve(actor, requester):
            raise ForbiddenException(detail="You cannot decide on this request.")

        await BalanceLedger.get_or_init(db, leave_request.employee_id, lock=True)
        leave_request = await LeaveService._load(db, request_id, refresh=True)

        if leave_request.status != LeaveStatus.pending:
            raise ConflictError(
                "invalid_state",
                f"Only pending requests can be rejected (status is {leave_request.status.value}).",
            )

        leave_request.status = LeaveStatus.rejected
        leave_request.approver_email = actor.email
        leave_request.approved_at = datetime.now(timezone.utc)
        await db.flush()

        logger.info("Leave request %s rejected by %s", leave_request.id, actor.email)
        return leave_request

    # ─────────────────────────────────────────────────────────────────
    # Reads
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_request(
        db: AsyncSession,
        actor: DirectoryEntry,
        request_id: uuid.UUID,
        directory: Directory,
    ) -> LeaveRequestOut:
        leave_request = await LeaveService._load(db, request_id)
        if not authority.can_view_request(actor, LeaveService._snapshot(leave_request)):
            raise ForbiddenException()
        items = await LeaveService._with_estimates(db, [leave_request], directory)
        return items[0]

    @staticmethod
    async def compute_estimate(
        db: AsyncSession,
        actor: DirectoryEntry,
        request_id: uuid.UUID,
        directory: Directory,
    ) -> int:
        """Consumable days the request would charge if approved now; never stored."""
        leave_request = await LeaveService._load(db, request_id)
        if not authority.can_view_request(actor, LeaveService._snapshot(leave_request)):
            raise ForbiddenException()
        return await CalendarResolver.count_consumable_days(
            db,
            leave_request.start_date,
            leave_request.end_date,
            leave_request.employee_id,
            directory,
        )

    @staticmethod
    async def list_requests(
        db: AsyncSession,
        actor: DirectoryEntry,
        directory: Directory,
        *,
        employee_id: Optional[uuid.UUID] = None,
        department_id: Optional[uuid.UUID] = None,
        status: Optional[LeaveStatus] = None,
    ) -> list[LeaveRequestOut]:
        """Newest-first requests visible to *actor*.

        Employee and department filters only apply to organisation-wide
        roles; narrower roles always see their fixed scope.
        """
        query = LeaveService._scoped(select(LeaveRequest), actor)
        if authority.read_scope(actor) == "all":
            if employee_id is not None:
                query = query.where(LeaveRequest.employee_id == employee_id)
            elif department_id is not None:
                query = query.where(LeaveRequest.department_id == department_id)
        if status is not None:
            query = query.where(LeaveRequest.status == status)

        query = query.order_by(LeaveRequest.created_at.desc()).limit(
            settings.REQUEST_LIST_LIMIT
        )
        result = await db.execute(query)
        return await LeaveService._with_estimates(db, result.scalars().all(), directory)

    @staticmethod
    async def leave_calendar(
        db: AsyncSession,
        actor: DirectoryEntry,
        directory: Directory,
        *,
        start_raw: Optional[str],
        end_raw: Optional[str],
        department_ids: Optional[Sequence[uuid.UUID]] = None,
        include_pending: bool = False,
    ) -> list[CalendarEntry]:
        """Approved (optionally also pending) absences intersecting a window."""
        start, end = LeaveService._parse_range(start_raw, end_raw)
        statuses = ACTIVE_STATUSES if include_pending else (LeaveStatus.approved,)

        query = LeaveService._scoped(select(LeaveRequest), actor).where(
            LeaveRequest.status.in_(statuses),
            LeaveRequest.start_date <= end,
            LeaveRequest.end_date >= start,
        )
        wanted = list(dict.fromkeys(department_ids or []))
        if wanted and authority.read_scope(actor) == "all":
            if len(wanted) > settings.CALENDAR_MAX_DEPARTMENTS:
                raise ValidationException(
                    "too_many_departments",
                    {
                        "department_ids": [
                            f"At most {settings.CALENDAR_MAX_DEPARTMENTS} departments per query."
                        ]
                    },
                )
            query = query.where(LeaveRequest.department_id.in_(wanted))

        result = await db.execute(query.order_by(LeaveRequest.start_date))
        return [
            CalendarEntry(
                id=item.id,
                employee_id=item.employee_id,
                employee_email=item.employee_email,
                employee_name=item.employee_name,
                department_id=item.department_id,
                start_date=item.start_date,
                end_date=item.end_date,
                status=item.status,
                working_days=await directory.working_days_for(item.employee_id),
            )
            for item in result.scalars().all()
        ]

    # ─────────────────────────────────────────────────────────────────
    # Balances
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def _viewable_target(
        actor: DirectoryEntry,
        employee_id: uuid.UUID,
        directory: Directory,
    ) -> DirectoryEntry:
        target = await directory.require(employee_id)
        if not authority.can_view_employee(actor, target):
            raise ForbiddenException(detail="You cannot view this employee's balance.")
        return target

    @staticmethod
    async def list_balances(
        db: AsyncSession,
        actor: DirectoryEntry,
        directory: Directory,
    ) -> list[BalanceOut]:
        scope = authority.read_scope(actor)
        if scope == "all":
            employees = await directory.list_employees()
        elif scope == "department" and actor.department_id is not None:
            employees = await directory.list_employees(department_id=actor.department_id)
        else:
            employees = [actor]

        return [
            BalanceOut.model_validate(await BalanceLedger.get_or_init(db, emp.id))
            for emp in employees
        ]

    @staticmethod
    async def get_balance(
        db: AsyncSession,
        actor: DirectoryEntry,
        employee_id: uuid.UUID,
        directory: Directory,
    ) -> BalanceOut:
        target = await LeaveService._viewable_target(actor, employee_id, directory)
        return BalanceOut.model_validate(await BalanceLedger.get_or_init(db, target.id))

    @staticmethod
    async def list_adjustments(
        db: AsyncSession,
        actor: DirectoryEntry,
        employee_id: uuid.UUID,
        directory: Directory,
    ) -> list[BalanceAdjustmentOut]:
        target = await LeaveService._viewable_target(actor, employee_id, directory)
        rows = await BalanceLedger.list_adjustments(db, target.id)
        return [BalanceAdjustmentOut.model_validate(row) for row in rows]

    @staticmethod
    async def adjust_balance(
        db: AsyncSession,
        actor: DirectoryEntry,
        employee_id: uuid.UUID,
        body: BalanceAdjustRequest,
        directory: Directory,
    ) -> BalanceOut:
        """Manual adjustment by an administrator, chief, or the employee's manager."""
        target = await directory.require(employee_id)
        if not authority.can_adjust_balance(actor, target):
            raise ForbiddenException(detail="You cannot adjust this employee's balance.")

        balance = await BalanceLedger.apply_manual_adjustment(
            db,
            target.id,
            actor_email=actor.email,
            assigned_annual=body.assigned_annual,
            carried_over=body.carried_over,
            delta_extra=body.delta_extra,
            comment=body.comment,
        )
        return BalanceOut.model_validate(balance)
