"""Leave router — requests, approvals, balances and the team calendar.

All endpoints require authentication. Scope and authority are enforced by
the service layer against the caller's directory entry.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.auth.dependencies import get_current_user, get_directory
from leavedesk.common.constants import LeaveStatus
from leavedesk.database import get_db
from leavedesk.directory.schemas import DirectoryEntry
from leavedesk.directory.service import Directory
from leavedesk.leave.schemas import (
    ApproveResult,
    BalanceAdjustmentOut,
    BalanceAdjustRequest,
    BalanceOut,
    CalendarEntry,
    EstimateOut,
    LeaveRequestCreate,
    LeaveRequestOut,
    LeaveRequestUpdate,
)
from leavedesk.leave.service import LeaveService

router = APIRouter(prefix="", tags=["leave"])


# ── GET /requests ───────────────────────────────────────────────────

@router.get("/requests", response_model=list[LeaveRequestOut])
async def list_requests(
    employee_id: Optional[uuid.UUID] = Query(None),
    department_id: Optional[uuid.UUID] = Query(None),
    status: Optional[LeaveStatus] = Query(None),
    user: DirectoryEntry = Depends(get_current_user),
    directory: Directory = Depends(get_directory),
    db: AsyncSession = Depends(get_db),
):
    """Requests visible to the caller, newest first; pending ones carry an estimate."""
    return await LeaveService.list_requests(
        db,
        user,
        directory,
        employee_id=employee_id,
        department_id=department_id,
        status=status,
    )


# ── POST /requests ──────────────────────────────────────────────────

@router.post("/requests", response_model=LeaveRequestOut, status_code=201)
async def submit_request(
    body: LeaveRequestCreate,
    user: DirectoryEntry = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Submit a leave request for the caller."""
    leave_request = await LeaveService.submit(db, user, body)
    return LeaveService.to_out(leave_request)


# ── GET /requests/{id} ──────────────────────────────────────────────

@router.get("/requests/{request_id}", response_model=LeaveRequestOut)
async def get_request(
    request_id: uuid.UUID,
    user: DirectoryEntry = Depends(get_current_user),
    directory: Directory = Depends(get_directory),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.get_request(db, user, request_id, directory)


# ── PATCH /requests/{id} ────────────────────────────────────────────

@router.patch("/requests/{request_id}", response_model=LeaveRequestOut)
async def edit_request(
    request_id: uuid.UUID,
    body: LeaveRequestUpdate,
    user: DirectoryEntry = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Edit dates or note. Approved requests go back to pending."""
    leave_request = await LeaveService.edit(db, user, request_id, body)
    return LeaveService.to_out(leave_request)


# ── GET /requests/{id}/estimate ─────────────────────────────────────

@router.get("/requests/{request_id}/estimate", response_model=EstimateOut)
async def estimate_request(
    request_id: uuid.UUID,
    user: DirectoryEntry = Depends(get_current_user),
    directory: Directory = Depends(get_directory),
    db: AsyncSession = Depends(get_db),
):
    days = await LeaveService.compute_estimate(db, user, request_id, directory)
    return EstimateOut(id=request_id, estimated_days=days)


# ── POST /requests/{id}/approve ─────────────────────────────────────

@router.post("/requests/{request_id}/approve", response_model=ApproveResult)
async def approve_request(
    request_id: uuid.UUID,
    user: DirectoryEntry = Depends(get_current_user),
    directory: Directory = Depends(get_directory),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.approve(db, user, request_id, directory)


# ── POST /requests/{id}/reject ──────────────────────────────────────

@router.post("/requests/{request_id}/reject", response_model=LeaveRequestOut)
async def reject_request(
    request_id: uuid.UUID,
    user: DirectoryEntry = Depends(get_current_user),
    directory: Directory = Depends(get_directory),
    db: AsyncSession = Depends(get_db),
):
    leave_request = await LeaveService.reject(db, user, request_id, directory)
    return LeaveService.to_out(leave_request)


# ── GET /calendar ───────────────────────────────────────────────────

@router.get("/calendar", response_model=list[CalendarEntry])
async def leave_calendar(
    start: Optional[str] = Query(None, description="YYYY-MM-DD"),
    end: Optional[str] = Query(None, description="YYYY-MM-DD"),
    department_ids: Optional[list[uuid.UUID]] = Query(None),
    include_pending: bool = Query(False),
    user: DirectoryEntry = Depends(get_current_user),
    directory: Directory = Depends(get_directory),
    db: AsyncSession = Depends(get_db),
):
    """Absences intersecting [start, end], each with the employee's working days."""
    return await LeaveService.leave_calendar(
        db,
        user,
        directory,
        start_raw=start,
        end_raw=end,
        department_ids=department_ids,
        include_pending=include_pending,
    )


# ── GET /balances ───────────────────────────────────────────────────

@router.get("/balances", response_model=list[BalanceOut])
async def list_balances(
    user: DirectoryEntry = Depends(get_current_user),
    directory: Directory = Depends(get_directory),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.list_balances(db, user, directory)


# ── GET /balances/{employee_id} ─────────────────────────────────────

@router.get("/balances/{employee_id}", response_model=BalanceOut)
async def get_balance(
    employee_id: uuid.UUID,
    user: DirectoryEntry = Depends(get_current_user),
    directory: Directory = Depends(get_directory),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.get_balance(db, user, employee_id, directory)


# ── POST /balances/{employee_id}/adjust ─────────────────────────────

@router.post("/balances/{employee_id}/adjust", response_model=BalanceOut)
async def adjust_balance(
    employee_id: uuid.UUID,
    body: BalanceAdjustRequest,
    user: DirectoryEntry = Depends(get_current_user),
    directory: Directory = Depends(get_directory),
    db: AsyncSession = Depends(get_db),
):
    """Override assigned/carried-over days or move extra days (comment required)."""
    return await LeaveService.adjust_balance(db, user, employee_id, body, directory)


# ── GET /balances/{employee_id}/adjustments ─────────────────────────

@router.get(
    "/balances/{employee_id}/adjustments",
    response_model=list[BalanceAdjustmentOut],
)
async def list_adjustments(
    employee_id: uuid.UUID,
    user: DirectoryEntry = Depends(get_current_user),
    directory: Directory = Depends(get_directory),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.list_adjustments(db, user, employee_id, directory)
