"""Directory router — users, working-day patterns and departments."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends

from leavedesk.auth.dependencies import get_current_user, get_directory, require_permission
from leavedesk.common.exceptions import ForbiddenException
from leavedesk.directory.schemas import (
    DepartmentCreate,
    DepartmentOut,
    DirectoryEntry,
    UserOut,
    WorkingDaysOut,
    WorkingDaysUpdate,
)
from leavedesk.directory.service import Directory
from leavedesk.leave import authority

router = APIRouter(prefix="", tags=["directory"])


# ── GET /users ──────────────────────────────────────────────────────

@router.get("/users", response_model=list[UserOut])
async def list_users(
    user: DirectoryEntry = Depends(get_current_user),
    directory: Directory = Depends(get_directory),
):
    """Active users the caller may see, with their working days."""
    scope = authority.read_scope(user)
    if scope == "all":
        return await directory.list_users()
    if scope == "department" and user.department_id is not None:
        return await directory.list_users(department_id=user.department_id)
    return await directory.list_users(employee_id=user.id)


# ── GET /users/{id}/working-days ────────────────────────────────────

@router.get("/users/{employee_id}/working-days", response_model=WorkingDaysOut)
async def get_working_days(
    employee_id: uuid.UUID,
    user: DirectoryEntry = Depends(get_current_user),
    directory: Directory = Depends(get_directory),
):
    target = await directory.require(employee_id)
    if not authority.can_view_employee(user, target):
        raise ForbiddenException()
    days = await directory.working_days_for(target.id)
    return WorkingDaysOut(employee_id=target.id, working_days=days)


# ── PUT /users/{id}/working-days ────────────────────────────────────

@router.put("/users/{employee_id}/working-days", response_model=WorkingDaysOut)
async def set_working_days(
    employee_id: uuid.UUID,
    body: WorkingDaysUpdate,
    user: DirectoryEntry = Depends(get_current_user),
    directory: Directory = Depends(get_directory),
):
    """Replace the employee's ISO weekday pattern (1=Monday … 7=Sunday)."""
    target = await directory.require(employee_id)
    if not authority.can_manage_working_days(user, target):
        raise ForbiddenException(detail="You cannot change this employee's working days.")
    days = await directory.set_working_days(
        target.id, body.working_days, actor_email=user.email,
    )
    return WorkingDaysOut(employee_id=target.id, working_days=days)


# ── GET /departments ────────────────────────────────────────────────

@router.get("/departments", response_model=list[DepartmentOut])
async def list_departments(
    _user: DirectoryEntry = Depends(get_current_user),
    directory: Directory = Depends(get_directory),
):
    return await directory.list_departments()


# ── POST /departments ───────────────────────────────────────────────

@router.post("/departments", response_model=DepartmentOut, status_code=201)
async def create_department(
    body: DepartmentCreate,
    _user: DirectoryEntry = Depends(require_permission("department:configure")),
    directory: Directory = Depends(get_directory),
):
    return await directory.create_department(body.name, body.manager_id)
