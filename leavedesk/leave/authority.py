"""Approval authority and the other role policies of the leave module.

Everything here is pure: decisions depend only on the arguments. Callers
resolve whatever directory data a rule needs before asking.
"""

from __future__ import annotations

from typing import Optional

from leavedesk.common.constants import MANAGER_OR_ABOVE, PERMISSIONS, UserRole
from leavedesk.directory.schemas import DirectoryEntry
from leavedesk.leave.schemas import RequesterSnapshot


def has_permission(role: UserRole, permission: str) -> bool:
    return permission in PERMISSIONS.get(role, [])


def can_approve(actor: DirectoryEntry, requester: RequesterSnapshot) -> bool:
    """Decide whether *actor* may approve or reject a request.

    *requester* is the snapshot captured when the request was submitted;
    a later role or department change of the employee does not affect it.
    """
    # Segregation of duties: administrators hold no leave:approve.
    if not has_permission(actor.role, "leave:approve"):
        return False
    if actor.role == UserRole.manager:
        if requester.employee_id == actor.id:
            return False
        if requester.role in MANAGER_OR_ABOVE:
            return False
        return (
            requester.department_id is not None
            and actor.department_id is not None
            and requester.department_id == actor.department_id
        )
    return True


def can_submit(actor: DirectoryEntry) -> bool:
    return has_permission(actor.role, "leave:request")


def can_edit(actor: DirectoryEntry, requester: RequesterSnapshot) -> bool:
    """Base employees edit only their own requests; elevated roles edit any."""
    if actor.role == UserRole.employee:
        return requester.employee_id == actor.id
    return True


def _within_department(actor: DirectoryEntry, target: Optional[DirectoryEntry]) -> bool:
    return (
        target is not None
        and actor.department_id is not None
        and target.department_id == actor.department_id
    )


def can_adjust_balance(actor: DirectoryEntry, target: Optional[DirectoryEntry]) -> bool:
    if has_permission(actor.role, "balance:adjust"):
        return True
    if has_permission(actor.role, "balance:adjust_department"):
        return _within_department(actor, target)
    return False


def can_manage_working_days(
    actor: DirectoryEntry, target: Optional[DirectoryEntry],
) -> bool:
    if has_permission(actor.role, "working_days:configure"):
        return True
    if has_permission(actor.role, "working_days:configure_department"):
        return _within_department(actor, target)
    return False


def can_view_employee(actor: DirectoryEntry, target: Optional[DirectoryEntry]) -> bool:
    """Whether *actor* may read balances and adjustments of *target*."""
    if target is not None and target.id == actor.id:
        return True
    if has_permission(actor.role, "balance:read_all"):
        return True
    if has_permission(actor.role, "balance:read_department"):
        return _within_department(actor, target)
    return False


def read_scope(actor: DirectoryEntry) -> str:
    """Visibility over leave data: ``all``, ``department`` or ``own``."""
    if has_permission(actor.role, "leave:read_all"):
        return "all"
    if has_permission(actor.role, "leave:read_department"):
        return "department"
    return "own"


def can_view_request(actor: DirectoryEntry, requester: RequesterSnapshot) -> bool:
    if requester.employee_id == actor.id:
        return True
    scope = read_scope(actor)
    if scope == "all":
        return True
    if scope == "department":
        return (
            actor.department_id is not None
            and requester.department_id == actor.department_id
        )
    return False
