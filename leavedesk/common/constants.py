"""Enums and constants for LeaveDesk."""

from __future__ import annotations

import enum


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    employee = "employee"
    manager = "manager"
    chief = "chief"
    system_admin = "system_admin"


# Roles a manager may not approve for (peers and superiors)
MANAGER_OR_ABOVE: frozenset[UserRole] = frozenset(
    {UserRole.manager, UserRole.chief, UserRole.system_admin}
)


# ── Leave ───────────────────────────────────────────────────────────

class LeaveStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


ACTIVE_STATUSES: tuple[LeaveStatus, ...] = (LeaveStatus.pending, LeaveStatus.approved)


class LeaveKind(str, enum.Enum):
    vacation = "vacation"


# ── Role-based permissions ──────────────────────────────────────────

PERMISSIONS: dict[UserRole, list[str]] = {
    UserRole.employee: [
        "leave:request",
    ],
    UserRole.manager: [
        "leave:request",
        "leave:read_department",
        "leave:approve",
        "balance:read_department",
        "balance:adjust_department",
        "working_days:configure_department",
    ],
    UserRole.chief: [
        "leave:request",
        "leave:read_all",
        "leave:approve",
        "balance:read_all",
        "balance:adjust",
        "holiday:configure",
        "working_days:configure",
        "department:configure",
    ],
    UserRole.system_admin: [
        "leave:request",
        "leave:read_all",
        "balance:read_all",
        "balance:adjust",
        "holiday:configure",
        "working_days:configure",
        "department:configure",
    ],
}

# ── Misc constants ──────────────────────────────────────────────────

DEFAULT_WORKING_DAYS: tuple[int, ...] = (1, 2, 3, 4, 5)   # ISO: Mon–Fri
