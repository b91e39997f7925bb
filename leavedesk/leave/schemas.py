"""Leave Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Update / *Request  → request bodies (write)
  - *Out                          → response bodies (read)
  - *Snapshot                     → identity data frozen on a stored row

Date fields on write payloads are plain strings: they are parsed by the
lifecycle so that a malformed date surfaces as ``invalid_dates`` rather
than as a generic body validation error.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from leavedesk.common.constants import LeaveKind, LeaveStatus, UserRole


# ═════════════════════════════════════════════════════════════════════
# Embedded / shared
# ═════════════════════════════════════════════════════════════════════


class RequesterSnapshot(BaseModel):
    """Requester identity as captured when the request was submitted."""

    model_config = ConfigDict(frozen=True)

    employee_id: uuid.UUID
    email: str
    display_name: Optional[str] = None
    role: Optional[UserRole] = None
    department_id: Optional[uuid.UUID] = None


# ═════════════════════════════════════════════════════════════════════
# Leave Request — write
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestCreate(BaseModel):
    """Payload for submitting a leave request."""

    start_date: Optional[str] = Field(None, description="YYYY-MM-DD, inclusive")
    end_date: Optional[str] = Field(None, description="YYYY-MM-DD, inclusive")
    note: Optional[str] = Field(None, max_length=1000)


class LeaveRequestUpdate(BaseModel):
    """Payload for editing a request; omitted dates keep their current value."""

    start_date: Optional[str] = None
    end_date: Optional[str] = None
    note: Optional[str] = Field(None, max_length=1000)


# ═════════════════════════════════════════════════════════════════════
# Leave Request — read
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestOut(BaseModel):
    """Full leave request response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    employee_email: str
    employee_name: Optional[str] = None
    employee_role: Optional[UserRole] = None
    department_id: Optional[uuid.UUID] = None
    kind: LeaveKind
    start_date: date
    end_date: date
    status: LeaveStatus
    approver_email: Optional[str] = None
    approved_at: Optional[datetime] = None
    note: Optional[str] = None
    consumed_days: int
    created_at: datetime
    updated_at: datetime

    # Filled by the service for pending requests, never stored
    estimated_days: Optional[int] = None


class SubmitResult(BaseModel):
    id: uuid.UUID


class ApproveResult(BaseModel):
    id: uuid.UUID
    consumed_days: int


class EstimateOut(BaseModel):
    id: uuid.UUID
    estimated_days: int


class CalendarEntry(BaseModel):
    """One absence on the team calendar, with the requester's working days."""

    id: uuid.UUID
    employee_id: uuid.UUID
    employee_email: str
    employee_name: Optional[str] = None
    department_id: Optional[uuid.UUID] = None
    start_date: date
    end_date: date
    status: LeaveStatus
    working_days: list[int]


# ═════════════════════════════════════════════════════════════════════
# Balance
# ═════════════════════════════════════════════════════════════════════


class BalanceAdjustmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    delta_extra: int
    comment: Optional[str] = None
    assigned_annual: int
    carried_over: int
    created_by: str
    created_at: datetime


class BalanceOut(BaseModel):
    """Balance of one employee; ``available`` is always the recomputed figure."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: uuid.UUID
    assigned_annual: int
    carried_over: int
    extra: int
    consumed: int
    available: int
    last_adjustment: Optional[BalanceAdjustmentOut] = None
    updated_at: Optional[datetime] = None


class BalanceAdjustRequest(BaseModel):
    """Manual balance adjustment.

    Numeric fields accept anything JSON can carry; the ledger validates
    them and answers ``invalid_argument`` for non-numeric or negative
    overrides.
    """

    assigned_annual: Optional[Any] = None
    carried_over: Optional[Any] = None
    delta_extra: Optional[Any] = None
    comment: Optional[str] = Field(None, max_length=1000)
