"""Leave ORM models: LeaveRequest, LeaveBalance, BalanceAdjustment."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leavedesk.common.constants import LeaveKind, LeaveStatus, UserRole
from leavedesk.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LeaveRequest(Base):
    __tablename__ = "leave_requests"
    __table_args__ = (
        sa.CheckConstraint("start_date <= end_date", name="ck_leave_request_range"),
        sa.CheckConstraint("consumed_days >= 0", name="ck_leave_request_consumed"),
        sa.Index(
            "ix_leave_requests_employee_status_dates",
            "employee_id", "status", "start_date", "end_date",
        ),
        sa.Index("ix_leave_requests_department", "department_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("employees.id"), nullable=False
    )

    # Requester snapshot, frozen at submission time
    employee_email: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    employee_name: Mapped[Optional[str]] = mapped_column(sa.String(255))
    employee_role: Mapped[Optional[UserRole]] = mapped_column(
        sa.Enum(UserRole, name="user_role"),
    )
    department_id: Mapped[Optional[uuid.UUID]] = mapped_column(sa.Uuid)

    kind: Mapped[LeaveKind] = mapped_column(
        sa.Enum(LeaveKind, name="leave_kind"), default=LeaveKind.vacation,
    )
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    status: Mapped[LeaveStatus] = mapped_column(
        sa.Enum(LeaveStatus, name="leave_status"),
        nullable=False,
        default=LeaveStatus.pending,
    )
    approver_email: Mapped[Optional[str]] = mapped_column(sa.String(255))
    approved_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True)
    )
    note: Mapped[Optional[str]] = mapped_column(sa.Text)
    consumed_days: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    def __repr__(self) -> str:
        return (
            f"<LeaveRequest {self.id} {self.employee_email} "
            f"{self.start_date}..{self.end_date} {self.status.value}>"
        )


class LeaveBalance(Base):
    """Running balance of consumable days, one row per employee.

    ``available`` is stored for reads but is only ever written by the
    ledger, which recomputes it from the other four figures.
    """

    __tablename__ = "leave_balances"
    __table_args__ = (
        sa.CheckConstraint("assigned_annual >= 0", name="ck_balance_assigned"),
        sa.CheckConstraint("carried_over >= 0", name="ck_balance_carried"),
        sa.CheckConstraint("extra >= 0", name="ck_balance_extra"),
        sa.CheckConstraint("consumed >= 0", name="ck_balance_consumed"),
    )

    employee_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("employees.id"), primary_key=True,
    )
    assigned_annual: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    carried_over: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    extra: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    consumed: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    available: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    last_adjustment_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid, sa.ForeignKey("balance_adjustments.id"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    # Relationships
    last_adjustment: Mapped[Optional[BalanceAdjustment]] = relationship(
        foreign_keys=[last_adjustment_id], lazy="joined",
    )


class BalanceAdjustment(Base):
    """Append-only audit record of one manual balance adjustment."""

    __tablename__ = "balance_adjustments"
    __table_args__ = (
        sa.Index("ix_balance_adjustments_employee", "employee_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("employees.id"), nullable=False
    )
    delta_extra: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    comment: Mapped[Optional[str]] = mapped_column(sa.Text)
    assigned_annual: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    carried_over: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    created_by: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow
    )
