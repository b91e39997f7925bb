"""Overlap checker — at most one active absence per employee per day."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.common.constants import ACTIVE_STATUSES
from leavedesk.leave.models import LeaveRequest


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Closed-interval intersection; sharing a single day counts."""
    return a_start <= b_end and a_end >= b_start


async def has_overlap(
    db: AsyncSession,
    employee_id: uuid.UUID,
    start: date,
    end: date,
    exclude_request_id: Optional[uuid.UUID] = None,
) -> bool:
    """Whether any pending or approved request of the employee intersects [start, end].

    Rejected requests never block. *exclude_request_id* removes the request
    being edited or approved from the candidate set.
    """
    conditions = [
        LeaveRequest.employee_id == employee_id,
        LeaveRequest.status.in_(ACTIVE_STATUSES),
        LeaveRequest.start_date <= end,
        LeaveRequest.end_date >= start,
    ]
    if exclude_request_id is not None:
        conditions.append(LeaveRequest.id != exclude_request_id)

    result = await db.execute(select(exists().where(*conditions)))
    return bool(result.scalar())
