"""Directory Pydantic v2 schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from leavedesk.common.constants import UserRole


class DirectoryEntry(BaseModel):
    """Identity and organisational metadata of one person.

    This is what the Identity Resolver hands to the core for the caller,
    and what the Directory returns for lookups by id or email.
    """

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: uuid.UUID
    email: str
    display_name: Optional[str] = None
    role: UserRole
    department_id: Optional[uuid.UUID] = None


class UserOut(DirectoryEntry):
    """Directory listing row with the working-day pattern attached."""

    working_days: list[int]


class WorkingDaysUpdate(BaseModel):
    """Payload for replacing an employee's working-day pattern."""

    working_days: list[Any] = Field(
        ..., description="ISO weekdays (1=Monday … 7=Sunday)",
    )


class WorkingDaysOut(BaseModel):
    employee_id: uuid.UUID
    working_days: list[int]


class DepartmentCreate(BaseModel):
    name: Optional[str] = None
    manager_id: Optional[uuid.UUID] = None


class DepartmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    manager_id: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime
