"""Holiday ORM model."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from leavedesk.database import Base


class Holiday(Base):
    """One non-working date, filed under the calendar year it was configured for."""

    __tablename__ = "holidays"
    __table_args__ = (
        sa.UniqueConstraint("year", "date", name="uq_holiday_year_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    year: Mapped[int] = mapped_column(sa.Integer, nullable=False, index=True)
    holiday_date: Mapped[date] = mapped_column("date", sa.Date, nullable=False)
    created_by: Mapped[Optional[str]] = mapped_column(sa.String(255))
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
