"""Holiday Pydantic v2 schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class HolidaysReplace(BaseModel):
    """Full holiday set for one year; unparsable entries are dropped."""

    year: int
    dates: list[Any] = Field(default_factory=list, description="YYYY-MM-DD dates")


class HolidaysOut(BaseModel):
    year: int
    dates: list[str]


class HolidaysReplaced(BaseModel):
    year: int
    count: int
