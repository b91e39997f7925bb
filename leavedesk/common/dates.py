"""Calendar-date helpers: ``YYYY-MM-DD`` keys and ISO weekdays."""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta
from typing import Any, Iterator, Optional

_DATE_KEY_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def parse_date_key(value: Any) -> Optional[date]:
    """Parse a strict ``YYYY-MM-DD`` value into a ``date``.

    ``date`` instances pass through (``datetime`` is reduced to its date).
    Returns ``None`` for anything else, including impossible calendar dates
    such as ``2025-02-30``.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    match = _DATE_KEY_RE.match(str(value).strip())
    if match is None:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def to_date_key(value: date) -> str:
    return value.isoformat()


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every calendar day from *start* to *end*, both inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def years_spanned(start: date, end: date) -> range:
    return range(start.year, end.year + 1)


def normalize_weekdays(values: Any) -> list[int]:
    """Keep the ISO weekdays (1..7) in *values*, deduplicated and sorted.

    Numeric strings and floats are accepted and rounded; anything that is
    not a finite number within range is dropped. Non-list input yields an
    empty list.
    """
    if not isinstance(values, (list, tuple, set, frozenset)):
        return []

    days: set[int] = set()
    for value in values:
        if isinstance(value, bool):
            continue
        try:
            number = float(value)
        except (TypeError, ValueError):
            continue
        if not math.isfinite(number) or number < 1 or number > 7:
            continue
        days.add(round(number))
    return sorted(days)
