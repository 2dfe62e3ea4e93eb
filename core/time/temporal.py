"""
BOL Core Time — Temporal Helpers
==================================
Pure functions over ISO date strings and times of day.
All functions take explicit arguments — no hidden clock access.

Dates travel through the store as ISO strings ("2026-02-19" or a full
ISO timestamp). Comparisons use the leading YYYY-MM-DD part, which
orders lexically the same way it orders chronologically.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple


# ══════════════════════════════════════════════════════════════
# DATE PARSING
# ══════════════════════════════════════════════════════════════

def date_part(value: str) -> str:
    """Return the YYYY-MM-DD part of an ISO date or timestamp string."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str) or len(value) < 10:
        raise ValueError(f"Not an ISO date: {value!r}")
    head = value[:10]
    date.fromisoformat(head)
    return head


def period_of(value: str) -> Tuple[int, int]:
    """(year, month) of an ISO date string."""
    parsed = date.fromisoformat(date_part(value))
    return parsed.year, parsed.month


def time_of_day(moment: datetime) -> str:
    """HH:MM of a datetime, zero-padded, 24h."""
    return moment.strftime("%H:%M")


# ══════════════════════════════════════════════════════════════
# DATE RANGE (closed interval, either side optional)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DateRange:
    """
    Inclusive date range on ISO date strings.

    None on either side means unbounded.
    """

    start: Optional[str] = None
    end: Optional[str] = None

    def __post_init__(self) -> None:
        if self.start is not None:
            object.__setattr__(self, "start", date_part(self.start))
        if self.end is not None:
            object.__setattr__(self, "end", date_part(self.end))
        if self.start and self.end and self.start > self.end:
            raise ValueError(
                f"DateRange start ({self.start}) must be <= end ({self.end})."
            )

    def contains(self, value: str) -> bool:
        day = date_part(value)
        if self.start is not None and day < self.start:
            return False
        if self.end is not None and day > self.end:
            return False
        return True

    @property
    def is_unbounded(self) -> bool:
        return self.start is None and self.end is None


def within_time_window(current: str, start_hour: str, end_hour: str) -> bool:
    """HH:MM string comparison, inclusive on both ends."""
    return start_hour <= current <= end_hour
