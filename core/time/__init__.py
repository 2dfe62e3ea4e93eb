"""
BOL Core Time — Public API
============================
Explicit clock protocol and temporal helpers.
Doctrine: NO datetime.now() in engine logic.
"""

from core.time.clock import Clock, FixedClock, SystemClock
from core.time.temporal import (
    DateRange,
    date_part,
    period_of,
    time_of_day,
    within_time_window,
)

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "DateRange",
    "date_part",
    "period_of",
    "time_of_day",
    "within_time_window",
]
