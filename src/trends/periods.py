# ABOUTME: Computes current and preceding comparison windows for week, month, quarter, and year.
# ABOUTME: Week is a rolling seven days; the others align to calendar boundaries in the clock's timezone.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from src.common.errors import UnsupportedTimeframeError

TIMEFRAMES = ("week", "month", "quarter", "year")

_ONE_TICK = timedelta(microseconds=1)


@dataclass(frozen=True)
class PeriodWindows:
    current_start: datetime
    current_end: datetime
    previous_start: datetime
    previous_end: datetime


def _start_of_month(now: datetime, year: int, month: int) -> datetime:
    return now.replace(year=year, month=month, day=1, hour=0, minute=0, second=0, microsecond=0)


def _shift_months(year: int, month: int, delta: int):
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def comparison_windows(timeframe: str, now: datetime) -> PeriodWindows:
    """
    Return the [start, end] window for the current period and the period before it.

    The previous window always ends one microsecond before the current one starts,
    so an attempt can never land in both.
    """
    normalized = timeframe.strip().lower()
    if normalized == "week":
        current_start = now - timedelta(days=7)
        previous_start = current_start - timedelta(days=7)
    elif normalized == "month":
        current_start = _start_of_month(now, now.year, now.month)
        previous_start = _start_of_month(now, *_shift_months(now.year, now.month, -1))
    elif normalized == "quarter":
        first_month = (now.month - 1) // 3 * 3 + 1
        current_start = _start_of_month(now, now.year, first_month)
        previous_start = _start_of_month(now, *_shift_months(now.year, first_month, -3))
    elif normalized == "year":
        current_start = _start_of_month(now, now.year, 1)
        previous_start = _start_of_month(now, now.year - 1, 1)
    else:
        raise UnsupportedTimeframeError(f"Unsupported timeframe '{timeframe}'. Expected one of: {', '.join(TIMEFRAMES)}.")

    return PeriodWindows(
        current_start=current_start,
        current_end=now,
        previous_start=previous_start,
        previous_end=current_start - _ONE_TICK,
    )


def percent_change(current: float, previous: float) -> float:
    """(current - previous) / previous * 100, or 0 when there is no previous value."""
    if previous == 0:
        return 0.0
    return (current - previous) / previous * 100
