"""Attendance cycle calendar.

The organisation reports attendance over cycles that run from the 26th of
one month to the 25th of the next, instead of calendar months. Both days
exist in every month, so no clamping is ever needed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from workforce.common.constants import (
    CYCLE_END_DAY,
    CYCLE_START_DAY,
    DEFAULT_PAST_CYCLES,
    MONTH_ABBREVIATIONS,
)
from workforce.common.dates import shift_month


@dataclass(frozen=True)
class Cycle:
    start_date: date
    end_date: date
    label: str

    def contains(self, value: date) -> bool:
        return self.start_date <= value <= self.end_date


def _label(start: date, end: date) -> str:
    start_part = f"{CYCLE_START_DAY} {MONTH_ABBREVIATIONS[start.month - 1]}"
    if start.year != end.year:
        start_part = f"{start_part} {start.year}"
    return f"{start_part} - {CYCLE_END_DAY} {MONTH_ABBREVIATIONS[end.month - 1]} {end.year}"


def _cycle_starting(year: int, month: int) -> Cycle:
    start = date(year, month, CYCLE_START_DAY)
    end_year, end_month = shift_month(year, month, 1)
    end = date(end_year, end_month, CYCLE_END_DAY)
    return Cycle(start_date=start, end_date=end, label=_label(start, end))


def current_cycle(reference_date: date) -> Cycle:
    """The cycle containing *reference_date*."""
    if reference_date.day >= CYCLE_START_DAY:
        return _cycle_starting(reference_date.year, reference_date.month)
    year, month = shift_month(reference_date.year, reference_date.month, -1)
    return _cycle_starting(year, month)


def cycle_with_offset(reference_date: date, offset: int) -> Cycle:
    """The current cycle moved by *offset* cycles (negative = earlier)."""
    current = current_cycle(reference_date)
    year, month = shift_month(current.start_date.year, current.start_date.month, offset)
    return _cycle_starting(year, month)


def past_cycles(reference_date: date, count: int = DEFAULT_PAST_CYCLES) -> list[Cycle]:
    """Current cycle followed by *count* earlier ones, most recent first."""
    if count < 0:
        raise ValueError("count must be >= 0")
    return [cycle_with_offset(reference_date, -offset) for offset in range(count + 1)]
