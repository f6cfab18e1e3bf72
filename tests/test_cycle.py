"""Attendance cycle calendar — 26th-to-25th cycles, offsets, labels.

Pure functions only; no database involved.
"""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from workforce.attendance.cycle import Cycle, current_cycle, cycle_with_offset, past_cycles
from workforce.common.dates import last_n_days, last_n_months, month_bounds, shift_month


# ═════════════════════════════════════════════════════════════════════
# 1. CURRENT CYCLE
# ═════════════════════════════════════════════════════════════════════


@pytest.mark.parametrize("day", range(1, 26))
def test_days_up_to_25th_belong_to_cycle_started_last_month(day):
    """1st..25th of March → 26 Feb .. 25 Mar."""
    cycle = current_cycle(date(2025, 3, day))

    assert cycle.start_date == date(2025, 2, 26)
    assert cycle.end_date == date(2025, 3, 25)


@pytest.mark.parametrize("day", range(26, 32))
def test_days_from_26th_start_a_new_cycle(day):
    cycle = current_cycle(date(2025, 1, day))

    assert cycle.start_date == date(2025, 1, 26)
    assert cycle.start_date.month == 1
    assert cycle.end_date == date(2025, 2, 25)


def test_cycle_across_year_boundary():
    """3 Jan 2025 sits in the cycle that started 26 Dec 2024."""
    cycle = current_cycle(date(2025, 1, 3))

    assert cycle.start_date == date(2024, 12, 26)
    assert cycle.end_date == date(2025, 1, 25)
    assert cycle.label == "26 Dec 2024 - 25 Jan 2025"


def test_cycle_ending_in_february_of_non_leap_year():
    cycle = current_cycle(date(2023, 2, 10))

    assert cycle.start_date == date(2023, 1, 26)
    assert cycle.end_date == date(2023, 2, 25)


def test_every_day_of_a_year_falls_in_its_own_cycle():
    """For every date, the cycle contains it and has the 26/25 shape."""
    day = date(2024, 1, 1)
    while day.year == 2024:
        cycle = current_cycle(day)
        assert cycle.contains(day)
        assert cycle.start_date.day == 26
        assert cycle.end_date.day == 25
        assert shift_month(cycle.start_date.year, cycle.start_date.month, 1) == (
            cycle.end_date.year, cycle.end_date.month,
        )
        day += timedelta(days=1)


# ═════════════════════════════════════════════════════════════════════
# 2. LABELS
# ═════════════════════════════════════════════════════════════════════


def test_label_omits_start_year_within_same_year():
    assert current_cycle(date(2025, 5, 30)).label == "26 May - 25 Jun 2025"


def test_label_includes_start_year_when_years_differ():
    assert current_cycle(date(2024, 12, 26)).label == "26 Dec 2024 - 25 Jan 2025"


# ═════════════════════════════════════════════════════════════════════
# 3. OFFSETS & PAST CYCLES
# ═════════════════════════════════════════════════════════════════════


def test_offset_zero_is_current_cycle():
    ref = date(2025, 4, 12)
    assert cycle_with_offset(ref, 0) == current_cycle(ref)


def test_negative_offset_moves_back_across_year():
    cycle = cycle_with_offset(date(2025, 2, 5), -2)

    assert cycle.start_date == date(2024, 11, 26)
    assert cycle.end_date == date(2024, 12, 25)
    assert cycle.label == "26 Nov - 25 Dec 2024"


def test_positive_offset_moves_forward():
    cycle = cycle_with_offset(date(2025, 11, 27), 1)

    assert cycle.start_date == date(2025, 12, 26)
    assert cycle.end_date == date(2026, 1, 25)


def test_offset_does_not_touch_reference_date():
    ref = date(2025, 3, 15)
    cycle_with_offset(ref, -5)
    past_cycles(ref, 3)
    assert ref == date(2025, 3, 15)


def test_past_cycles_default_length_and_order():
    """pastCycles(d, 6): 7 contiguous cycles, newest first, no overlap."""
    cycles = past_cycles(date(2025, 3, 1), 6)

    assert len(cycles) == 7
    assert cycles[0] == current_cycle(date(2025, 3, 1))
    for newer, older in zip(cycles, cycles[1:]):
        assert older.start_date < newer.start_date
        assert older.end_date < newer.start_date
        assert older.end_date + timedelta(days=1) == newer.start_date


def test_past_cycles_zero_count_is_current_only():
    assert past_cycles(date(2025, 3, 1), 0) == [current_cycle(date(2025, 3, 1))]


def test_past_cycles_negative_count_rejected():
    with pytest.raises(ValueError):
        past_cycles(date(2025, 3, 1), -1)


def test_cycle_is_immutable():
    cycle = current_cycle(date(2025, 3, 1))
    with pytest.raises(AttributeError):
        cycle.start_date = date(2025, 1, 1)  # type: ignore[misc]
    assert isinstance(cycle, Cycle)


# ═════════════════════════════════════════════════════════════════════
# 4. DATE HELPERS
# ═════════════════════════════════════════════════════════════════════


def test_shift_month_wraps_years():
    assert shift_month(2025, 1, -1) == (2024, 12)
    assert shift_month(2024, 12, 1) == (2025, 1)
    assert shift_month(2025, 3, -27) == (2022, 12)


def test_month_bounds_handles_leap_february():
    assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_bounds(2025, 2) == (date(2025, 2, 1), date(2025, 2, 28))


def test_last_n_days_oldest_first():
    days = last_n_days(date(2025, 3, 2), 3)
    assert days == [date(2025, 2, 28), date(2025, 3, 1), date(2025, 3, 2)]


def test_last_n_months_oldest_first():
    assert last_n_months(2025, 2, 3) == [(2024, 12), (2025, 1), (2025, 2)]
