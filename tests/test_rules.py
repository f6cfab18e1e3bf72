"""Attendance rules — HH:MM parsing, late-arrival status, summaries."""

from __future__ import annotations

from datetime import time

import pytest

from workforce.attendance.rules import (
    AttendanceSummary,
    derive_status,
    parse_time_of_day,
    summarize,
    to_minutes,
)
from workforce.common.constants import AttendanceStatus
from workforce.common.exceptions import ValidationException

THRESHOLD = time(10, 15)


# ═════════════════════════════════════════════════════════════════════
# 1. TIME PARSING
# ═════════════════════════════════════════════════════════════════════


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("09:00", time(9, 0)),
        ("23:59", time(23, 59)),
        ("00:00", time(0, 0)),
        (" 10:15 ", time(10, 15)),
        ("10:15:42", time(10, 15)),
    ],
)
def test_parse_time_accepts_hh_mm(raw, expected):
    assert parse_time_of_day(raw) == expected


@pytest.mark.parametrize("raw", ["24:00", "9:00", "10:60", "10.15", "", "late", "10:15pm"])
def test_parse_time_rejects_malformed(raw):
    """Malformed input is an error naming the field, never a default."""
    with pytest.raises(ValidationException) as exc_info:
        parse_time_of_day(raw, field="check_in_time")

    assert "check_in_time" in exc_info.value.errors
    assert exc_info.value.status_code == 422


def test_parse_time_passes_time_objects_through():
    assert parse_time_of_day(time(8, 5, 30)) == time(8, 5)


def test_to_minutes():
    assert to_minutes(time(10, 15)) == 615


# ═════════════════════════════════════════════════════════════════════
# 2. STATUS DERIVATION
# ═════════════════════════════════════════════════════════════════════


def test_one_minute_after_threshold_is_late():
    assert derive_status(time(10, 16), THRESHOLD, AttendanceStatus.present) == AttendanceStatus.late


def test_on_threshold_reverts_late_to_present():
    assert derive_status(time(10, 15), THRESHOLD, AttendanceStatus.late) == AttendanceStatus.present


def test_on_time_keeps_present():
    assert derive_status(time(9, 0), THRESHOLD) == AttendanceStatus.present


def test_on_time_does_not_clear_absent():
    """Absent is only ever changed by hand."""
    assert derive_status(time(9, 0), THRESHOLD, AttendanceStatus.absent) == AttendanceStatus.absent


def test_late_check_in_overrides_absent():
    assert derive_status(time(11, 0), THRESHOLD, AttendanceStatus.absent) == AttendanceStatus.late


def test_no_check_in_keeps_previous_status():
    assert derive_status(None, THRESHOLD, AttendanceStatus.late) == AttendanceStatus.late
    assert derive_status(None, THRESHOLD) == AttendanceStatus.present


def test_previous_status_accepts_plain_string():
    assert derive_status(time(9, 0), THRESHOLD, "late") == AttendanceStatus.present


# ═════════════════════════════════════════════════════════════════════
# 3. SUMMARIES
# ═════════════════════════════════════════════════════════════════════


def test_summarize_empty_is_all_zero():
    assert summarize([]) == AttendanceSummary(0, 0, 0, 0, 0)


def test_summarize_counts_and_percentage():
    statuses = (
        [AttendanceStatus.present] * 5
        + [AttendanceStatus.late] * 2
        + [AttendanceStatus.absent] * 3
    )

    summary = summarize(statuses)

    assert summary == AttendanceSummary(present=5, absent=3, late=2, total=10, percentage=50)


def test_summarize_reads_status_attribute_of_rows():
    class Row:
        def __init__(self, status):
            self.status = status

    summary = summarize([Row(AttendanceStatus.present), Row("late")])

    assert summary.present == 1
    assert summary.late == 1
    assert summary.total == 2


@pytest.mark.parametrize(
    "present, other, expected",
    [
        (1, 2, 33),   # 33.33
        (2, 1, 67),   # 66.67
        (1, 7, 13),   # 12.5 rounds half up
        (3, 0, 100),
        (0, 4, 0),
    ],
)
def test_summarize_percentage_rounds_half_up(present, other, expected):
    statuses = [AttendanceStatus.present] * present + [AttendanceStatus.absent] * other
    assert summarize(statuses).percentage == expected
