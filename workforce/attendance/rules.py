"""Attendance business rules: time parsing, late-arrival status, summaries."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import time
from typing import Any, Iterable, Optional, Union

from workforce.common.constants import AttendanceStatus
from workforce.common.exceptions import ValidationException

# HH:MM, optionally followed by :SS as returned by TIME columns
_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)(?::([0-5]\d))?$")


@dataclass(frozen=True)
class AttendanceSummary:
    present: int = 0
    absent: int = 0
    late: int = 0
    total: int = 0
    percentage: int = 0


def parse_time_of_day(value: Union[str, time], field: str = "time") -> time:
    """Parse ``HH:MM`` into a ``time``.

    Raises ``ValidationException`` naming *field* for anything else;
    malformed input is never coerced to a default.
    """
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    match = _TIME_RE.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise ValidationException({field: [f"'{value}' is not a valid HH:MM time."]})
    return time(int(match.group(1)), int(match.group(2)))


def to_minutes(value: time) -> int:
    """Minutes since midnight."""
    return value.hour * 60 + value.minute


def derive_status(
    check_in: Optional[time],
    late_threshold: time,
    previous_status: AttendanceStatus = AttendanceStatus.present,
) -> AttendanceStatus:
    """Status after entering *check_in* against the late threshold.

    A check-in after the threshold is late. An on-time check-in turns a
    previous ``late`` back into ``present``; any other status is kept.
    ``absent`` is only ever set by hand, and without a check-in time
    nothing changes.
    """
    previous_status = AttendanceStatus(previous_status)
    if check_in is None:
        return previous_status
    if to_minutes(check_in) > to_minutes(late_threshold):
        return AttendanceStatus.late
    if previous_status == AttendanceStatus.late:
        return AttendanceStatus.present
    return previous_status


def _status_of(record: Any) -> AttendanceStatus:
    status = getattr(record, "status", record)
    return AttendanceStatus(status)


def summarize(records: Iterable[Any]) -> AttendanceSummary:
    """Count statuses of *records* (rows, or bare statuses).

    ``percentage`` is present days over all days, rounded half up to an
    integer; an empty input yields all zeros.
    """
    counts = {status: 0 for status in AttendanceStatus}
    for record in records:
        counts[_status_of(record)] += 1

    present = counts[AttendanceStatus.present]
    total = sum(counts.values())
    percentage = (200 * present + total) // (2 * total) if total else 0

    return AttendanceSummary(
        present=present,
        absent=counts[AttendanceStatus.absent],
        late=counts[AttendanceStatus.late],
        total=total,
        percentage=percentage,
    )
