"""Pure calendar helpers.

Every function builds new ``date`` values from parts; none of them
mutates or reuses a caller's instance.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from workforce.common.constants import MONTH_KEY_FORMAT
from workforce.common.exceptions import ValidationException
from workforce.config import settings


def today_local(tz_name: Optional[str] = None) -> date:
    """Current date in the organisation's time zone (Asia/Karachi by default)."""
    return datetime.now(ZoneInfo(tz_name or settings.TIMEZONE)).date()


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Return ``(year, month)`` moved by *delta* months (negative allowed)."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a calendar month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def month_key(value: date) -> str:
    """``YYYY-MM`` grouping key of a date."""
    return value.strftime(MONTH_KEY_FORMAT)


def parse_month_key(value: str, field: str = "month") -> tuple[int, int]:
    """Parse ``YYYY-MM`` into ``(year, month)``."""
    try:
        parsed = datetime.strptime(value, MONTH_KEY_FORMAT)
    except (TypeError, ValueError):
        raise ValidationException({field: [f"'{value}' is not a valid YYYY-MM month."]})
    return parsed.year, parsed.month


def last_n_days(end: date, count: int) -> list[date]:
    """*count* consecutive days ending at *end*, oldest first."""
    return [end - timedelta(days=offset) for offset in range(count - 1, -1, -1)]


def last_n_months(year: int, month: int, count: int) -> list[tuple[int, int]]:
    """*count* calendar months ending at ``(year, month)``, oldest first."""
    return [shift_month(year, month, -offset) for offset in range(count - 1, -1, -1)]
