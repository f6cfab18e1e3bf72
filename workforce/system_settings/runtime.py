"""Runtime configuration snapshot handed to the calculation functions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from decimal import Decimal, InvalidOperation

from workforce.attendance.rules import parse_time_of_day
from workforce.common.constants import SettingKey
from workforce.common.exceptions import ConfigurationMissing, ValidationException
from workforce.config import settings


@dataclass(frozen=True)
class RuntimeConfig:
    """Immutable per-request view of the business settings."""

    fuel_rate_per_km: Decimal
    late_arrival_time: time

    @classmethod
    def defaults(cls) -> RuntimeConfig:
        return cls(
            fuel_rate_per_km=Decimal(settings.DEFAULT_FUEL_RATE_PER_KM),
            late_arrival_time=parse_time_of_day(
                settings.DEFAULT_LATE_ARRIVAL_TIME, field="DEFAULT_LATE_ARRIVAL_TIME",
            ),
        )


def parse_fuel_rate(raw: str) -> Decimal:
    """Parse a stored rate; must be a finite, non-negative decimal."""
    try:
        rate = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        raise ConfigurationMissing(SettingKey.fuel_rate_per_km.value, f"not a number ({raw!r})")
    if not rate.is_finite() or rate < 0:
        raise ConfigurationMissing(SettingKey.fuel_rate_per_km.value, f"out of range ({raw!r})")
    return rate


def parse_late_arrival(raw: str) -> time:
    try:
        return parse_time_of_day(raw, field=SettingKey.late_arrival_time.value)
    except ValidationException:
        raise ConfigurationMissing(SettingKey.late_arrival_time.value, f"not HH:MM ({raw!r})")


PARSERS = {
    SettingKey.fuel_rate_per_km: parse_fuel_rate,
    SettingKey.late_arrival_time: parse_late_arrival,
}
