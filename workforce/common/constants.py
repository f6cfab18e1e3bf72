"""Enums and constants for K2 Workforce — matching PostgreSQL ENUM types."""

from __future__ import annotations

import enum


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    employee = "employee"
    manager = "manager"
    admin = "admin"


# ── Attendance ──────────────────────────────────────────────────────

class AttendanceStatus(str, enum.Enum):
    present = "present"
    late = "late"
    absent = "absent"


# ── System settings keys ────────────────────────────────────────────

class SettingKey(str, enum.Enum):
    fuel_rate_per_km = "FUEL_RATE_PER_KM"
    late_arrival_time = "LATE_ARRIVAL_TIME"


# ── Audit actions ───────────────────────────────────────────────────

class AuditAction(str, enum.Enum):
    create = "create"
    update = "update"
    upsert = "upsert"
    delete = "delete"
    import_batch = "import"
    deactivate = "deactivate"


# ── Calendar ────────────────────────────────────────────────────────

MONTH_ABBREVIATIONS: tuple[str, ...] = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

CYCLE_START_DAY = 26
CYCLE_END_DAY = 25
DEFAULT_PAST_CYCLES = 6

# ── Misc ────────────────────────────────────────────────────────────

ATTENDANCE_LIST_LIMIT = 50
ATTENDANCE_TREND_DAYS = 7
FUEL_TREND_MONTHS = 6
EXPORT_DATE_FORMAT = "%d/%m/%Y"
MONTH_KEY_FORMAT = "%Y-%m"
