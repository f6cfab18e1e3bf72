"""Initial migration stays in step with the ORM models."""

from __future__ import annotations

import importlib.util
import inspect
import re
from pathlib import Path

from workforce.common.constants import AttendanceStatus, SettingKey
from workforce.config import settings
from workforce.database import Base

MIGRATION = Path(__file__).resolve().parents[1] / "alembic" / "versions" / "001_initial_schema.py"


def _load_migration():
    module_spec = importlib.util.spec_from_file_location("initial_schema", MIGRATION)
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return module


def test_migration_creates_every_model_table():
    module = _load_migration()
    created = set(re.findall(r"CREATE TABLE (\w+)", inspect.getsource(module.upgrade)))

    assert created == set(Base.metadata.tables)
    assert set(module.TABLES) == created


def test_migration_enum_matches_attendance_status():
    module = _load_migration()

    assert dict(module.ENUM_TYPES)["attendance_status"] == [s.value for s in AttendanceStatus]


def test_migration_seeds_documented_defaults():
    source = inspect.getsource(_load_migration().upgrade)

    assert f"'{SettingKey.fuel_rate_per_km.value}',  '{settings.DEFAULT_FUEL_RATE_PER_KM}'" in source
    assert f"'{SettingKey.late_arrival_time.value}', '{settings.DEFAULT_LATE_ARRIVAL_TIME}'" in source


def test_downgrade_drops_children_before_parents():
    tables = _load_migration().TABLES

    assert tables.index("fuel_report_items") < tables.index("fuel_reports")
    assert tables[-1] == "employees"
