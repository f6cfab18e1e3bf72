"""Fuel CSV import: parse, validate every row, group into reports.

The batch is all-or-nothing. ``parse_fuel_csv`` either returns the full
list of grouped reports or raises ``ImportValidationException`` carrying
one ``Line N: field: reason`` message per failure.
"""

from __future__ import annotations

import csv
import io
import re
from dataclasses import dataclass, field
import datetime as dt
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.networks import validate_email
from pydantic_core import PydanticCustomError

from workforce.common.exceptions import ImportValidationException
from workforce.fuel.aggregator import FuelLineItem

IMPORT_COLUMNS: tuple[str, ...] = ("email", "date", "job_no", "area", "km")

IMPORT_TEMPLATE = (
    "email,date,job_no,area,km\r\n"
    "employee@example.com,2025-01-15,JOB001,Downtown,45.5\r\n"
    "employee@example.com,2025-01-15,JOB002,Uptown,30\r\n"
)

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_KM_RE = re.compile(r"^\d+(\.\d+)?$")
# Matches the Numeric(14, 4) km columns.
_KM_BOUNDS_RE = re.compile(r"^\d{1,10}(\.\d{1,4})?$")


def _fail(message: str) -> PydanticCustomError:
    return PydanticCustomError("fuel_csv", message)


class FuelCsvRow(BaseModel):
    """One validated CSV row. Fields are checked in declaration order."""

    model_config = ConfigDict(str_strip_whitespace=True)

    email: str
    date: dt.date
    job_no: str
    area: str
    km: Decimal

    @field_validator("email", mode="before")
    @classmethod
    def _check_email(cls, value: Any) -> str:
        text = str(value or "").strip()
        try:
            _, normalized = validate_email(text)
        except PydanticCustomError:
            raise _fail("Invalid email address")
        # validate_email also takes "Name <addr>"; only a bare address is a row value.
        if normalized.lower() != text.lower():
            raise _fail("Invalid email address")
        return normalized.lower()

    @field_validator("date", mode="before")
    @classmethod
    def _check_date(cls, value: Any) -> dt.date:
        text = str(value or "").strip()
        if not _DATE_RE.match(text):
            raise _fail("Date must be in YYYY-MM-DD format")
        try:
            return dt.datetime.strptime(text, "%Y-%m-%d").date()
        except ValueError:
            raise _fail("Date is not a valid calendar date")

    @field_validator("job_no", mode="before")
    @classmethod
    def _check_job_no(cls, value: Any) -> str:
        text = str(value or "").strip()
        if not text:
            raise _fail("Job number is required")
        return text

    @field_validator("area", mode="before")
    @classmethod
    def _check_area(cls, value: Any) -> str:
        text = str(value or "").strip()
        if not text:
            raise _fail("Area is required")
        return text

    @field_validator("km", mode="before")
    @classmethod
    def _check_km(cls, value: Any) -> Decimal:
        text = str(value or "").strip()
        if not _KM_RE.match(text):
            raise _fail("KM must be a non-negative number")
        if not _KM_BOUNDS_RE.match(text):
            raise _fail("KM allows at most 10 digits before and 4 after the decimal point")
        return Decimal(text)


@dataclass
class ImportGroup:
    """All rows sharing an ``(email, date)``: one fuel report to be."""

    email: str
    date: dt.date
    items: list[FuelLineItem] = field(default_factory=list)
    lines: list[int] = field(default_factory=list)

    @property
    def total_km(self) -> Decimal:
        return sum((item.km for item in self.items), Decimal("0"))


def _normalize_header(name: Optional[str]) -> str:
    return (name or "").strip().lower()


def _row_errors(line: int, exc: ValidationError) -> list[str]:
    messages = []
    for err in exc.errors():
        loc = err.get("loc") or ("row",)
        messages.append(f"Line {line}: {loc[0]}: {err.get('msg', 'Invalid value')}")
    return messages


def group_rows(rows: list[tuple[int, FuelCsvRow]]) -> list[ImportGroup]:
    """Group validated rows by ``(email, date)`` in first-seen order."""
    groups: dict[tuple[str, dt.date], ImportGroup] = {}
    for line, row in rows:
        key = (row.email, row.date)
        group = groups.get(key)
        if group is None:
            group = groups[key] = ImportGroup(email=row.email, date=row.date)
        group.items.append(FuelLineItem(job_no=row.job_no, area=row.area, km=row.km))
        group.lines.append(line)
    return list(groups.values())


def parse_fuel_csv(text: str) -> list[ImportGroup]:
    """Validate a whole CSV document and group it into reports.

    Line numbers are physical file lines with the header on line 1.
    """
    reader = csv.reader(io.StringIO(text.lstrip("\ufeff"), newline=""))

    header: Optional[list[str]] = None
    for raw_header in reader:
        if any(cell.strip() for cell in raw_header):
            header = [_normalize_header(cell) for cell in raw_header]
            break
    if header is None:
        raise ImportValidationException(["Line 1: file: CSV file is empty"])

    missing = [col for col in IMPORT_COLUMNS if col not in header]
    if missing:
        raise ImportValidationException(
            [f"Line {reader.line_num}: header: missing column(s) {', '.join(missing)}"]
        )
    positions = {col: header.index(col) for col in IMPORT_COLUMNS}

    errors: list[str] = []
    valid: list[tuple[int, FuelCsvRow]] = []
    for raw in reader:
        line = reader.line_num
        if not any(cell.strip() for cell in raw):
            continue
        values = {
            col: raw[pos] if pos < len(raw) else ""
            for col, pos in positions.items()
        }
        try:
            valid.append((line, FuelCsvRow.model_validate(values)))
        except ValidationError as exc:
            errors.extend(_row_errors(line, exc))

    if errors:
        raise ImportValidationException(errors)
    if not valid:
        raise ImportValidationException(["Line 2: file: CSV file has no data rows"])

    return group_rows(valid)
