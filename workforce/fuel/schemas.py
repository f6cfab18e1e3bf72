"""Fuel reimbursement Pydantic v2 schemas.

Decimal fields in responses are rounded to cents for display; stored
values keep full precision.
"""

import uuid
import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ═════════════════════════════════════════════════════════════════════
# Requests
# ═════════════════════════════════════════════════════════════════════


class FuelItemInput(BaseModel):
    """One job line of a daily report."""

    model_config = ConfigDict(str_strip_whitespace=True)

    job_no: str = Field(..., min_length=1, max_length=100)
    area: str = Field(..., min_length=1, max_length=255)
    km: Decimal = Field(..., ge=0, max_digits=14, decimal_places=4)


class FuelReportCreate(BaseModel):
    """Submit a day's travel. ``employee_id`` defaults to the caller."""

    date: dt.date
    employee_id: Optional[uuid.UUID] = None
    items: list[FuelItemInput] = Field(..., min_length=1)


class FuelReportUpdate(BaseModel):
    """Full replacement of a report's items (and optionally its date)."""

    date: Optional[dt.date] = None
    items: list[FuelItemInput] = Field(..., min_length=1)


# ═════════════════════════════════════════════════════════════════════
# Responses
# ═════════════════════════════════════════════════════════════════════


class FuelItemResponse(BaseModel):
    job_no: str
    area: str
    km: Decimal
    amount: Decimal


class FuelReportResponse(BaseModel):
    id: uuid.UUID
    employee_id: uuid.UUID
    employee_name: Optional[str] = None
    date: dt.date
    total_km: Decimal
    total_amount: Decimal
    items: list[FuelItemResponse]


class FuelReportListItem(BaseModel):
    id: uuid.UUID
    date: dt.date
    total_km: Decimal
    total_amount: Decimal
    item_count: int


class EmployeeFuelSummary(BaseModel):
    employee_id: uuid.UUID
    full_name: str
    email: str
    total_km: Decimal
    total_amount: Decimal
    report_count: int


class MonthSummaryResponse(BaseModel):
    month: str
    employees: list[EmployeeFuelSummary]
    total_km: Decimal
    total_amount: Decimal


class EmployeeMonthTotals(BaseModel):
    month: str
    label: str
    total_km: Decimal
    total_amount: Decimal
    report_count: int


class FuelItemDetail(BaseModel):
    """A line item with its share of the day's amount."""

    report_id: uuid.UUID
    date: dt.date
    job_no: str
    area: str
    km: Decimal
    amount: Decimal


class FuelImportResult(BaseModel):
    reports_created: int
    items_created: int
    total_km: Decimal


class FuelTrendPoint(BaseModel):
    month: str
    label: str
    total_amount: int
