"""Attendance Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Request  → request bodies (write)
  - *Response           → response bodies (read)
"""


import uuid
from datetime import date, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from workforce.common.constants import AttendanceStatus
from workforce.employees.schemas import EmployeeBrief


# ═════════════════════════════════════════════════════════════════════
# Cycles
# ═════════════════════════════════════════════════════════════════════


class CycleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    offset: int = 0
    start_date: date
    end_date: date
    label: str


# ═════════════════════════════════════════════════════════════════════
# Records
# ═════════════════════════════════════════════════════════════════════


class AttendanceRecordCreate(BaseModel):
    """Mark attendance for one employee on one day.

    Times are ``HH:MM`` strings. When ``status`` is omitted it is derived
    from the check-in time and the late-arrival threshold.
    """

    employee_id: uuid.UUID
    date: date
    check_in_time: Optional[str] = Field(None, description="HH:MM")
    check_out_time: Optional[str] = Field(None, description="HH:MM")
    status: Optional[AttendanceStatus] = None
    notes: Optional[str] = Field(None, max_length=2000)


class AttendanceRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    employee_name: Optional[str] = None
    date: date
    check_in_time: Optional[time] = None
    check_out_time: Optional[time] = None
    status: AttendanceStatus
    notes: Optional[str] = None


class AttendanceListResponse(BaseModel):
    data: list[AttendanceRecordResponse]
    limit: int


# ═════════════════════════════════════════════════════════════════════
# Summaries & reports
# ═════════════════════════════════════════════════════════════════════


class AttendanceSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    present: int
    absent: int
    late: int
    total: int
    percentage: int


class PeriodSummaryResponse(BaseModel):
    start_date: date
    end_date: date
    summary: AttendanceSummaryResponse


class CycleReportResponse(BaseModel):
    """One employee's attendance over one cycle."""

    employee: EmployeeBrief
    cycle: CycleResponse
    summary: AttendanceSummaryResponse
    records: list[AttendanceRecordResponse]


class TrendPoint(BaseModel):
    date: date
    label: str
    present: int
    late: int
