"""Attendance router — cycles, marking, lists, summaries, reports, export.

All endpoints require authentication. Marking and other people's data
need a manager or admin; employees see only their own rows.
"""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.attendance.schemas import (
    AttendanceListResponse,
    AttendanceRecordCreate,
    AttendanceRecordResponse,
    CycleReportResponse,
    CycleResponse,
    PeriodSummaryResponse,
    TrendPoint,
)
from workforce.attendance.service import AttendanceService
from workforce.auth.dependencies import CurrentUser, get_current_user, require_role
from workforce.common.constants import ATTENDANCE_LIST_LIMIT, DEFAULT_PAST_CYCLES, UserRole
from workforce.common.csv_export import csv_response
from workforce.database import get_db
from workforce.dependencies import get_runtime_config, get_today
from workforce.system_settings.runtime import RuntimeConfig

router = APIRouter(prefix="", tags=["attendance"])


# ── GET /cycles ─────────────────────────────────────────────────────

@router.get("/cycles", response_model=list[CycleResponse])
async def list_cycles(
    count: int = Query(DEFAULT_PAST_CYCLES, ge=0, le=36),
    user: CurrentUser = Depends(get_current_user),
    today: date = Depends(get_today),
):
    """Current attendance cycle followed by previous ones."""
    return AttendanceService.list_cycles(today, count)


# ── POST /records ───────────────────────────────────────────────────

@router.post("/records", response_model=AttendanceRecordResponse, status_code=201)
async def create_record(
    body: AttendanceRecordCreate,
    request: Request,
    user: CurrentUser = Depends(require_role(UserRole.manager)),
    config: RuntimeConfig = Depends(get_runtime_config),
    db: AsyncSession = Depends(get_db),
):
    """Mark attendance; 409 if the day is already recorded."""
    ip = request.client.host if request.client else None
    record = await AttendanceService.create_record(db, user, body, config, ip_address=ip)
    return AttendanceRecordResponse.model_validate(record)


# ── PUT /records ────────────────────────────────────────────────────

@router.put("/records", response_model=AttendanceRecordResponse)
async def upsert_record(
    body: AttendanceRecordCreate,
    request: Request,
    user: CurrentUser = Depends(require_role(UserRole.manager)),
    config: RuntimeConfig = Depends(get_runtime_config),
    db: AsyncSession = Depends(get_db),
):
    """Mark attendance, overwriting any record for the same day."""
    ip = request.client.host if request.client else None
    record = await AttendanceService.upsert_record(db, user, body, config, ip_address=ip)
    return AttendanceRecordResponse.model_validate(record)


# ── DELETE /records/{record_id} ─────────────────────────────────────

@router.delete("/records/{record_id}", status_code=204)
async def delete_record(
    record_id: uuid.UUID,
    request: Request,
    user: CurrentUser = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    ip = request.client.host if request.client else None
    await AttendanceService.delete_record(db, user, record_id, ip_address=ip)
    return Response(status_code=204)


# ── GET /records ────────────────────────────────────────────────────

@router.get("/records", response_model=AttendanceListResponse)
async def list_records(
    employee_id: Optional[uuid.UUID] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Latest records, newest first."""
    records = await AttendanceService.list_records(
        db, user, employee_id=employee_id, start_date=start_date, end_date=end_date,
    )
    return AttendanceListResponse(
        data=[AttendanceRecordResponse.model_validate(r) for r in records],
        limit=ATTENDANCE_LIST_LIMIT,
    )


# ── GET /summary ────────────────────────────────────────────────────

@router.get("/summary", response_model=PeriodSummaryResponse)
async def month_summary(
    employee_id: Optional[uuid.UUID] = Query(None),
    user: CurrentUser = Depends(get_current_user),
    today: date = Depends(get_today),
    db: AsyncSession = Depends(get_db),
):
    """This calendar month so far."""
    return await AttendanceService.month_summary(db, user, today, employee_id=employee_id)


# ── GET /report ─────────────────────────────────────────────────────

@router.get("/report", response_model=CycleReportResponse)
async def cycle_report(
    employee_id: uuid.UUID = Query(...),
    offset: int = Query(0, le=0, ge=-36, description="0 = current cycle, -1 = previous"),
    user: CurrentUser = Depends(get_current_user),
    today: date = Depends(get_today),
    db: AsyncSession = Depends(get_db),
):
    return await AttendanceService.cycle_report(db, user, employee_id, today, offset)


# ── GET /trend ──────────────────────────────────────────────────────

@router.get("/trend", response_model=list[TrendPoint])
async def daily_trend(
    user: CurrentUser = Depends(get_current_user),
    today: date = Depends(get_today),
    db: AsyncSession = Depends(get_db),
):
    """Present / late counts for the last seven days."""
    return await AttendanceService.daily_trend(db, user, today)


# ── GET /export ─────────────────────────────────────────────────────

@router.get("/export")
async def export_records(
    employee_id: Optional[uuid.UUID] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    user: CurrentUser = Depends(get_current_user),
    today: date = Depends(get_today),
    db: AsyncSession = Depends(get_db),
):
    content = await AttendanceService.export_csv(
        db, user, employee_id=employee_id, start_date=start_date, end_date=end_date,
    )
    return csv_response(content, f"attendance-{today.isoformat()}.csv")
