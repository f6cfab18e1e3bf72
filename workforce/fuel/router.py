"""Fuel router — daily reports, management views, CSV import and export.

Employees work with their own reports; summaries, other people's data and
imports need a manager or admin.
"""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.auth.dependencies import CurrentUser, get_current_user, require_role
from workforce.common.constants import UserRole
from workforce.common.csv_export import csv_response
from workforce.common.exceptions import ValidationException
from workforce.common.rate_limit import limiter
from workforce.config import settings
from workforce.database import get_db
from workforce.dependencies import get_runtime_config, get_today
from workforce.fuel.aggregator import money
from workforce.fuel.csv_import import IMPORT_TEMPLATE
from workforce.fuel.schemas import (
    EmployeeMonthTotals,
    FuelImportResult,
    FuelItemDetail,
    FuelReportCreate,
    FuelReportListItem,
    FuelReportResponse,
    FuelReportUpdate,
    FuelTrendPoint,
    MonthSummaryResponse,
)
from workforce.fuel.service import FuelService
from workforce.system_settings.runtime import RuntimeConfig

router = APIRouter(prefix="", tags=["fuel"])

_MONTH = Query(..., pattern=r"^\d{4}-\d{2}$", description="YYYY-MM")


# ── Reports ─────────────────────────────────────────────────────────

@router.post("/reports", response_model=FuelReportResponse, status_code=201)
async def create_report(
    body: FuelReportCreate,
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    config: RuntimeConfig = Depends(get_runtime_config),
    db: AsyncSession = Depends(get_db),
):
    """Submit a day's job lines; 409 if that day already has a report."""
    ip = request.client.host if request.client else None
    return await FuelService.create_report(db, user, body, config, ip_address=ip)


@router.get("/reports", response_model=list[FuelReportListItem])
async def list_reports(
    employee_id: Optional[uuid.UUID] = Query(None),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await FuelService.list_history(db, user, employee_id=employee_id)


@router.get("/reports/{report_id}", response_model=FuelReportResponse)
async def get_report(
    report_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await FuelService.get_report(db, user, report_id)


@router.put("/reports/{report_id}", response_model=FuelReportResponse)
async def update_report(
    report_id: uuid.UUID,
    body: FuelReportUpdate,
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    config: RuntimeConfig = Depends(get_runtime_config),
    db: AsyncSession = Depends(get_db),
):
    """Replace every item of a report; totals are recomputed."""
    ip = request.client.host if request.client else None
    return await FuelService.update_report(db, user, report_id, body, config, ip_address=ip)


@router.delete("/reports/{report_id}", status_code=204)
async def delete_report(
    report_id: uuid.UUID,
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    ip = request.client.host if request.client else None
    await FuelService.delete_report(db, user, report_id, ip_address=ip)
    return Response(status_code=204)


# ── Management views ────────────────────────────────────────────────

@router.get("/summary", response_model=MonthSummaryResponse)
async def month_summary(
    month: str = _MONTH,
    user: CurrentUser = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    """Per-employee totals for one calendar month."""
    return await FuelService.month_summary(db, user, month)


@router.get("/employees/{employee_id}/months", response_model=list[EmployeeMonthTotals])
async def employee_months(
    employee_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await FuelService.employee_months(db, user, employee_id)


@router.get("/employees/{employee_id}/months/{month}", response_model=list[FuelItemDetail])
async def month_details(
    employee_id: uuid.UUID,
    month: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Line items of one month with their share of each day's amount."""
    details = await FuelService.month_details(db, user, employee_id, month)
    return [
        d.model_copy(update={"km": money(d.km), "amount": money(d.amount)})
        for d in details
    ]


@router.get("/trend", response_model=list[FuelTrendPoint])
async def monthly_trend(
    user: CurrentUser = Depends(get_current_user),
    today: date = Depends(get_today),
    db: AsyncSession = Depends(get_db),
):
    """Reimbursement totals for the last six calendar months."""
    return await FuelService.monthly_trend(db, user, today)


# ── CSV export ──────────────────────────────────────────────────────

@router.get("/export/summary")
async def export_summary(
    month: str = _MONTH,
    user: CurrentUser = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    content = await FuelService.export_month_summary_csv(db, user, month)
    return csv_response(content, f"fuel-summary-{month}.csv")


@router.get("/employees/{employee_id}/months/{month}/export")
async def export_month_details(
    employee_id: uuid.UUID,
    month: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    content = await FuelService.export_month_details_csv(db, user, employee_id, month)
    return csv_response(content, f"fuel-{employee_id}-{month}.csv")


# ── CSV import ──────────────────────────────────────────────────────

@router.get("/import/template")
async def import_template(user: CurrentUser = Depends(get_current_user)):
    return csv_response(IMPORT_TEMPLATE, "fuel_import_template.csv")


@router.post("/import", response_model=FuelImportResult, status_code=201)
@limiter.limit("10/minute")
async def import_reports(
    request: Request,
    user: CurrentUser = Depends(require_role(UserRole.manager)),
    config: RuntimeConfig = Depends(get_runtime_config),
    db: AsyncSession = Depends(get_db),
):
    """Import a CSV of ``email,date,job_no,area,km`` rows sent as the raw body.

    All or nothing: any bad row, unknown email or existing report rejects
    the whole file.
    """
    raw = await request.body()
    if len(raw) > settings.IMPORT_MAX_BYTES:
        raise ValidationException(
            {"file": [f"CSV exceeds {settings.IMPORT_MAX_BYTES} bytes."]}
        )
    try:
        content = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationException({"file": ["CSV must be UTF-8 encoded."]})

    ip = request.client.host if request.client else None
    return await FuelService.import_csv(db, user, content, config, ip_address=ip)
