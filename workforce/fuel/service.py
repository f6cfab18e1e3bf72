"""Fuel reimbursement service layer.

Daily reports, management summaries, drill-downs, CSV import and export.
Every amount is computed by ``fuel.aggregator`` with the rate from the
``RuntimeConfig`` the caller passes in.
"""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from workforce.auth.dependencies import CurrentUser, ensure_manager, ensure_self_or_manager
from workforce.common.audit import create_audit_entry
from workforce.common.constants import (
    EXPORT_DATE_FORMAT,
    FUEL_TREND_MONTHS,
    MONTH_ABBREVIATIONS,
    AuditAction,
)
from workforce.common.csv_export import format_decimal, render_csv
from workforce.common.dates import last_n_months, month_bounds, month_key, parse_month_key
from workforce.common.exceptions import (
    ConflictError,
    NotFoundException,
    UnresolvedEmployeesException,
)
from workforce.employees.service import EmployeeService
from workforce.fuel.aggregator import (
    ZERO,
    FuelLineItem,
    ReportTotals,
    aggregate_by_employee_and_month,
    allocate_amounts,
    money,
    report_totals,
)
from workforce.fuel.csv_import import parse_fuel_csv
from workforce.fuel.models import FuelReport
from workforce.fuel.repository import (
    FuelReportFilter,
    FuelReportRepository,
    SqlFuelReportRepository,
)
from workforce.fuel.schemas import (
    EmployeeFuelSummary,
    EmployeeMonthTotals,
    FuelImportResult,
    FuelItemDetail,
    FuelItemInput,
    FuelItemResponse,
    FuelReportCreate,
    FuelReportListItem,
    FuelReportResponse,
    FuelReportUpdate,
    FuelTrendPoint,
    MonthSummaryResponse,
)
from workforce.system_settings.runtime import RuntimeConfig

logger = logging.getLogger(__name__)

DETAIL_EXPORT_HEADER = ("Date", "Job No", "Area", "KM", "Amount")
SUMMARY_EXPORT_HEADER = ("Employee", "Total KM", "Total Amount")


# ── Helpers ─────────────────────────────────────────────────────────

def _line_items(items: Sequence[FuelItemInput]) -> list[FuelLineItem]:
    return [FuelLineItem(job_no=i.job_no, area=i.area, km=i.km) for i in items]


def _month_label(year: int, month: int) -> str:
    return f"{MONTH_ABBREVIATIONS[month - 1]} {year}"


def _snapshot(report: FuelReport) -> dict:
    return {
        "employee_id": report.employee_id,
        "date": report.date,
        "total_km": report.total_km,
        "total_amount": report.total_amount,
        "items": [
            {"job_no": item.job_no, "area": item.area, "km": item.km}
            for item in report.items
        ],
    }


def _to_response(report: FuelReport) -> FuelReportResponse:
    amounts = allocate_amounts(report.items, report.total_amount)
    return FuelReportResponse(
        id=report.id,
        employee_id=report.employee_id,
        employee_name=report.employee_name,
        date=report.date,
        total_km=money(report.total_km),
        total_amount=money(report.total_amount),
        items=[
            FuelItemResponse(
                job_no=item.job_no,
                area=item.area,
                km=money(item.km),
                amount=money(amount),
            )
            for item, amount in zip(report.items, amounts)
        ],
    )


def _conflict(day: date) -> ConflictError:
    return ConflictError(
        "date",
        day.isoformat(),
        detail=f"A fuel report for this employee on {day.isoformat()} already exists.",
    )


# ═════════════════════════════════════════════════════════════════════
# FuelService
# ═════════════════════════════════════════════════════════════════════


class FuelService:
    """Fuel report operations. Callers pass the current user explicitly."""

    @staticmethod
    def repository(db: AsyncSession) -> FuelReportRepository:
        return SqlFuelReportRepository(db)

    @staticmethod
    async def _get_visible(
        db: AsyncSession, user: CurrentUser, report_id: uuid.UUID,
    ) -> FuelReport:
        report = await FuelService.repository(db).get(report_id)
        if report is None:
            raise NotFoundException("FuelReport", str(report_id))
        ensure_self_or_manager(user, report.employee_id)
        return report

    # ── Create ──────────────────────────────────────────────────────

    @staticmethod
    async def create_report(
        db: AsyncSession,
        user: CurrentUser,
        data: FuelReportCreate,
        config: RuntimeConfig,
        *,
        ip_address: Optional[str] = None,
    ) -> FuelReportResponse:
        """Store a day's report with totals at the current rate."""
        employee_id = data.employee_id or user.id
        ensure_self_or_manager(user, employee_id)
        await EmployeeService.get_employee(db, employee_id)

        repo = FuelService.repository(db)
        if await repo.get_for_date(employee_id, data.date) is not None:
            raise _conflict(data.date)

        items = _line_items(data.items)
        totals = report_totals(items, config.fuel_rate_per_km)
        report = await repo.insert(employee_id, data.date, items, totals, actor_id=user.id)

        await create_audit_entry(
            db,
            action=AuditAction.create,
            entity_type="fuel_report",
            entity_id=report.id,
            actor_id=user.id,
            new_values=_snapshot(report),
            ip_address=ip_address,
        )
        return _to_response(report)

    # ── Read ────────────────────────────────────────────────────────

    @staticmethod
    async def get_report(
        db: AsyncSession, user: CurrentUser, report_id: uuid.UUID,
    ) -> FuelReportResponse:
        """A report with each item's share of the amount."""
        return _to_response(await FuelService._get_visible(db, user, report_id))

    @staticmethod
    async def list_history(
        db: AsyncSession,
        user: CurrentUser,
        *,
        employee_id: Optional[uuid.UUID] = None,
    ) -> list[FuelReportListItem]:
        """All reports of one employee (the caller by default), newest first."""
        employee_id = employee_id or user.id
        ensure_self_or_manager(user, employee_id)
        reports = await FuelService.repository(db).list(
            FuelReportFilter(employee_id=employee_id)
        )
        return [
            FuelReportListItem(
                id=r.id,
                date=r.date,
                total_km=money(r.total_km),
                total_amount=money(r.total_amount),
                item_count=len(r.items),
            )
            for r in reports
        ]

    # ── Update / delete ─────────────────────────────────────────────

    @staticmethod
    async def update_report(
        db: AsyncSession,
        user: CurrentUser,
        report_id: uuid.UUID,
        data: FuelReportUpdate,
        config: RuntimeConfig,
        *,
        ip_address: Optional[str] = None,
    ) -> FuelReportResponse:
        """Replace all items and recompute totals at the current rate."""
        report = await FuelService._get_visible(db, user, report_id)
        repo = FuelService.repository(db)

        new_day = data.date if data.date and data.date != report.date else None
        if new_day is not None and await repo.get_for_date(report.employee_id, new_day) is not None:
            raise _conflict(new_day)

        old_values = _snapshot(report)
        items = _line_items(data.items)
        totals = report_totals(items, config.fuel_rate_per_km)
        report = await repo.replace_items(report, items, totals, day=new_day)

        await create_audit_entry(
            db,
            action=AuditAction.update,
            entity_type="fuel_report",
            entity_id=report.id,
            actor_id=user.id,
            old_values=old_values,
            new_values=_snapshot(report),
            ip_address=ip_address,
        )
        return _to_response(report)

    @staticmethod
    async def delete_report(
        db: AsyncSession,
        user: CurrentUser,
        report_id: uuid.UUID,
        *,
        ip_address: Optional[str] = None,
    ) -> None:
        report = await FuelService._get_visible(db, user, report_id)
        old_values = _snapshot(report)
        await FuelService.repository(db).delete(report)
        await create_audit_entry(
            db,
            action=AuditAction.delete,
            entity_type="fuel_report",
            entity_id=report_id,
            actor_id=user.id,
            old_values=old_values,
            ip_address=ip_address,
        )

    # ── Management views ────────────────────────────────────────────

    @staticmethod
    async def month_summary(
        db: AsyncSession, user: CurrentUser, month: str,
    ) -> MonthSummaryResponse:
        """Totals for every active employee in a calendar month.

        Employees without reports are listed with zero totals.
        """
        ensure_manager(user)
        year, month_no = parse_month_key(month)
        start, end = month_bounds(year, month_no)

        employees = await EmployeeService.list_active(db)
        reports = await FuelService.repository(db).list(
            FuelReportFilter(start_date=start, end_date=end)
        )
        totals = aggregate_by_employee_and_month(reports)
        counts: dict[uuid.UUID, int] = defaultdict(int)
        for report in reports:
            counts[report.employee_id] += 1

        key_month = month_key(start)
        rows = []
        grand = ReportTotals()
        for employee in employees:
            emp_totals = totals.get((employee.id, key_month), ReportTotals())
            grand = grand + emp_totals
            rows.append(
                EmployeeFuelSummary(
                    employee_id=employee.id,
                    full_name=employee.full_name,
                    email=employee.email,
                    total_km=money(emp_totals.total_km),
                    total_amount=money(emp_totals.total_amount),
                    report_count=counts.get(employee.id, 0),
                )
            )
        return MonthSummaryResponse(
            month=key_month,
            employees=rows,
            total_km=money(grand.total_km),
            total_amount=money(grand.total_amount),
        )

    @staticmethod
    async def employee_months(
        db: AsyncSession, user: CurrentUser, employee_id: uuid.UUID,
    ) -> list[EmployeeMonthTotals]:
        """Per-month totals of one employee, most recent month first."""
        ensure_self_or_manager(user, employee_id)
        await EmployeeService.get_employee(db, employee_id)

        reports = await FuelService.repository(db).list(
            FuelReportFilter(employee_id=employee_id)
        )
        totals = aggregate_by_employee_and_month(reports)
        counts: dict[str, int] = defaultdict(int)
        for report in reports:
            counts[month_key(report.date)] += 1

        rows = []
        for (_, key), month_totals in sorted(totals.items(), key=lambda kv: kv[0][1], reverse=True):
            year, month_no = parse_month_key(key)
            rows.append(
                EmployeeMonthTotals(
                    month=key,
                    label=_month_label(year, month_no),
                    total_km=money(month_totals.total_km),
                    total_amount=money(month_totals.total_amount),
                    report_count=counts[key],
                )
            )
        return rows

    @staticmethod
    async def month_details(
        db: AsyncSession, user: CurrentUser, employee_id: uuid.UUID, month: str,
    ) -> list[FuelItemDetail]:
        """Every line item of one employee in one month with its amount.

        Amounts are kept unrounded here; responses and exports round them.
        """
        ensure_self_or_manager(user, employee_id)
        year, month_no = parse_month_key(month)
        start, end = month_bounds(year, month_no)

        reports = await FuelService.repository(db).list(
            FuelReportFilter(employee_id=employee_id, start_date=start, end_date=end)
        )
        details: list[FuelItemDetail] = []
        for report in reports:
            amounts = allocate_amounts(report.items, report.total_amount)
            for item, amount in zip(report.items, amounts):
                details.append(
                    FuelItemDetail(
                        report_id=report.id,
                        date=report.date,
                        job_no=item.job_no,
                        area=item.area,
                        km=Decimal(item.km),
                        amount=amount,
                    )
                )
        return details

    @staticmethod
    async def monthly_trend(
        db: AsyncSession,
        user: CurrentUser,
        today: date,
        months: int = FUEL_TREND_MONTHS,
    ) -> list[FuelTrendPoint]:
        """Reimbursement per calendar month, oldest first, whole currency units."""
        window = last_n_months(today.year, today.month, months)
        start, _ = month_bounds(*window[0])
        _, end = month_bounds(*window[-1])

        reports = await FuelService.repository(db).list(
            FuelReportFilter(
                employee_id=None if user.is_manager else user.id,
                start_date=start,
                end_date=end,
            )
        )
        per_month: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for (_, key), totals in aggregate_by_employee_and_month(reports).items():
            per_month[key] += totals.total_amount

        points = []
        for year, month_no in window:
            key = month_key(date(year, month_no, 1))
            amount = per_month.get(key, ZERO).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
            points.append(
                FuelTrendPoint(month=key, label=_month_label(year, month_no), total_amount=int(amount))
            )
        return points

    # ── CSV export ──────────────────────────────────────────────────

    @staticmethod
    async def export_month_details_csv(
        db: AsyncSession, user: CurrentUser, employee_id: uuid.UUID, month: str,
    ) -> str:
        details = await FuelService.month_details(db, user, employee_id, month)
        rows = (
            (
                d.date.strftime(EXPORT_DATE_FORMAT),
                d.job_no,
                d.area,
                format_decimal(d.km),
                format_decimal(d.amount),
            )
            for d in details
        )
        return render_csv(DETAIL_EXPORT_HEADER, rows)

    @staticmethod
    async def export_month_summary_csv(
        db: AsyncSession, user: CurrentUser, month: str,
    ) -> str:
        """Employees with any travel in the month, with their totals."""
        summary = await FuelService.month_summary(db, user, month)
        rows = (
            (e.full_name, format_decimal(e.total_km), format_decimal(e.total_amount))
            for e in summary.employees
            if e.report_count > 0
        )
        return render_csv(SUMMARY_EXPORT_HEADER, rows)

    # ── CSV import ──────────────────────────────────────────────────

    @staticmethod
    async def import_csv(
        db: AsyncSession,
        user: CurrentUser,
        text: str,
        config: RuntimeConfig,
        *,
        ip_address: Optional[str] = None,
    ) -> FuelImportResult:
        """Create one report per ``(email, date)`` group; all or nothing.

        Every row is validated and every email resolved before anything is
        written. Any failure leaves the database untouched.
        """
        ensure_manager(user)
        groups = parse_fuel_csv(text)

        ids = await EmployeeService.resolve_emails(db, (g.email for g in groups))
        unresolved = sorted({g.email for g in groups if g.email not in ids})
        if unresolved:
            logger.info("Fuel import rejected: %d unresolved email(s)", len(unresolved))
            raise UnresolvedEmployeesException(unresolved)

        repo = FuelService.repository(db)
        clashes = await repo.existing_keys((ids[g.email], g.date) for g in groups)
        if clashes:
            first = next(g for g in groups if (ids[g.email], g.date) in clashes)
            logger.info("Fuel import rejected: %d report(s) already exist", len(clashes))
            raise ConflictError(
                "email+date",
                f"{first.email} {first.date.isoformat()}",
                detail=(
                    f"{len(clashes)} report(s) in the file already exist, "
                    f"e.g. {first.email} on {first.date.isoformat()}."
                ),
            )

        items_created = 0
        total_km = ZERO
        for group in groups:
            totals = report_totals(group.items, config.fuel_rate_per_km)
            await repo.insert(
                ids[group.email], group.date, group.items, totals, actor_id=user.id,
            )
            items_created += len(group.items)
            total_km += totals.total_km

        await create_audit_entry(
            db,
            action=AuditAction.import_batch,
            entity_type="fuel_import",
            entity_id=uuid.uuid4(),
            actor_id=user.id,
            new_values={
                "reports": len(groups),
                "items": items_created,
                "total_km": total_km,
            },
            ip_address=ip_address,
        )
        logger.info(
            "Fuel import accepted: %d report(s), %d item(s) by %s",
            len(groups), items_created, user.id,
        )
        return FuelImportResult(
            reports_created=len(groups),
            items_created=items_created,
            total_km=money(total_km),
        )
