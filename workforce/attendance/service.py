"""Attendance service layer — marking, listing, cycle reports, summaries.

Uses:
  - ``AttendanceRepository`` for every read and write
  - the pure rules in ``attendance.cycle`` and ``attendance.rules``
  - ``RuntimeConfig`` for the late-arrival threshold, passed in by the caller
  - ``create_audit_entry`` from workforce.common.audit
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from workforce.attendance.cycle import Cycle, cycle_with_offset, past_cycles
from workforce.attendance.models import AttendanceRecord
from workforce.attendance.repository import (
    AttendanceFilter,
    AttendanceRepository,
    AttendanceWrite,
    SqlAttendanceRepository,
)
from workforce.attendance.rules import (
    AttendanceSummary,
    derive_status,
    parse_time_of_day,
    summarize,
)
from workforce.attendance.schemas import (
    AttendanceRecordCreate,
    AttendanceRecordResponse,
    AttendanceSummaryResponse,
    CycleReportResponse,
    CycleResponse,
    PeriodSummaryResponse,
    TrendPoint,
)
from workforce.auth.dependencies import CurrentUser, ensure_manager, ensure_self_or_manager
from workforce.common.audit import create_audit_entry
from workforce.common.constants import (
    ATTENDANCE_LIST_LIMIT,
    ATTENDANCE_TREND_DAYS,
    DEFAULT_PAST_CYCLES,
    AttendanceStatus,
    AuditAction,
)
from workforce.common.csv_export import render_csv
from workforce.common.exceptions import (
    ConflictError,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from workforce.common.dates import last_n_days
from workforce.employees.schemas import EmployeeBrief
from workforce.employees.service import EmployeeService
from workforce.system_settings.runtime import RuntimeConfig

ATTENDANCE_EXPORT_HEADER = ("Employee", "Date", "Check-in", "Check-out", "Status", "Notes")


# ── Helpers ─────────────────────────────────────────────────────────

def _cycle_response(cycle: Cycle, offset: int) -> CycleResponse:
    return CycleResponse(
        offset=offset,
        start_date=cycle.start_date,
        end_date=cycle.end_date,
        label=cycle.label,
    )


def _summary_response(summary: AttendanceSummary) -> AttendanceSummaryResponse:
    return AttendanceSummaryResponse.model_validate(summary)


def _snapshot(record: AttendanceRecord) -> dict:
    return {
        "employee_id": record.employee_id,
        "date": record.date,
        "status": record.status.value,
        "check_in_time": record.check_in_time,
        "check_out_time": record.check_out_time,
        "notes": record.notes,
    }


def _scope_employee(user: CurrentUser, employee_id: Optional[uuid.UUID]) -> Optional[uuid.UUID]:
    """Employees are pinned to their own rows; managers may pick anyone."""
    if user.is_manager:
        return employee_id
    if employee_id is not None and employee_id != user.id:
        raise ForbiddenException(detail="Employees can only access their own records.")
    return user.id


def _format_time(value) -> str:
    return value.strftime("%H:%M") if value is not None else ""


def _build_write(
    data: AttendanceRecordCreate,
    config: RuntimeConfig,
    previous_status: AttendanceStatus,
) -> AttendanceWrite:
    check_in = (
        parse_time_of_day(data.check_in_time, field="check_in_time")
        if data.check_in_time else None
    )
    check_out = (
        parse_time_of_day(data.check_out_time, field="check_out_time")
        if data.check_out_time else None
    )
    if check_in is not None and check_out is not None and check_out < check_in:
        raise ValidationException(
            {"check_out_time": ["Check-out time cannot be before check-in time."]}
        )

    if data.status is not None:
        # Explicit choice from the person marking attendance
        status = data.status
    else:
        status = derive_status(check_in, config.late_arrival_time, previous_status)

    return AttendanceWrite(
        employee_id=data.employee_id,
        date=data.date,
        status=status,
        check_in_time=check_in,
        check_out_time=check_out,
        notes=(data.notes or "").strip() or None,
    )


# ═════════════════════════════════════════════════════════════════════
# AttendanceService
# ═════════════════════════════════════════════════════════════════════


class AttendanceService:
    """Attendance operations. Callers pass the current user explicitly."""

    @staticmethod
    def repository(db: AsyncSession) -> AttendanceRepository:
        return SqlAttendanceRepository(db)

    # ── Cycles ──────────────────────────────────────────────────────

    @staticmethod
    def list_cycles(reference: date, count: int = DEFAULT_PAST_CYCLES) -> list[CycleResponse]:
        """Current cycle plus *count* previous ones, most recent first."""
        return [
            _cycle_response(cycle, -offset)
            for offset, cycle in enumerate(past_cycles(reference, count))
        ]

    # ── Marking ─────────────────────────────────────────────────────

    @staticmethod
    async def create_record(
        db: AsyncSession,
        user: CurrentUser,
        data: AttendanceRecordCreate,
        config: RuntimeConfig,
        *,
        ip_address: Optional[str] = None,
    ) -> AttendanceRecord:
        """Insert a new record; a record for the same day is a conflict."""
        ensure_manager(user)
        await EmployeeService.get_employee(db, data.employee_id)
        repo = AttendanceService.repository(db)

        if await repo.get_for_date(data.employee_id, data.date) is not None:
            raise ConflictError(
                "date",
                data.date.isoformat(),
                detail=f"Attendance for this employee on {data.date.isoformat()} already exists.",
            )

        write = _build_write(data, config, AttendanceStatus.present)
        record = await repo.insert(write, actor_id=user.id)

        await create_audit_entry(
            db,
            action=AuditAction.create,
            entity_type="attendance_record",
            entity_id=record.id,
            actor_id=user.id,
            new_values=_snapshot(record),
            ip_address=ip_address,
        )
        return record

    @staticmethod
    async def upsert_record(
        db: AsyncSession,
        user: CurrentUser,
        data: AttendanceRecordCreate,
        config: RuntimeConfig,
        *,
        ip_address: Optional[str] = None,
    ) -> AttendanceRecord:
        """Insert or overwrite the record for (employee, date)."""
        ensure_manager(user)
        await EmployeeService.get_employee(db, data.employee_id)
        repo = AttendanceService.repository(db)

        existing = await repo.get_for_date(data.employee_id, data.date)
        old_values = _snapshot(existing) if existing is not None else None
        previous = existing.status if existing is not None else AttendanceStatus.present

        write = _build_write(data, config, previous)
        record = await repo.upsert(write, actor_id=user.id)

        await create_audit_entry(
            db,
            action=AuditAction.upsert,
            entity_type="attendance_record",
            entity_id=record.id,
            actor_id=user.id,
            old_values=old_values,
            new_values=_snapshot(record),
            ip_address=ip_address,
        )
        return record

    @staticmethod
    async def delete_record(
        db: AsyncSession,
        user: CurrentUser,
        record_id: uuid.UUID,
        *,
        ip_address: Optional[str] = None,
    ) -> None:
        ensure_manager(user)
        repo = AttendanceService.repository(db)
        record = await repo.get(record_id)
        if record is None:
            raise NotFoundException("AttendanceRecord", str(record_id))

        old_values = _snapshot(record)
        await repo.delete(record)
        await create_audit_entry(
            db,
            action=AuditAction.delete,
            entity_type="attendance_record",
            entity_id=record_id,
            actor_id=user.id,
            old_values=old_values,
            ip_address=ip_address,
        )

    # ── Listing ─────────────────────────────────────────────────────

    @staticmethod
    async def list_records(
        db: AsyncSession,
        user: CurrentUser,
        *,
        employee_id: Optional[uuid.UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = ATTENDANCE_LIST_LIMIT,
    ) -> Sequence[AttendanceRecord]:
        """Latest records first, capped at *limit*."""
        if start_date and end_date and start_date > end_date:
            raise ValidationException(
                {"date_range": ["start_date must be on or before end_date."]}
            )
        criteria = AttendanceFilter(
            employee_id=_scope_employee(user, employee_id),
            start_date=start_date,
            end_date=end_date,
            limit=limit,
        )
        return await AttendanceService.repository(db).list(criteria)

    @staticmethod
    async def export_csv(
        db: AsyncSession,
        user: CurrentUser,
        *,
        employee_id: Optional[uuid.UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> str:
        """CSV of the same rows ``list_records`` returns."""
        records = await AttendanceService.list_records(
            db, user, employee_id=employee_id, start_date=start_date, end_date=end_date,
        )
        rows = (
            (
                record.employee_name or "",
                record.date.isoformat(),
                _format_time(record.check_in_time),
                _format_time(record.check_out_time) or "N/A",
                record.status.value,
                record.notes or "",
            )
            for record in records
        )
        return render_csv(ATTENDANCE_EXPORT_HEADER, rows)

    # ── Summaries ───────────────────────────────────────────────────

    @staticmethod
    async def month_summary(
        db: AsyncSession,
        user: CurrentUser,
        today: date,
        *,
        employee_id: Optional[uuid.UUID] = None,
    ) -> PeriodSummaryResponse:
        """Present/late/absent counts from the 1st of this month to *today*."""
        start = date(today.year, today.month, 1)
        records = await AttendanceService.repository(db).list(
            AttendanceFilter(
                employee_id=_scope_employee(user, employee_id),
                start_date=start,
                end_date=today,
            )
        )
        return PeriodSummaryResponse(
            start_date=start,
            end_date=today,
            summary=_summary_response(summarize(records)),
        )

    @staticmethod
    async def cycle_report(
        db: AsyncSession,
        user: CurrentUser,
        employee_id: uuid.UUID,
        today: date,
        offset: int = 0,
    ) -> CycleReportResponse:
        """One employee's records and summary for the cycle at *offset*."""
        ensure_self_or_manager(user, employee_id)
        employee = await EmployeeService.get_employee(db, employee_id)

        cycle = cycle_with_offset(today, offset)
        records = await AttendanceService.repository(db).list(
            AttendanceFilter(
                employee_id=employee_id,
                start_date=cycle.start_date,
                end_date=cycle.end_date,
            )
        )
        ordered = sorted(records, key=lambda r: r.date)
        return CycleReportResponse(
            employee=EmployeeBrief.model_validate(employee),
            cycle=_cycle_response(cycle, offset),
            summary=_summary_response(summarize(ordered)),
            records=[AttendanceRecordResponse.model_validate(r) for r in ordered],
        )

    @staticmethod
    async def daily_trend(
        db: AsyncSession,
        user: CurrentUser,
        today: date,
        days: int = ATTENDANCE_TREND_DAYS,
    ) -> list[TrendPoint]:
        """Present and late counts per day for the last *days* days."""
        window = last_n_days(today, days)
        counts = await AttendanceService.repository(db).count_by_day(
            window[0], window[-1], employee_id=_scope_employee(user, None),
        )
        return [
            TrendPoint(
                date=day,
                label=day.strftime("%b %d"),
                present=counts.get((day, AttendanceStatus.present), 0),
                late=counts.get((day, AttendanceStatus.late), 0),
            )
            for day in window
        ]
