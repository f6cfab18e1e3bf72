"""Attendance persistence seam.

Services talk to ``AttendanceRepository``; ``SqlAttendanceRepository`` is
the SQLAlchemy implementation bound to one ``AsyncSession``.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, time
from typing import Optional, Protocol, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.attendance.models import AttendanceRecord
from workforce.common.constants import AttendanceStatus


@dataclass(frozen=True)
class AttendanceFilter:
    employee_id: Optional[uuid.UUID] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    limit: Optional[int] = None


@dataclass(frozen=True)
class AttendanceWrite:
    employee_id: uuid.UUID
    date: date
    status: AttendanceStatus
    check_in_time: Optional[time] = None
    check_out_time: Optional[time] = None
    notes: Optional[str] = None


class AttendanceRepository(Protocol):
    async def list(self, criteria: AttendanceFilter) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    async def get(self, record_id: uuid.UUID) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    async def get_for_date(self, employee_id: uuid.UUID, day: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    async def insert(self, data: AttendanceWrite, *, actor_id: uuid.UUID) -> AttendanceRecord:
        raise NotImplementedError

    async def upsert(self, data: AttendanceWrite, *, actor_id: uuid.UUID) -> AttendanceRecord:
        """Insert, or overwrite the row already stored for (employee, date)."""
        raise NotImplementedError

    async def delete(self, record: AttendanceRecord) -> None:
        raise NotImplementedError

    async def count_by_day(
        self, start_date: date, end_date: date, employee_id: Optional[uuid.UUID] = None,
    ) -> dict[tuple[date, AttendanceStatus], int]:
        raise NotImplementedError


class SqlAttendanceRepository:
    """``AttendanceRepository`` over SQLAlchemy."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def list(self, criteria: AttendanceFilter) -> Sequence[AttendanceRecord]:
        query = select(AttendanceRecord)
        if criteria.employee_id is not None:
            query = query.where(AttendanceRecord.employee_id == criteria.employee_id)
        if criteria.start_date is not None:
            query = query.where(AttendanceRecord.date >= criteria.start_date)
        if criteria.end_date is not None:
            query = query.where(AttendanceRecord.date <= criteria.end_date)
        query = query.order_by(AttendanceRecord.date.desc(), AttendanceRecord.created_at.desc())
        if criteria.limit is not None:
            query = query.limit(criteria.limit)
        result = await self._db.execute(query)
        return result.scalars().unique().all()

    async def get(self, record_id: uuid.UUID) -> Optional[AttendanceRecord]:
        return await self._db.get(AttendanceRecord, record_id)

    async def get_for_date(self, employee_id: uuid.UUID, day: date) -> Optional[AttendanceRecord]:
        result = await self._db.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.employee_id == employee_id,
                AttendanceRecord.date == day,
            )
        )
        return result.scalars().first()

    async def insert(self, data: AttendanceWrite, *, actor_id: uuid.UUID) -> AttendanceRecord:
        record = AttendanceRecord(
            employee_id=data.employee_id,
            date=data.date,
            status=data.status,
            check_in_time=data.check_in_time,
            check_out_time=data.check_out_time,
            notes=data.notes,
            created_by=actor_id,
        )
        self._db.add(record)
        await self._db.flush()
        await self._db.refresh(record, attribute_names=["employee"])
        return record

    async def upsert(self, data: AttendanceWrite, *, actor_id: uuid.UUID) -> AttendanceRecord:
        record = await self.get_for_date(data.employee_id, data.date)
        if record is None:
            return await self.insert(data, actor_id=actor_id)
        record.status = data.status
        record.check_in_time = data.check_in_time
        record.check_out_time = data.check_out_time
        record.notes = data.notes
        await self._db.flush()
        return record

    async def delete(self, record: AttendanceRecord) -> None:
        await self._db.delete(record)
        await self._db.flush()

    async def count_by_day(
        self, start_date: date, end_date: date, employee_id: Optional[uuid.UUID] = None,
    ) -> dict[tuple[date, AttendanceStatus], int]:
        query = (
            select(AttendanceRecord.date, AttendanceRecord.status, func.count())
            .where(
                AttendanceRecord.date >= start_date,
                AttendanceRecord.date <= end_date,
            )
            .group_by(AttendanceRecord.date, AttendanceRecord.status)
        )
        if employee_id is not None:
            query = query.where(AttendanceRecord.employee_id == employee_id)
        result = await self._db.execute(query)
        return {(day, AttendanceStatus(status)): count for day, status, count in result.all()}
