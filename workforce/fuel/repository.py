"""Fuel report persistence seam."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Protocol, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.fuel.aggregator import FuelLineItem, ReportTotals
from workforce.fuel.models import FuelReport, FuelReportItem


@dataclass(frozen=True)
class FuelReportFilter:
    employee_id: Optional[uuid.UUID] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class FuelReportRepository(Protocol):
    async def list(self, criteria: FuelReportFilter) -> Sequence[FuelReport]:
        raise NotImplementedError

    async def get(self, report_id: uuid.UUID) -> Optional[FuelReport]:
        raise NotImplementedError

    async def get_for_date(self, employee_id: uuid.UUID, day: date) -> Optional[FuelReport]:
        raise NotImplementedError

    async def existing_keys(
        self, keys: Iterable[tuple[uuid.UUID, date]],
    ) -> set[tuple[uuid.UUID, date]]:
        """Which of the ``(employee_id, date)`` pairs already have a report."""
        raise NotImplementedError

    async def insert(
        self,
        employee_id: uuid.UUID,
        day: date,
        items: Sequence[FuelLineItem],
        totals: ReportTotals,
        *,
        actor_id: uuid.UUID,
    ) -> FuelReport:
        raise NotImplementedError

    async def replace_items(
        self,
        report: FuelReport,
        items: Sequence[FuelLineItem],
        totals: ReportTotals,
        *,
        day: Optional[date] = None,
    ) -> FuelReport:
        """Swap the whole item set and the stored totals."""
        raise NotImplementedError

    async def delete(self, report: FuelReport) -> None:
        raise NotImplementedError


def _item_rows(items: Sequence[FuelLineItem]) -> list[FuelReportItem]:
    return [
        FuelReportItem(position=position, job_no=item.job_no, area=item.area, km=item.km)
        for position, item in enumerate(items)
    ]


class SqlFuelReportRepository:
    """``FuelReportRepository`` over SQLAlchemy."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def list(self, criteria: FuelReportFilter) -> Sequence[FuelReport]:
        query = select(FuelReport)
        if criteria.employee_id is not None:
            query = query.where(FuelReport.employee_id == criteria.employee_id)
        if criteria.start_date is not None:
            query = query.where(FuelReport.date >= criteria.start_date)
        if criteria.end_date is not None:
            query = query.where(FuelReport.date <= criteria.end_date)
        query = query.order_by(FuelReport.date.desc())
        result = await self._db.execute(query)
        return result.scalars().unique().all()

    async def get(self, report_id: uuid.UUID) -> Optional[FuelReport]:
        return await self._db.get(FuelReport, report_id)

    async def get_for_date(self, employee_id: uuid.UUID, day: date) -> Optional[FuelReport]:
        result = await self._db.execute(
            select(FuelReport).where(
                FuelReport.employee_id == employee_id,
                FuelReport.date == day,
            )
        )
        return result.scalars().first()

    async def existing_keys(
        self, keys: Iterable[tuple[uuid.UUID, date]],
    ) -> set[tuple[uuid.UUID, date]]:
        wanted = set(keys)
        if not wanted:
            return set()
        result = await self._db.execute(
            select(FuelReport.employee_id, FuelReport.date).where(
                FuelReport.employee_id.in_(list({emp_id for emp_id, _ in wanted})),
                FuelReport.date.in_(list({day for _, day in wanted})),
            )
        )
        return {(emp_id, day) for emp_id, day in result.all()} & wanted

    async def insert(
        self,
        employee_id: uuid.UUID,
        day: date,
        items: Sequence[FuelLineItem],
        totals: ReportTotals,
        *,
        actor_id: uuid.UUID,
    ) -> FuelReport:
        report = FuelReport(
            employee_id=employee_id,
            date=day,
            total_km=totals.total_km,
            total_amount=totals.total_amount,
            created_by=actor_id,
            items=_item_rows(items),
        )
        self._db.add(report)
        await self._db.flush()
        await self._db.refresh(report, attribute_names=["employee", "items"])
        return report

    async def replace_items(
        self,
        report: FuelReport,
        items: Sequence[FuelLineItem],
        totals: ReportTotals,
        *,
        day: Optional[date] = None,
    ) -> FuelReport:
        report.items = _item_rows(items)
        report.total_km = totals.total_km
        report.total_amount = totals.total_amount
        if day is not None:
            report.date = day
        await self._db.flush()
        await self._db.refresh(report, attribute_names=["items"])
        return report

    async def delete(self, report: FuelReport) -> None:
        await self._db.delete(report)
        await self._db.flush()
