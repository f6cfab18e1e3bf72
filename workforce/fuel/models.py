"""Fuel reimbursement ORM models: FuelReport, FuelReportItem."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workforce.database import Base

if TYPE_CHECKING:
    from workforce.employees.models import Employee


class FuelReport(Base):
    """One employee's travel for one day. Totals are stored unrounded."""

    __tablename__ = "fuel_reports"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "date", name="uq_fuel_report_emp_date"),
        sa.Index("ix_fuel_reports_date", "date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"), nullable=False
    )
    date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    total_km: Mapped[Decimal] = mapped_column(sa.Numeric(14, 4), nullable=False, default=0)
    total_amount: Mapped[Decimal] = mapped_column(sa.Numeric(18, 6), nullable=False, default=0)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id")
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    employee: Mapped[Employee] = relationship(foreign_keys=[employee_id], lazy="joined")
    items: Mapped[list[FuelReportItem]] = relationship(
        back_populates="report",
        cascade="all, delete-orphan",
        order_by="FuelReportItem.position",
        lazy="selectin",
    )

    @property
    def employee_name(self) -> Optional[str]:
        return self.employee.full_name if self.employee is not None else None

    def __repr__(self) -> str:
        return f"<FuelReport {self.employee_id} {self.date} km={self.total_km}>"


class FuelReportItem(Base):
    """One job line: where the employee went and how far."""

    __tablename__ = "fuel_report_items"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    report_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("fuel_reports.id", ondelete="CASCADE"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    job_no: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    area: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    km: Mapped[Decimal] = mapped_column(sa.Numeric(14, 4), nullable=False)

    report: Mapped[FuelReport] = relationship(back_populates="items")
