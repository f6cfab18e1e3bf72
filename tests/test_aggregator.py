"""Fuel arithmetic — report totals, per-item allocation, monthly grouping."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from workforce.fuel.aggregator import (
    ZERO,
    FuelLineItem,
    ReportTotals,
    aggregate_by_employee_and_month,
    allocate_amounts,
    allocate_item_amount,
    money,
    report_totals,
)


# ── Helpers ─────────────────────────────────────────────────────────


def _item(km: str, job_no: str = "JOB", area: str = "Area") -> FuelLineItem:
    return FuelLineItem(job_no=job_no, area=area, km=Decimal(km))


@dataclass
class _Report:
    employee_id: uuid.UUID
    date: date
    total_km: Decimal
    total_amount: Decimal


# ═════════════════════════════════════════════════════════════════════
# 1. REPORT TOTALS
# ═════════════════════════════════════════════════════════════════════


class TestReportTotals:

    def test_sum_times_rate(self):
        totals = report_totals([_item("45"), _item("30")], Decimal("9"))

        assert totals == ReportTotals(total_km=Decimal("75"), total_amount=Decimal("675"))

    def test_no_rounding_of_stored_amount(self):
        totals = report_totals([_item("10.333")], Decimal("9.5"))

        assert totals.total_km == Decimal("10.333")
        assert totals.total_amount == Decimal("98.1635")

    def test_empty_items_are_zero(self):
        assert report_totals([], Decimal("9")) == ReportTotals(ZERO, ZERO)

    def test_accepts_non_decimal_km(self):
        class Row:
            km = 12.5

        assert report_totals([Row()], 2).total_amount == Decimal("25.0")


# ═════════════════════════════════════════════════════════════════════
# 2. ALLOCATION
# ═════════════════════════════════════════════════════════════════════


class TestAllocation:

    def test_share_by_distance(self):
        amount = allocate_item_amount(_item("30"), [_item("45")], Decimal("675"))

        assert amount == Decimal("270")

    def test_zero_distance_report_allocates_zero(self):
        amount = allocate_item_amount(_item("0"), [_item("0")], Decimal("0"))

        assert amount == ZERO

    def test_allocate_amounts_sums_back_to_total(self):
        items = [_item("45"), _item("30")]

        amounts = allocate_amounts(items, Decimal("675"))

        assert amounts == [Decimal("405"), Decimal("270")]
        assert sum(amounts) == Decimal("675")

    def test_allocate_amounts_single_item_gets_everything(self):
        assert allocate_amounts([_item("12")], Decimal("108")) == [Decimal("108")]


# ═════════════════════════════════════════════════════════════════════
# 3. GROUPING BY EMPLOYEE AND CALENDAR MONTH
# ═════════════════════════════════════════════════════════════════════


class TestAggregateByEmployeeAndMonth:

    def test_groups_by_calendar_month_not_cycle(self):
        emp = uuid.uuid4()
        reports = [
            # 26 and 27 Jan belong to the Feb attendance cycle but to January here
            _Report(emp, date(2025, 1, 26), Decimal("10"), Decimal("90")),
            _Report(emp, date(2025, 1, 27), Decimal("5"), Decimal("45")),
            _Report(emp, date(2025, 2, 1), Decimal("20"), Decimal("180")),
        ]

        totals = aggregate_by_employee_and_month(reports)

        assert totals[(emp, "2025-01")] == ReportTotals(Decimal("15"), Decimal("135"))
        assert totals[(emp, "2025-02")] == ReportTotals(Decimal("20"), Decimal("180"))

    def test_separates_employees(self):
        a, b = uuid.uuid4(), uuid.uuid4()
        reports = [
            _Report(a, date(2025, 3, 3), Decimal("1"), Decimal("9")),
            _Report(b, date(2025, 3, 3), Decimal("2"), Decimal("18")),
        ]

        totals = aggregate_by_employee_and_month(reports)

        assert list(totals) == [(a, "2025-03"), (b, "2025-03")]

    def test_empty_input(self):
        assert dict(aggregate_by_employee_and_month([])) == {}


def test_money_rounds_half_up_to_cents():
    assert money(Decimal("98.165")) == Decimal("98.17")
    assert money(Decimal("675")) == Decimal("675.00")
    assert money(Decimal("0.004")) == Decimal("0.00")
