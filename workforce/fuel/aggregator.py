"""Fuel reimbursement arithmetic.

Amounts are kept as exact ``Decimal`` values; rounding happens only when
figures are formatted for display or export (see ``money``).
"""

from __future__ import annotations

import uuid
from collections import OrderedDict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Mapping, Protocol, Sequence

from workforce.common.dates import month_key

ZERO = Decimal("0")
_CENTS = Decimal("0.01")


class HasKm(Protocol):
    km: Decimal


class ReportLike(Protocol):
    employee_id: uuid.UUID
    date: date
    total_km: Decimal
    total_amount: Decimal


@dataclass(frozen=True)
class FuelLineItem:
    job_no: str
    area: str
    km: Decimal


@dataclass(frozen=True)
class ReportTotals:
    total_km: Decimal = ZERO
    total_amount: Decimal = ZERO

    def __add__(self, other: ReportTotals) -> ReportTotals:
        return ReportTotals(
            total_km=self.total_km + other.total_km,
            total_amount=self.total_amount + other.total_amount,
        )


def _dec(value: Any) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def report_totals(items: Iterable[HasKm], rate_per_km: Decimal) -> ReportTotals:
    """``total_km`` is the exact sum of distances; ``total_amount`` = km × rate."""
    total_km = sum((_dec(item.km) for item in items), ZERO)
    return ReportTotals(total_km=total_km, total_amount=total_km * _dec(rate_per_km))


def allocate_item_amount(
    item: HasKm,
    other_items: Iterable[HasKm],
    report_total_amount: Decimal,
) -> Decimal:
    """Share of the report amount attributable to one line item, by distance.

    Zero when the report has no distance at all.
    """
    item_km = _dec(item.km)
    report_km = item_km + sum((_dec(other.km) for other in other_items), ZERO)
    if report_km == 0:
        return ZERO
    return item_km / report_km * _dec(report_total_amount)


def allocate_amounts(items: Sequence[HasKm], report_total_amount: Decimal) -> list[Decimal]:
    """``allocate_item_amount`` for every item of one report, in order."""
    return [
        allocate_item_amount(item, [*items[:i], *items[i + 1:]], report_total_amount)
        for i, item in enumerate(items)
    ]


def aggregate_by_employee_and_month(
    reports: Iterable[ReportLike],
) -> Mapping[tuple[uuid.UUID, str], ReportTotals]:
    """Sum report totals per ``(employee_id, "YYYY-MM")`` calendar month.

    Keys keep the order in which they first appear.
    """
    totals: OrderedDict[tuple[uuid.UUID, str], ReportTotals] = OrderedDict()
    for report in reports:
        key = (report.employee_id, month_key(report.date))
        totals[key] = totals.get(key, ReportTotals()) + ReportTotals(
            total_km=_dec(report.total_km),
            total_amount=_dec(report.total_amount),
        )
    return totals


def money(value: Decimal) -> Decimal:
    """Round to cents, half up. Presentation only."""
    return _dec(value).quantize(_CENTS, rounding=ROUND_HALF_UP)
