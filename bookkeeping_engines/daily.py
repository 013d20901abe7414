"""
Module: bookkeeping_engines.daily
Responsibility:
    Daily Aggregator.  Builds the per-date recap: one line per entry with
    revenue, pay and pay breakdown, plus the day's grand totals.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Calls the Payroll Calculator with full-day context.

Invariants enforced:
    - grand_total_revenue = sum(main + bonus) over every entry of the date.
    - total_salary_paid = sum(net_pay) over every entry of the date.
    - Lines follow the catalog's employee order; employees missing from
      the catalog come last, ordered by id.  Input order never changes
      the lines or the sums.
    - Live computation: cached pay on entries is not consulted.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from bookkeeping_engines.catalog import Catalog
from bookkeeping_engines.payroll import EntryPayroll, PayBreakdown, compute_day_payroll
from bookkeeping_engines.revenue import BonusLine, ServiceLine
from bookkeeping_engines.tracer import traced_engine
from bookkeeping_kernel.domain.conditions import Condition
from bookkeeping_kernel.domain.model import DailyEntry, Role
from bookkeeping_kernel.domain.values import ZERO, require_date

UNKNOWN_EMPLOYEE = "Unknown Employee"


@dataclass(frozen=True)
class RecapLine:
    employee_id: str
    employee_name: str
    role: Role | None
    main_revenue: Decimal
    bonus_revenue: Decimal
    deduction: Decimal
    net_pay: Decimal
    breakdown: PayBreakdown | None
    service_lines: tuple[ServiceLine, ...]
    bonus_detail: tuple[BonusLine, ...]

    @property
    def revenue(self) -> Decimal:
        return self.main_revenue + self.bonus_revenue


@dataclass(frozen=True)
class DailyRecap:
    """
    Recap of one date.

    Guarantees:
        - An empty day has no lines and zero totals.
    """

    date: str
    lines: tuple[RecapLine, ...]
    grand_total_revenue: Decimal
    total_salary_paid: Decimal
    conditions: tuple[Condition, ...] = ()

    @property
    def active_employees(self) -> int:
        return len(self.lines)

    @property
    def is_empty(self) -> bool:
        return not self.lines


def entries_on(date: str, entries: Iterable[DailyEntry]) -> tuple[DailyEntry, ...]:
    """Entries recorded on ``date``."""
    return tuple(entry for entry in entries if entry.date == date)


def _recap_line(pay: EntryPayroll, catalog: Catalog) -> RecapLine:
    employee = catalog.employee(pay.employee_id)
    return RecapLine(
        employee_id=pay.employee_id,
        employee_name=employee.name if employee is not None else UNKNOWN_EMPLOYEE,
        role=pay.role,
        main_revenue=pay.main_revenue,
        bonus_revenue=pay.bonus_revenue,
        deduction=pay.deduction,
        net_pay=pay.net_pay,
        breakdown=pay.breakdown,
        service_lines=pay.revenue.service_lines,
        bonus_detail=pay.revenue.bonus_detail,
    )


@traced_engine("daily_aggregator", "1.0", fingerprint_fields=("date",))
def aggregate_day(
    date: str,
    entries: Iterable[DailyEntry],
    catalog: Catalog,
) -> DailyRecap:
    """
    Aggregate every entry recorded on ``date``.

    Preconditions:
        ``entries`` is the full entry collection (any dates).
    Raises:
        InvalidDateError: if ``date`` is not YYYY-MM-DD.
    """
    require_date(date)
    day = entries_on(date, entries)
    payroll = compute_day_payroll(date, day, catalog)

    ordered = sorted(
        payroll.lines,
        key=lambda line: (catalog.employee_rank(line.employee_id), line.employee_id),
    )
    lines = tuple(_recap_line(pay, catalog) for pay in ordered)

    grand_total = sum((line.revenue for line in lines), ZERO)
    salary_total = sum((line.net_pay for line in lines), ZERO)

    return DailyRecap(
        date=date,
        lines=lines,
        grand_total_revenue=grand_total,
        total_salary_paid=salary_total,
        conditions=payroll.conditions,
    )
