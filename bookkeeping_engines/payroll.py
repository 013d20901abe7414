"""
Module: bookkeeping_engines.payroll
Responsibility:
    Payroll Calculator.  Applies the role-specific pay formula to a day's
    entries.  Phase two of the two-phase computation: revenue per entry is
    computed first (``compute_entry_revenue``), then ``compute_day_payroll``
    resolves pay with the whole day in view.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Pay formulas (fixed constants, not configurable):
    Karyawan
        deduction = main_revenue x 0.5
        net_pay   = main_revenue x 0.5 + 10 000 (attendance) + bonus_revenue
    Owner
        share_from_others  = sum over non-owner entries of (main + bonus) x 0.5
        daily_savings      = 40 000, once per date
        employee_deduction = 10 000 x number of non-owner entries that date
        deduction          = daily_savings
        net_pay            = own main + own bonus + share_from_others
                             - daily_savings - employee_deduction

Day context:
    Owner pay depends on every other entry of the same date, so there is
    no single-entry pay API.  ``compute_day_payroll`` only sees the entries
    it is given:
      - full-day context: Daily Aggregator and the Monthly Aggregator's
        live fallback pass every entry of the date;
      - entry-only context: entry capture passes just the entry being
        saved, so an Owner's share and employee deduction are 0 there.
    The two contexts legitimately disagree for an Owner until aggregation.

Failure modes:
    None raised.  An employee id missing from the catalog yields zero pay
    and a MISSING_REFERENCE condition; that entry's role is unknown so it
    does not count toward the Owner's share or employee deduction.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from bookkeeping_engines.catalog import Catalog
from bookkeeping_engines.revenue import BonusLine, EntryRevenue, compute_entry_revenue
from bookkeeping_engines.tracer import traced_engine
from bookkeeping_kernel.domain.conditions import Condition, log_conditions
from bookkeeping_kernel.domain.model import DailyEntry, Role
from bookkeeping_kernel.domain.values import ZERO
from bookkeeping_kernel.logging_config import get_logger

logger = get_logger("engines.payroll")

EMPLOYEE_REVENUE_SHARE = Decimal("0.5")
OWNER_STAFF_SHARE = Decimal("0.5")
ATTENDANCE_BONUS = Decimal("10000")
OWNER_DAILY_SAVINGS = Decimal("40000")


@dataclass(frozen=True)
class KaryawanBreakdown:
    base_revenue: Decimal
    bonus_total: Decimal
    bonus_details: tuple[BonusLine, ...]
    attendance_bonus: Decimal


@dataclass(frozen=True)
class OwnerBreakdown:
    service_revenue: Decimal
    bonus_total: Decimal
    bonus_details: tuple[BonusLine, ...]
    share_from_others: Decimal
    daily_savings: Decimal
    employee_deduction: Decimal
    employee_count: int


PayBreakdown = KaryawanBreakdown | OwnerBreakdown


@dataclass(frozen=True)
class EntryPayroll:
    """
    Pay resolved for one entry.

    Contract:
        ``role`` is None only when the employee is missing from the catalog;
        then deduction and net_pay are zero and ``breakdown`` is None.
    """

    date: str
    employee_id: str
    role: Role | None
    revenue: EntryRevenue
    deduction: Decimal
    net_pay: Decimal
    breakdown: PayBreakdown | None
    conditions: tuple[Condition, ...] = ()

    @property
    def main_revenue(self) -> Decimal:
        return self.revenue.main_revenue

    @property
    def bonus_revenue(self) -> Decimal:
        return self.revenue.bonus_revenue

    @property
    def is_owner(self) -> bool:
        return self.role is Role.OWNER


@dataclass(frozen=True)
class DayPayroll:
    """Pay for every entry of one date."""

    date: str
    lines: tuple[EntryPayroll, ...]
    conditions: tuple[Condition, ...] = ()

    def line_for(self, employee_id: str) -> EntryPayroll | None:
        for line in self.lines:
            if line.employee_id == employee_id:
                return line
        return None


def karyawan_pay(revenue: EntryRevenue) -> EntryPayroll:
    """Regular staff pay; needs no day context."""
    base = revenue.main_revenue * EMPLOYEE_REVENUE_SHARE
    return EntryPayroll(
        date=revenue.date,
        employee_id=revenue.employee_id,
        role=Role.KARYAWAN,
        revenue=revenue,
        deduction=revenue.main_revenue * EMPLOYEE_REVENUE_SHARE,
        net_pay=base + ATTENDANCE_BONUS + revenue.bonus_revenue,
        breakdown=KaryawanBreakdown(
            base_revenue=base,
            bonus_total=revenue.bonus_revenue,
            bonus_details=revenue.bonus_detail,
            attendance_bonus=ATTENDANCE_BONUS,
        ),
        conditions=revenue.conditions,
    )


def owner_pay(
    revenue: EntryRevenue,
    staff_revenue: Decimal,
    staff_count: int,
) -> EntryPayroll:
    """
    Owner pay given the day's staff revenue and staff entry count.

    Passing zero for both is the entry-only context.
    """
    share = staff_revenue * OWNER_STAFF_SHARE
    employee_deduction = ATTENDANCE_BONUS * staff_count
    net_pay = (
        revenue.main_revenue
        + revenue.bonus_revenue
        + share
        - OWNER_DAILY_SAVINGS
        - employee_deduction
    )
    return EntryPayroll(
        date=revenue.date,
        employee_id=revenue.employee_id,
        role=Role.OWNER,
        revenue=revenue,
        deduction=OWNER_DAILY_SAVINGS,
        net_pay=net_pay,
        breakdown=OwnerBreakdown(
            service_revenue=revenue.main_revenue,
            bonus_total=revenue.bonus_revenue,
            bonus_details=revenue.bonus_detail,
            share_from_others=share,
            daily_savings=OWNER_DAILY_SAVINGS,
            employee_deduction=employee_deduction,
            employee_count=staff_count,
        ),
        conditions=revenue.conditions,
    )


def _unknown_employee_pay(revenue: EntryRevenue) -> EntryPayroll:
    condition = Condition.missing_employee(revenue.employee_id, revenue.date)
    return EntryPayroll(
        date=revenue.date,
        employee_id=revenue.employee_id,
        role=None,
        revenue=revenue,
        deduction=ZERO,
        net_pay=ZERO,
        breakdown=None,
        conditions=revenue.conditions + (condition,),
    )


@traced_engine("payroll_calculator", "1.0", fingerprint_fields=("date",))
def compute_day_payroll(
    date: str,
    entries: Iterable[DailyEntry],
    catalog: Catalog,
) -> DayPayroll:
    """
    Resolve pay for every entry of ``date`` among ``entries``.

    Preconditions:
        ``entries`` may include other dates; they are ignored.
    Postconditions:
        - One EntryPayroll per entry of ``date``, in input order.
        - Owner lines see every non-owner entry given for that date.
        - Roles come from the live catalog.
    """
    revenues = [
        compute_entry_revenue(entry, catalog) for entry in entries if entry.date == date
    ]

    staff_revenue = ZERO
    staff_count = 0
    for revenue in revenues:
        if catalog.role_of(revenue.employee_id) is Role.KARYAWAN:
            staff_revenue += revenue.total
            staff_count += 1

    lines: list[EntryPayroll] = []
    for revenue in revenues:
        role = catalog.role_of(revenue.employee_id)
        if role is Role.OWNER:
            lines.append(owner_pay(revenue, staff_revenue, staff_count))
        elif role is Role.KARYAWAN:
            lines.append(karyawan_pay(revenue))
        else:
            lines.append(_unknown_employee_pay(revenue))

    conditions = tuple(c for line in lines for c in line.conditions)
    log_conditions(logger, conditions)
    return DayPayroll(date=date, lines=tuple(lines), conditions=conditions)
