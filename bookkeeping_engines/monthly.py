"""
Module: bookkeeping_engines.monthly
Responsibility:
    Monthly Aggregator.  Rolls a month of daily entries, transactions and
    product sales into a financial summary, recomputes the Owner's pay at
    month scope, derives net profit, and applies manual overrides as a
    precedence layer.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumes stored entry figures (cached pay) and, for entries saved
    without them, the Payroll Calculator with full-day context.

Window:
    Every record whose ``date`` string lies in ``YYYY-MM-01 .. YYYY-MM-31``
    (lexicographic, inclusive).  No calendar end-of-month is computed.

Invariants enforced:
    - Historical figures come from each entry's cached pay; the live
      catalog is used only for entries that carry none.
    - owner_final_salary = owner revenue + 0.5 x staff revenue
                           - 40 000 x active_days
                           - 10 000 x staff entries
      and replaces the summed per-entry Owner pay in the rollup.  Per-entry
      Owner pay was captured without full-day context; the month-level
      figure has it.
    - An override field replaces (never adds to) the computed figure for
      the whole month; several override dates setting one field resolve
      last-write-wins.
    - net_profit is derived from the effective (post-override) figures.
    - Idempotent: identical inputs produce equal reports.

Failure modes:
    - InvalidMonthError for a malformed ``year_month``.
    - Data anomalies are reported as Conditions, never raised.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from bookkeeping_engines.catalog import Catalog
from bookkeeping_engines.daily import UNKNOWN_EMPLOYEE
from bookkeeping_engines.overrides import OverrideStore
from bookkeeping_engines.payroll import (
    ATTENDANCE_BONUS,
    OWNER_DAILY_SAVINGS,
    OWNER_STAFF_SHARE,
    compute_day_payroll,
)
from bookkeeping_engines.tracer import traced_engine
from bookkeeping_kernel.domain.conditions import Condition, dedupe, log_conditions
from bookkeeping_kernel.domain.model import (
    BusinessSnapshot,
    DailyEntry,
    ProductSale,
    Role,
    Transaction,
    TransactionType,
)
from bookkeeping_kernel.domain.values import ZERO, in_window, month_window
from bookkeeping_kernel.logging_config import LogContext, get_logger

logger = get_logger("engines.monthly")

DEFAULT_MINIMUM_WAGE = Decimal("2000000")


@dataclass(frozen=True)
class EntryFigures:
    """Pay figures for one entry as used by monthly reporting."""

    date: str
    employee_id: str
    role: Role | None
    main_revenue: Decimal
    bonus_revenue: Decimal
    deduction: Decimal
    net_pay: Decimal
    from_cache: bool

    @property
    def revenue(self) -> Decimal:
        return self.main_revenue + self.bonus_revenue


@dataclass(frozen=True)
class OwnerMonthBreakdown:
    service_revenue: Decimal
    bonus_total: Decimal
    share_from_staff: Decimal
    staff_attendance_deduction: Decimal
    daily_savings: Decimal
    active_days: int
    staff_entries: int
    final_salary: Decimal


@dataclass(frozen=True)
class EmployeeRollup:
    employee_id: str
    name: str
    role: Role | None
    net_pay: Decimal
    bonus: Decimal
    deduction: Decimal
    entry_count: int
    meets_minimum_wage: bool


@dataclass(frozen=True)
class MonthlyTotals:
    """Computed figures before overrides."""

    total_revenue: Decimal
    total_income: Decimal
    total_expenses: Decimal
    product_revenue: Decimal
    total_employee_salary: Decimal
    owner_final_salary: Decimal
    total_salary_paid: Decimal
    total_bonus: Decimal
    owner_savings: Decimal


@dataclass(frozen=True)
class MonthlyReport:
    """
    Monthly financial summary.

    Contract:
        The five overridable figures (``total_revenue``, ``total_expenses``,
        ``total_salary_paid``, ``owner_savings``, ``product_revenue``) are
        effective values; ``computed`` keeps the pre-override figures and
        ``applied_overrides`` maps each overridden field to the date of the
        override that supplied it.
    """

    year_month: str
    computed: MonthlyTotals
    total_revenue: Decimal
    total_expenses: Decimal
    total_salary_paid: Decimal
    owner_savings: Decimal
    product_revenue: Decimal
    net_profit: Decimal
    active_days: int
    active_employees: int
    owner_breakdown: OwnerMonthBreakdown
    employee_rollups: tuple[EmployeeRollup, ...]
    applied_overrides: dict[str, str]
    conditions: tuple[Condition, ...] = ()

    @property
    def total_income(self) -> Decimal:
        return self.computed.total_income

    @property
    def total_employee_salary(self) -> Decimal:
        return self.computed.total_employee_salary

    @property
    def owner_final_salary(self) -> Decimal:
        return self.computed.owner_final_salary

    @property
    def total_bonus(self) -> Decimal:
        return self.computed.total_bonus

    def rollup_for(self, employee_id: str) -> EmployeeRollup | None:
        for rollup in self.employee_rollups:
            if rollup.employee_id == employee_id:
                return rollup
        return None


def resolve_entry_figures(
    entries: Iterable[DailyEntry],
    catalog: Catalog,
) -> tuple[tuple[EntryFigures, ...], tuple[Condition, ...]]:
    """
    Figures for each entry: cached pay when stored, live pay otherwise.

    Live pay for an entry is computed with every given entry of its date
    in view.  A cached entry's role is the role stored with it, falling
    back to the live catalog for documents that predate role capture.
    """
    entries = tuple(entries)
    conditions: list[Condition] = []

    live: dict[int, EntryFigures] = {}
    live_dates = sorted({e.date for e in entries if e.cached is None})
    for date in live_dates:
        positions = [i for i, e in enumerate(entries) if e.date == date]
        payroll = compute_day_payroll(date, [entries[i] for i in positions], catalog)
        conditions.extend(payroll.conditions)
        for position, line in zip(positions, payroll.lines):
            live[position] = EntryFigures(
                date=line.date,
                employee_id=line.employee_id,
                role=line.role,
                main_revenue=line.main_revenue,
                bonus_revenue=line.bonus_revenue,
                deduction=line.deduction,
                net_pay=line.net_pay,
                from_cache=False,
            )

    figures: list[EntryFigures] = []
    for position, entry in enumerate(entries):
        if entry.cached is None:
            figures.append(live[position])
            continue
        role = entry.cached.role or catalog.role_of(entry.employee_id)
        if role is None:
            conditions.append(Condition.missing_employee(entry.employee_id, entry.date))
        figures.append(
            EntryFigures(
                date=entry.date,
                employee_id=entry.employee_id,
                role=role,
                main_revenue=entry.cached.main_revenue,
                bonus_revenue=entry.cached.bonus_revenue,
                deduction=entry.cached.deduction,
                net_pay=entry.cached.net_pay,
                from_cache=True,
            )
        )
    return tuple(figures), tuple(conditions)


def _owner_breakdown(figures: tuple[EntryFigures, ...]) -> OwnerMonthBreakdown:
    owner = [f for f in figures if f.role is Role.OWNER]
    staff = [f for f in figures if f.role is Role.KARYAWAN]
    active_days = len({f.date for f in figures})

    service_revenue = sum((f.main_revenue for f in owner), ZERO)
    bonus_total = sum((f.bonus_revenue for f in owner), ZERO)
    share = sum((f.revenue for f in staff), ZERO) * OWNER_STAFF_SHARE
    attendance = ATTENDANCE_BONUS * len(staff)
    savings = OWNER_DAILY_SAVINGS * active_days

    return OwnerMonthBreakdown(
        service_revenue=service_revenue,
        bonus_total=bonus_total,
        share_from_staff=share,
        staff_attendance_deduction=attendance,
        daily_savings=savings,
        active_days=active_days,
        staff_entries=len(staff),
        final_salary=service_revenue + bonus_total + share - savings - attendance,
    )


def _rollups(
    figures: tuple[EntryFigures, ...],
    catalog: Catalog,
    owner_final_salary: Decimal,
    minimum_wage: Decimal,
) -> tuple[EmployeeRollup, ...]:
    grouped: dict[str, list[EntryFigures]] = {}
    for f in figures:
        grouped.setdefault(f.employee_id, []).append(f)

    order = sorted(grouped, key=lambda eid: (catalog.employee_rank(eid), eid))
    owner_assigned = False
    rollups: list[EmployeeRollup] = []
    for employee_id in order:
        rows = grouped[employee_id]
        employee = catalog.employee(employee_id)
        role = rows[-1].role
        net_pay = sum((f.net_pay for f in rows), ZERO)
        if role is Role.OWNER:
            if owner_assigned:
                logger.warning(
                    "multiple_owners_in_month",
                    extra={"employee_id": employee_id},
                )
                net_pay = ZERO
            else:
                net_pay = owner_final_salary
                owner_assigned = True
        rollups.append(
            EmployeeRollup(
                employee_id=employee_id,
                name=employee.name if employee is not None else UNKNOWN_EMPLOYEE,
                role=role,
                net_pay=net_pay,
                bonus=sum((f.bonus_revenue for f in rows), ZERO),
                deduction=sum((f.deduction for f in rows), ZERO),
                entry_count=len(rows),
                meets_minimum_wage=net_pay >= minimum_wage,
            )
        )
    return tuple(rollups)


@traced_engine("monthly_aggregator", "1.0", fingerprint_fields=("year_month",))
def aggregate_month(
    year_month: str,
    entries: Iterable[DailyEntry],
    transactions: Iterable[Transaction],
    product_sales: Iterable[ProductSale],
    catalog: Catalog,
    overrides: OverrideStore | None = None,
    minimum_wage: Decimal = DEFAULT_MINIMUM_WAGE,
) -> MonthlyReport:
    """
    Build the monthly report for ``year_month`` ("YYYY-MM").

    Preconditions:
        Collections are complete (any dates); the window filter is applied
        here.
    Postconditions:
        net_profit = total_revenue + income + product_revenue
                     - total_salary_paid - total_expenses - owner_savings
        using effective figures, where the computed total_salary_paid is
        total_employee_salary + owner_final_salary.
    Raises:
        InvalidMonthError: if ``year_month`` is malformed.
    """
    window = month_window(year_month)
    overrides = overrides if overrides is not None else OverrideStore()

    with LogContext.bind(report_date=year_month):
        month_entries = tuple(e for e in entries if in_window(e.date, window))
        figures, conditions = resolve_entry_figures(month_entries, catalog)

        owner = _owner_breakdown(figures)
        total_employee_salary = sum(
            (f.net_pay for f in figures if f.role is Role.KARYAWAN), ZERO
        )
        month_transactions = [t for t in transactions if in_window(t.date, window)]
        computed = MonthlyTotals(
            total_revenue=sum((f.revenue for f in figures), ZERO),
            total_income=sum(
                (t.amount for t in month_transactions if t.type is TransactionType.INCOME),
                ZERO,
            ),
            total_expenses=sum(
                (t.amount for t in month_transactions if t.type is TransactionType.EXPENSE),
                ZERO,
            ),
            product_revenue=sum(
                (s.total for s in product_sales if in_window(s.date, window)), ZERO
            ),
            total_employee_salary=total_employee_salary,
            owner_final_salary=owner.final_salary,
            total_salary_paid=total_employee_salary + owner.final_salary,
            total_bonus=sum((f.bonus_revenue for f in figures), ZERO),
            owner_savings=sum(
                (f.deduction for f in figures if f.role is Role.OWNER), ZERO
            ),
        )

        resolution = overrides.resolve(window)
        log_conditions(logger, resolution.conditions)

        total_revenue = resolution.apply("total_revenue", computed.total_revenue)
        total_expenses = resolution.apply("total_expenses", computed.total_expenses)
        total_salary_paid = resolution.apply(
            "total_salary_paid", computed.total_salary_paid
        )
        owner_savings = resolution.apply("owner_savings", computed.owner_savings)
        product_revenue = resolution.apply("product_revenue", computed.product_revenue)

        net_profit = (
            total_revenue
            + computed.total_income
            + product_revenue
            - total_salary_paid
            - total_expenses
            - owner_savings
        )

        report = MonthlyReport(
            year_month=year_month,
            computed=computed,
            total_revenue=total_revenue,
            total_expenses=total_expenses,
            total_salary_paid=total_salary_paid,
            owner_savings=owner_savings,
            product_revenue=product_revenue,
            net_profit=net_profit,
            active_days=owner.active_days,
            active_employees=len({f.employee_id for f in figures}),
            owner_breakdown=owner,
            employee_rollups=_rollups(
                figures, catalog, owner.final_salary, minimum_wage
            ),
            applied_overrides=dict(resolution.sources),
            conditions=dedupe(conditions + resolution.conditions),
        )
        logger.info(
            "monthly_report_built",
            extra={
                "entry_count": len(figures),
                "active_days": report.active_days,
                "overridden_fields": sorted(resolution.sources),
                "net_profit": net_profit,
            },
        )
    return report


def monthly_report_for(
    snapshot: BusinessSnapshot,
    year_month: str,
    minimum_wage: Decimal = DEFAULT_MINIMUM_WAGE,
) -> MonthlyReport:
    """Convenience wrapper running ``aggregate_month`` over a whole snapshot."""
    return aggregate_month(
        year_month,
        snapshot.entries(),
        snapshot.transactions.values(),
        snapshot.product_sales.values(),
        Catalog.from_snapshot(snapshot),
        OverrideStore(snapshot.overrides),
        minimum_wage=minimum_wage,
    )
