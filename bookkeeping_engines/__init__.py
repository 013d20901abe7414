"""
Module: bookkeeping_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the revenue
    and payroll engines.  This is the import surface for scripts and any
    application layer built on top.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import bookkeeping_kernel (domain values, model, conditions,
    logging) and sibling engine modules.  Never touches the database.

Invariants enforced:
    - Purity: engines never read the clock.  "Today" and report months are
      explicit parameters.
    - Decimal-only arithmetic for every monetary amount.
    - Determinism: identical inputs always produce equal outputs.

Data flow:
    Catalog -> Revenue Calculator -> Payroll Calculator
            -> Daily Aggregator / Monthly Aggregator (+ Override Store)

Usage:
    from bookkeeping_engines import Catalog, aggregate_day, monthly_report_for

    catalog = Catalog.from_snapshot(snapshot)
    recap = aggregate_day("2024-05-14", snapshot.entries(), catalog)
    report = monthly_report_for(snapshot, "2024-05")
"""

from bookkeeping_kernel.logging_config import get_logger

logger = get_logger("engines")

from bookkeeping_engines.capture import (
    CaptureResult,
    normalize_entry,
    record_daily_entry,
    record_month_end_balance,
    record_product_sale,
    record_transaction,
    remove_daily_entry,
)
from bookkeeping_engines.catalog import Catalog
from bookkeeping_engines.daily import (
    DailyRecap,
    RecapLine,
    aggregate_day,
    entries_on,
)
from bookkeeping_engines.dashboard import DashboardSummary, summarize_dashboard
from bookkeeping_engines.export_rows import (
    daily_recap_rows,
    monthly_salary_rows,
    monthly_summary_rows,
    month_end_balance_rows,
    product_sale_rows,
    quantity_columns,
    render_breakdown,
    rows_to_csv,
)
from bookkeeping_engines.monthly import (
    DEFAULT_MINIMUM_WAGE,
    EmployeeRollup,
    EntryFigures,
    MonthlyReport,
    MonthlyTotals,
    OwnerMonthBreakdown,
    aggregate_month,
    monthly_report_for,
    resolve_entry_figures,
)
from bookkeeping_engines.overrides import OverrideResolution, OverrideStore
from bookkeeping_engines.payroll import (
    ATTENDANCE_BONUS,
    EMPLOYEE_REVENUE_SHARE,
    OWNER_DAILY_SAVINGS,
    OWNER_STAFF_SHARE,
    DayPayroll,
    EntryPayroll,
    KaryawanBreakdown,
    OwnerBreakdown,
    compute_day_payroll,
)
from bookkeeping_engines.revenue import (
    BonusLine,
    EntryRevenue,
    ServiceLine,
    clamp_bonus_claims,
    compute_entry_revenue,
)

__all__ = [
    # Catalog
    "Catalog",
    # Revenue
    "BonusLine",
    "EntryRevenue",
    "ServiceLine",
    "clamp_bonus_claims",
    "compute_entry_revenue",
    # Payroll
    "ATTENDANCE_BONUS",
    "EMPLOYEE_REVENUE_SHARE",
    "OWNER_DAILY_SAVINGS",
    "OWNER_STAFF_SHARE",
    "DayPayroll",
    "EntryPayroll",
    "KaryawanBreakdown",
    "OwnerBreakdown",
    "compute_day_payroll",
    # Daily
    "DailyRecap",
    "RecapLine",
    "aggregate_day",
    "entries_on",
    # Monthly
    "DEFAULT_MINIMUM_WAGE",
    "EmployeeRollup",
    "EntryFigures",
    "MonthlyReport",
    "MonthlyTotals",
    "OwnerMonthBreakdown",
    "aggregate_month",
    "monthly_report_for",
    "resolve_entry_figures",
    # Overrides
    "OverrideResolution",
    "OverrideStore",
    # Capture
    "CaptureResult",
    "normalize_entry",
    "record_daily_entry",
    "record_month_end_balance",
    "record_product_sale",
    "record_transaction",
    "remove_daily_entry",
    # Dashboard
    "DashboardSummary",
    "summarize_dashboard",
    # Export
    "daily_recap_rows",
    "monthly_salary_rows",
    "monthly_summary_rows",
    "month_end_balance_rows",
    "product_sale_rows",
    "quantity_columns",
    "render_breakdown",
    "rows_to_csv",
]

logger.debug("engines_package_loaded", extra={
    "modules": [
        "catalog", "revenue", "payroll", "daily", "monthly",
        "overrides", "capture", "dashboard", "export_rows",
    ],
})
