"""
Module: bookkeeping_engines.dashboard
Responsibility:
    Headline figures for the landing screen: catalog sizes, today's
    recorded revenue and the number of stored entries.

Architecture position:
    Engines -- pure, zero I/O.  ``today`` is passed in; this module never
    reads the clock.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from bookkeeping_engines.catalog import Catalog
from bookkeeping_engines.revenue import compute_entry_revenue
from bookkeeping_kernel.domain.model import BusinessSnapshot
from bookkeeping_kernel.domain.values import ZERO, require_date


@dataclass(frozen=True)
class DashboardSummary:
    business_name: str
    service_count: int
    employee_count: int
    today: str
    today_revenue: Decimal
    today_entries: int
    record_count: int


def summarize_dashboard(
    snapshot: BusinessSnapshot,
    today: str,
    default_business_name: str = "",
) -> DashboardSummary:
    """
    Summarize ``snapshot`` as of ``today`` (YYYY-MM-DD).

    ``default_business_name`` is shown when the document carries no name.

    Today's revenue uses each entry's cached figures when stored and the
    live catalog otherwise.
    """
    require_date(today)
    catalog = Catalog.from_snapshot(snapshot)
    revenue = ZERO
    count = 0
    for entry in snapshot.entries():
        if entry.date != today:
            continue
        count += 1
        if entry.cached is not None:
            revenue += entry.cached.revenue
        else:
            revenue += compute_entry_revenue(entry, catalog).total
    return DashboardSummary(
        business_name=snapshot.business_name or default_business_name,
        service_count=len(snapshot.services),
        employee_count=len(snapshot.employees),
        today=today,
        today_revenue=revenue,
        today_entries=count,
        record_count=len(snapshot.daily_records),
    )
