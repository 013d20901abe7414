"""
Module: bookkeeping_engines.export_rows
Responsibility:
    Flatten recaps and monthly reports into rows for spreadsheet or CSV
    export.  Rows hold primitives only: amounts are whole rupiah integers,
    service quantities are expanded into one column per service name and
    pay breakdowns are pre-rendered strings.

Architecture position:
    Engines -- presentation adapter over engine results, zero I/O.
    ``rows_to_csv`` renders text; writing it anywhere is the caller's job.
"""

from __future__ import annotations

import calendar
import csv
import io
from collections import Counter
from collections.abc import Iterable, Sequence
from decimal import Decimal
from typing import Any

from bookkeeping_engines.catalog import Catalog
from bookkeeping_engines.daily import DailyRecap, RecapLine
from bookkeeping_engines.monthly import MonthlyReport
from bookkeeping_engines.payroll import KaryawanBreakdown, OwnerBreakdown
from bookkeeping_kernel.domain.model import MonthEndBalance, ProductSale
from bookkeeping_kernel.domain.values import format_rupiah, to_rupiah

Row = dict[str, Any]

MEETS_MINIMUM_WAGE = "Sesuai UMR"
BELOW_MINIMUM_WAGE = "Belum UMR"


def render_breakdown(line: RecapLine) -> str:
    """One-line text rendering of a recap line's pay breakdown."""
    breakdown = line.breakdown
    if isinstance(breakdown, KaryawanBreakdown):
        parts = [
            f"Bagi hasil 50%: {format_rupiah(breakdown.base_revenue)}",
            f"Bonus: {format_rupiah(breakdown.bonus_total)}",
            f"Uang hadir: {format_rupiah(breakdown.attendance_bonus)}",
        ]
    elif isinstance(breakdown, OwnerBreakdown):
        parts = [
            f"Layanan: {format_rupiah(breakdown.service_revenue)}",
            f"Bonus: {format_rupiah(breakdown.bonus_total)}",
            f"Bagi hasil karyawan: {format_rupiah(breakdown.share_from_others)}",
            f"Tabungan: -{format_rupiah(breakdown.daily_savings)}",
            f"Uang hadir karyawan ({breakdown.employee_count}): "
            f"-{format_rupiah(breakdown.employee_deduction)}",
        ]
    else:
        return "Karyawan tidak ditemukan"
    for bonus in breakdown.bonus_details:
        parts.append(
            f"{bonus.bonus_name} x{bonus.quantity}: {format_rupiah(bonus.value)}"
        )
    return "; ".join(parts)


_FIXED_DAILY_COLUMNS = frozenset(
    {
        "Tanggal",
        "Karyawan",
        "Peran",
        "Pendapatan Layanan",
        "Pendapatan Bonus",
        "Potongan",
        "Gaji Diterima",
        "Rincian",
    }
)


def quantity_columns(catalog: Catalog) -> list[tuple[str, str]]:
    """
    ``(column, service_id)`` for every main service, in catalog order.

    A column is the service name; a name shared by several services, or
    clashing with a fixed column, becomes ``"name (id)"``.
    """
    services = catalog.main_services()
    counts = Counter(service.name for service in services)
    return [
        (
            service.name
            if counts[service.name] == 1 and service.name not in _FIXED_DAILY_COLUMNS
            else f"{service.name} ({service.id})",
            service.id,
        )
        for service in services
    ]


def daily_recap_rows(recap: DailyRecap, catalog: Catalog) -> list[Row]:
    """
    One row per recap line, plus a closing totals row.

    Every main service in the catalog gets a quantity column (see
    ``quantity_columns``), whether or not it was performed that day.
    """
    columns = quantity_columns(catalog)
    rows: list[Row] = []
    for line in recap.lines:
        performed = {sl.service_id: sl.quantity for sl in line.service_lines}
        row: Row = {
            "Tanggal": recap.date,
            "Karyawan": line.employee_name,
            "Peran": line.role.value if line.role is not None else "",
        }
        for column, service_id in columns:
            row[column] = performed.get(service_id, 0)
        row.update(
            {
                "Pendapatan Layanan": to_rupiah(line.main_revenue),
                "Pendapatan Bonus": to_rupiah(line.bonus_revenue),
                "Potongan": to_rupiah(line.deduction),
                "Gaji Diterima": to_rupiah(line.net_pay),
                "Rincian": render_breakdown(line),
            }
        )
        rows.append(row)

    totals: Row = {"Tanggal": recap.date, "Karyawan": "TOTAL", "Peran": ""}
    for column, _service_id in columns:
        totals[column] = sum(row[column] for row in rows)
    totals.update(
        {
            "Pendapatan Layanan": sum(r["Pendapatan Layanan"] for r in rows),
            "Pendapatan Bonus": sum(r["Pendapatan Bonus"] for r in rows),
            "Potongan": sum(r["Potongan"] for r in rows),
            "Gaji Diterima": to_rupiah(recap.total_salary_paid),
            "Rincian": f"Total pendapatan: {format_rupiah(recap.grand_total_revenue)}",
        }
    )
    rows.append(totals)
    return rows


def monthly_summary_rows(report: MonthlyReport) -> list[Row]:
    """Label/value rows of the monthly summary, effective figures first."""
    figures: Sequence[tuple[str, Decimal | int]] = (
        ("Total Pendapatan", report.total_revenue),
        ("Pemasukan Lain", report.total_income),
        ("Pendapatan Produk", report.product_revenue),
        ("Total Pengeluaran", report.total_expenses),
        ("Total Gaji Karyawan", report.total_employee_salary),
        ("Total Gaji Owner", report.owner_final_salary),
        ("Total Gaji Dibayarkan", report.total_salary_paid),
        ("Total Bonus", report.total_bonus),
        ("Total Tabungan Owner", report.owner_savings),
        ("Laba Bersih", report.net_profit),
    )
    rows: list[Row] = [
        {
            "Bulan": report.year_month,
            "Keterangan": label,
            "Nilai": to_rupiah(value),
        }
        for label, value in figures
    ]
    rows.append(
        {"Bulan": report.year_month, "Keterangan": "Hari Aktif", "Nilai": report.active_days}
    )
    rows.append(
        {
            "Bulan": report.year_month,
            "Keterangan": "Karyawan Aktif",
            "Nilai": report.active_employees,
        }
    )
    return rows


def monthly_salary_rows(report: MonthlyReport) -> list[Row]:
    """One row per employee rollup with the minimum-wage status."""
    return [
        {
            "Bulan": report.year_month,
            "Karyawan": rollup.name,
            "Peran": rollup.role.value if rollup.role is not None else "",
            "Hari Kerja": rollup.entry_count,
            "Total Bonus": to_rupiah(rollup.bonus),
            "Potongan": to_rupiah(rollup.deduction),
            "Gaji Diterima": to_rupiah(rollup.net_pay),
            "Status UMR": (
                MEETS_MINIMUM_WAGE if rollup.meets_minimum_wage else BELOW_MINIMUM_WAGE
            ),
        }
        for rollup in report.employee_rollups
    ]


def product_sale_rows(sales: Iterable[ProductSale]) -> list[Row]:
    return [
        {
            "Tanggal": sale.date,
            "Produk": sale.product_name,
            "Jumlah": sale.quantity,
            "Penjual": sale.seller_name,
            "Total": to_rupiah(sale.total),
        }
        for sale in sorted(sales, key=lambda s: (s.date, s.id))
    ]


def month_end_balance_rows(balances: Iterable[MonthEndBalance]) -> list[Row]:
    """Month-end balances, month ascending, labelled like "May 2024"."""
    return [
        {
            "Bulan & Tahun": f"{calendar.month_name[int(b.year_month[5:])]} {b.year_month[:4]}",
            "Sisa Pendapatan + Tabungan": to_rupiah(b.amount),
        }
        for b in sorted(balances, key=lambda b: (b.year_month, b.id))
    ]


def rows_to_csv(rows: Sequence[Row]) -> str:
    """
    Render rows as CSV text.

    The header is the first row's keys; later rows may omit columns.
    Fields are quoted when needed (commas, quotes, newlines).  Returns an
    empty string for no rows.
    """
    if not rows:
        return ""
    buffer = io.StringIO()
    writer = csv.DictWriter(
        buffer,
        fieldnames=list(rows[0].keys()),
        quoting=csv.QUOTE_MINIMAL,
        extrasaction="ignore",
        lineterminator="\r\n",
    )
    writer.writeheader()
    writer.writerows(rows)
    return buffer.getvalue()
