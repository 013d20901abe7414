#!/usr/bin/env python3
"""
Print or export barbershop reports from the stored business document.

Usage:
    python3 scripts/report.py import data.json
    python3 scripts/report.py dashboard --today 2024-05-14
    python3 scripts/report.py daily 2024-05-14
    python3 scripts/report.py monthly 2024-05 --csv salaries
    python3 scripts/report.py override 2024-05-20 --total-revenue 1000000
    python3 scripts/report.py record entry 2024-05-14 emp-budi --service svc-cut=2
    python3 scripts/report.py record sale 2024-05-14 prd-pomade 2 --seller Budi
    python3 scripts/report.py record transaction 2024-05-02 expense Listrik 200000
    python3 scripts/report.py record sisa 2024-05 1250000
"""

import argparse
import json
import sys
from dataclasses import replace
from datetime import date
from pathlib import Path
from uuid import uuid4

# ---------------------------------------------------------------------------
# Project root on sys.path
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from bookkeeping_config import get_active_settings  # noqa: E402
from bookkeeping_engines import (  # noqa: E402
    Catalog,
    OverrideStore,
    aggregate_day,
    daily_recap_rows,
    month_end_balance_rows,
    monthly_report_for,
    monthly_salary_rows,
    monthly_summary_rows,
    product_sale_rows,
    record_daily_entry,
    record_month_end_balance,
    record_product_sale,
    record_transaction,
    rows_to_csv,
    summarize_dashboard,
)
from bookkeeping_kernel.db.engine import (  # noqa: E402
    create_tables,
    init_engine_from_url,
    session_scope,
)
from bookkeeping_kernel.db.repository import DocumentRepository  # noqa: E402
from bookkeeping_kernel.documents import parse_document  # noqa: E402
from bookkeeping_kernel.domain.model import (  # noqa: E402
    BonusClaim,
    BusinessSnapshot,
    DailyEntry,
    TransactionType,
)
from bookkeeping_kernel.domain.values import format_rupiah, in_window, month_window  # noqa: E402
from bookkeeping_kernel.exceptions import BookkeepingError, RecordValueError  # noqa: E402
from bookkeeping_kernel.logging_config import LogContext, configure_logging  # noqa: E402


def _print_conditions(conditions) -> None:
    for condition in conditions:
        print(f"  ! {condition.kind.value}: {condition.message}")


def cmd_import(args, repo: DocumentRepository) -> int:
    with open(args.path) as f:
        snapshot = parse_document(json.load(f))
    current = repo.load_or_empty(args.document)
    saved = repo.save(replace(snapshot, version=current.version), args.document)
    print(f"  Imported {len(saved.daily_records)} daily records (version {saved.version})")
    return 0


def cmd_dashboard(args, repo: DocumentRepository, settings) -> int:
    snapshot = repo.load(args.document)
    summary = summarize_dashboard(snapshot, args.today, settings.business_name)
    print(f"  {summary.business_name}  ({summary.today})")
    print(f"  Services:          {summary.service_count}")
    print(f"  Employees:         {summary.employee_count}")
    print(f"  Today's revenue:   {format_rupiah(summary.today_revenue)}")
    print(f"  Records:           {summary.record_count}")
    return 0


def cmd_daily(args, repo: DocumentRepository) -> int:
    snapshot = repo.load(args.document)
    catalog = Catalog.from_snapshot(snapshot)
    recap = aggregate_day(args.date, snapshot.entries(), catalog)

    if args.csv:
        sys.stdout.write(rows_to_csv(daily_recap_rows(recap, catalog)))
        return 0

    print(f"  Daily recap {recap.date}")
    if recap.is_empty:
        print("  No entries recorded.")
    for line in recap.lines:
        print(
            f"  {line.employee_name:<20} {line.role.value if line.role else '?':<9}"
            f" revenue {format_rupiah(line.revenue):>14}"
            f"  potongan {format_rupiah(line.deduction):>12}"
            f"  gaji {format_rupiah(line.net_pay):>12}"
        )
    print(f"  Grand total revenue: {format_rupiah(recap.grand_total_revenue)}")
    print(f"  Total salary paid:   {format_rupiah(recap.total_salary_paid)}")
    _print_conditions(recap.conditions)
    return 0


def cmd_monthly(args, repo: DocumentRepository, minimum_wage) -> int:
    snapshot = repo.load(args.document)
    report = monthly_report_for(snapshot, args.month, minimum_wage=minimum_wage)
    window = month_window(args.month)

    if args.csv == "summary":
        sys.stdout.write(rows_to_csv(monthly_summary_rows(report)))
        return 0
    if args.csv == "salaries":
        sys.stdout.write(rows_to_csv(monthly_salary_rows(report)))
        return 0
    if args.csv == "products":
        sales = [s for s in snapshot.product_sales.values() if in_window(s.date, window)]
        sys.stdout.write(rows_to_csv(product_sale_rows(sales)))
        return 0
    if args.csv == "sisa":
        balances = [
            b for b in snapshot.month_end_balances.values() if b.year_month == args.month
        ]
        sys.stdout.write(rows_to_csv(month_end_balance_rows(balances)))
        return 0

    print(f"  Monthly report {report.year_month}")
    for row in monthly_summary_rows(report):
        print(f"  {row['Keterangan']:<24} {row['Nilai']:>14,}")
    if report.applied_overrides:
        fields = ", ".join(sorted(report.applied_overrides))
        print(f"  Overridden: {fields}")
    print()
    for row in monthly_salary_rows(report):
        print(
            f"  {row['Karyawan']:<20} {format_rupiah(row['Gaji Diterima']):>14}"
            f"  {row['Status UMR']}"
        )
    _print_conditions(report.conditions)
    return 0


def cmd_override(args, repo: DocumentRepository) -> int:
    snapshot = repo.load(args.document)
    store = OverrideStore(snapshot.overrides)
    if args.clear:
        store.clear(args.date)
    else:
        store.set(
            args.date,
            total_revenue=args.total_revenue,
            total_expenses=args.total_expenses,
            total_salary_paid=args.total_salary_paid,
            owner_savings=args.owner_savings,
            product_revenue=args.product_revenue,
        )
    saved = repo.save(snapshot.with_overrides(store.snapshot()), args.document)
    print(f"  Overrides saved (version {saved.version})")
    return 0


def _pairs(values: list[str], option: str) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for value in values:
        key, sep, quantity = value.partition("=")
        if not sep or not key:
            raise RecordValueError(option, value, "expected KEY=QUANTITY")
        pairs[key] = quantity
    return pairs


def _load_for_write(repo: DocumentRepository, args, settings) -> BusinessSnapshot:
    snapshot = repo.load_or_empty(args.document)
    if not snapshot.business_name:
        snapshot = replace(snapshot, business_name=settings.business_name)
    return snapshot


def cmd_record(args, repo: DocumentRepository, settings) -> int:
    snapshot = _load_for_write(repo, args, settings)

    if args.kind == "entry":
        claims = []
        for key, quantity in _pairs(args.bonus, "bonus").items():
            main_id, sep, bonus_id = key.partition(":")
            if not sep:
                raise RecordValueError("bonus", key, "expected MAIN:BONUS=QUANTITY")
            claims.append(BonusClaim(main_id, bonus_id, True, quantity))
        entry = DailyEntry(
            date=args.date,
            employee_id=args.employee_id,
            service_quantities=_pairs(args.service, "service"),
            bonus_claims=tuple(claims),
        )
        result = record_daily_entry(snapshot, entry)
        saved = repo.save(result.snapshot, args.document)
        action = "Replaced" if result.replaced else "Recorded"
        print(
            f"  {action} {entry.key}: gaji {format_rupiah(result.payroll.net_pay)}"
            f" (version {saved.version})"
        )
        _print_conditions(result.conditions)
        return 0

    if args.kind == "sale":
        snapshot, sale = record_product_sale(
            snapshot,
            uuid4().hex,
            args.date,
            args.product_id,
            args.quantity,
            unit_price=args.unit_price,
            seller_name=args.seller or "",
        )
        saved = repo.save(snapshot, args.document)
        print(
            f"  Sold {sale.quantity} x {sale.product_name}: {format_rupiah(sale.total)}"
            f" (version {saved.version})"
        )
        return 0

    if args.kind == "transaction":
        snapshot, transaction = record_transaction(
            snapshot,
            uuid4().hex,
            args.date,
            TransactionType(args.type.capitalize()),
            args.description,
            args.amount,
        )
        saved = repo.save(snapshot, args.document)
        print(
            f"  {transaction.type.value} {format_rupiah(transaction.amount)}:"
            f" {transaction.description} (version {saved.version})"
        )
        return 0

    snapshot, balance = record_month_end_balance(
        snapshot, f"{args.month}-{uuid4().hex[:12]}", args.month, args.amount
    )
    saved = repo.save(snapshot, args.document)
    print(
        f"  Sisa pendapatan {balance.year_month}: {format_rupiah(balance.amount)}"
        f" (version {saved.version})"
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Barbershop revenue and payroll reports.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", type=Path, help="Settings YAML overlaid on defaults")
    parser.add_argument("--db-url", type=str, help="Database URL (default: from settings)")
    parser.add_argument("--document", type=str, default="default", help="Document name")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("import", help="Store a JSON business document")
    p.add_argument("path", type=Path)

    p = sub.add_parser("dashboard", help="Headline figures")
    p.add_argument("--today", type=str, default=date.today().isoformat())

    p = sub.add_parser("daily", help="Daily recap")
    p.add_argument("date", type=str, help="YYYY-MM-DD")
    p.add_argument("--csv", action="store_true", help="Print CSV rows")

    p = sub.add_parser("monthly", help="Monthly report")
    p.add_argument("month", type=str, help="YYYY-MM")
    p.add_argument("--csv", choices=("summary", "salaries", "products", "sisa"), help="Print CSV rows")

    p = sub.add_parser("override", help="Set or clear a manual monthly correction")
    p.add_argument("date", type=str, help="YYYY-MM-DD")
    p.add_argument("--clear", action="store_true")
    for name in (
        "total-revenue",
        "total-expenses",
        "total-salary-paid",
        "owner-savings",
        "product-revenue",
    ):
        p.add_argument(f"--{name}", type=str, default=None)

    p = sub.add_parser("record", help="Record an entry, sale, transaction or month-end balance")
    kinds = p.add_subparsers(dest="kind", required=True)

    k = kinds.add_parser("entry", help="Daily work of one employee")
    k.add_argument("date", type=str, help="YYYY-MM-DD")
    k.add_argument("employee_id", type=str)
    k.add_argument("--service", action="append", default=[], metavar="ID=QTY")
    k.add_argument("--bonus", action="append", default=[], metavar="MAIN:BONUS=QTY")

    k = kinds.add_parser("sale", help="Product sale")
    k.add_argument("date", type=str, help="YYYY-MM-DD")
    k.add_argument("product_id", type=str)
    k.add_argument("quantity", type=str)
    k.add_argument("--unit-price", type=str, default=None)
    k.add_argument("--seller", type=str, default=None)

    k = kinds.add_parser("transaction", help="Income or expense")
    k.add_argument("date", type=str, help="YYYY-MM-DD")
    k.add_argument("type", choices=("income", "expense"))
    k.add_argument("description", type=str)
    k.add_argument("amount", type=str)

    k = kinds.add_parser("sisa", help="Month-end sisa pendapatan + tabungan")
    k.add_argument("month", type=str, help="YYYY-MM")
    k.add_argument("amount", type=str)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = get_active_settings(args.config)
    except (BookkeepingError, FileNotFoundError) as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1

    configure_logging(level=settings.log_level)
    init_engine_from_url(args.db_url or settings.database_url)
    create_tables()

    try:
        with session_scope() as session, LogContext.bind(correlation_id=args.command):
            repo = DocumentRepository(session)
            if args.command == "import":
                return cmd_import(args, repo)
            if args.command == "dashboard":
                return cmd_dashboard(args, repo, settings)
            if args.command == "daily":
                return cmd_daily(args, repo)
            if args.command == "monthly":
                return cmd_monthly(args, repo, settings.minimum_wage)
            if args.command == "record":
                return cmd_record(args, repo, settings)
            return cmd_override(args, repo)
    except BookkeepingError as exc:
        print(f"  ERROR [{exc.code}]: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
