"""
Module: bookkeeping_engines.capture
Responsibility:
    Record capture.  Prepares a daily entry for storage: normalizes its
    quantities, clamps its bonus claims, stamps its cached pay and places
    it in a new snapshot, replacing any entry for the same employee and
    date.  Also validates and stores product sales, income and expense
    transactions and month-end balances.

Architecture position:
    Engines -- pure, returns a new BusinessSnapshot; persisting it is the
    caller's job (``DocumentRepository.save``).

Invariants enforced:
    - Stored quantities are non-negative integers and every enabled bonus
      quantity is <= its main service quantity.
    - Cached pay is computed with entry-only context: an Owner's cached
      share and employee deduction are 0.  The Monthly Aggregator
      recomputes Owner pay with the whole month in view.
    - The cached role is the role used for the computation.

Failure modes:
    - InvalidDateError for a malformed entry date.
    - Data anomalies in daily entries are reported as Conditions on the
      result.  Sales, transactions and balances are user input with no
      best-effort reading; bad values raise RecordError subclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any

from bookkeeping_engines.catalog import Catalog
from bookkeeping_engines.payroll import EntryPayroll, compute_day_payroll
from bookkeeping_engines.revenue import clamp_bonus_claims, main_quantities
from bookkeeping_kernel.domain.conditions import Condition, dedupe
from bookkeeping_kernel.domain.model import (
    BusinessSnapshot,
    DailyEntry,
    MonthEndBalance,
    PaySnapshot,
    ProductSale,
    Transaction,
    TransactionType,
)
from bookkeeping_kernel.domain.values import month_window, require_date, to_decimal
from bookkeeping_kernel.exceptions import RecordValueError, UnknownProductError
from bookkeeping_kernel.logging_config import LogContext, get_logger

logger = get_logger("engines.capture")


@dataclass(frozen=True)
class CaptureResult:
    """The stored entry, the pay it was stamped with and the new snapshot."""

    entry: DailyEntry
    payroll: EntryPayroll
    snapshot: BusinessSnapshot
    replaced: bool
    conditions: tuple[Condition, ...] = ()


def normalize_entry(entry: DailyEntry) -> tuple[DailyEntry, tuple[Condition, ...]]:
    """Return ``entry`` with usable quantities and clamped bonus claims."""
    quantities, conditions = main_quantities(entry)
    claims, claim_conditions = clamp_bonus_claims(entry, quantities)
    normalized = replace(
        entry,
        service_quantities=quantities,
        bonus_claims=claims,
        cached=None,
    )
    return normalized, tuple(conditions + claim_conditions)


def record_daily_entry(snapshot: BusinessSnapshot, entry: DailyEntry) -> CaptureResult:
    """
    Store ``entry`` in a copy of ``snapshot``.

    Postconditions:
        - The returned snapshot holds exactly one entry for
          (entry.date, entry.employee_id): the normalized, stamped one.
        - ``snapshot`` itself is unchanged.
    """
    require_date(entry.date)
    with LogContext.bind(report_date=entry.date, employee_id=entry.employee_id):
        normalized, conditions = normalize_entry(entry)
        catalog = Catalog.from_snapshot(snapshot)
        day = compute_day_payroll(entry.date, [normalized], catalog)
        pay = day.lines[0]

        stored = replace(
            normalized,
            cached=PaySnapshot(
                main_revenue=pay.main_revenue,
                bonus_revenue=pay.bonus_revenue,
                deduction=pay.deduction,
                net_pay=pay.net_pay,
                role=pay.role,
            ),
        )
        replaced = snapshot.find_entry(entry.date, entry.employee_id) is not None
        updated = snapshot.with_entry(stored)

        logger.info(
            "daily_entry_recorded",
            extra={
                "replaced": replaced,
                "role": pay.role.value if pay.role is not None else None,
                "net_pay": pay.net_pay,
            },
        )
    return CaptureResult(
        entry=stored,
        payroll=pay,
        snapshot=updated,
        replaced=replaced,
        conditions=dedupe(conditions + day.conditions),
    )


def remove_daily_entry(
    snapshot: BusinessSnapshot, date: str, employee_id: str
) -> tuple[BusinessSnapshot, bool]:
    """Drop the entry for (date, employee_id).  Returns (snapshot, removed)."""
    if snapshot.find_entry(date, employee_id) is None:
        return snapshot, False
    logger.info(
        "daily_entry_removed",
        extra={"report_date": date, "employee_id": employee_id},
    )
    return snapshot.without_entry(date, employee_id), True


def _amount(field: str, value: Any) -> Decimal:
    try:
        return to_decimal(value)
    except ValueError as e:
        raise RecordValueError(field, value, "not a number") from e


def record_product_sale(
    snapshot: BusinessSnapshot,
    sale_id: str,
    date: str,
    product_id: str,
    quantity: Any,
    unit_price: Any = None,
    seller_name: str = "",
) -> tuple[BusinessSnapshot, ProductSale]:
    """
    Store a sale of a catalog product.  Returns (snapshot, sale).

    ``unit_price`` defaults to the product's catalog price and may be
    overridden per sale.  total = quantity x unit_price.  A blank seller
    is stored as ``"N/A"``.

    Raises:
        InvalidDateError: malformed ``date``.
        UnknownProductError: ``product_id`` is not in the product catalog.
        RecordValueError: quantity not a positive whole number, or a
            negative or non-numeric unit price.
    """
    require_date(date)
    product = snapshot.product(product_id)
    if product is None:
        raise UnknownProductError(product_id)

    count = _amount("quantity", quantity)
    if count <= 0 or count != count.to_integral_value():
        raise RecordValueError("quantity", quantity, "must be a positive whole number")
    price = product.price if unit_price is None else _amount("unit_price", unit_price)
    if price < 0:
        raise RecordValueError("unit_price", unit_price, "must not be negative")

    sale = ProductSale(
        id=sale_id,
        date=date,
        total=price * count,
        product_name=product.name,
        quantity=int(count),
        seller_name=seller_name.strip() or "N/A",
        product_id=product.id,
        unit_price=price,
    )
    logger.info(
        "product_sale_recorded",
        extra={"report_date": date, "product_id": product.id, "total": sale.total},
    )
    return snapshot.with_product_sale(sale), sale


def record_transaction(
    snapshot: BusinessSnapshot,
    transaction_id: str,
    date: str,
    type: TransactionType,
    description: str,
    amount: Any,
) -> tuple[BusinessSnapshot, Transaction]:
    """
    Store an income or expense.  Returns (snapshot, transaction).

    Raises:
        InvalidDateError: malformed ``date``.
        RecordValueError: blank description or a non-positive amount.
    """
    require_date(date)
    if not description.strip():
        raise RecordValueError("description", description, "required")
    value = _amount("amount", amount)
    if value <= 0:
        raise RecordValueError("amount", amount, "must be positive")

    transaction = Transaction(
        id=transaction_id,
        date=date,
        type=type,
        description=description.strip(),
        amount=value,
    )
    logger.info(
        "transaction_recorded",
        extra={"report_date": date, "transaction_type": type.value, "amount": value},
    )
    return snapshot.with_transaction(transaction), transaction


def record_month_end_balance(
    snapshot: BusinessSnapshot,
    balance_id: str,
    year_month: str,
    amount: Any,
) -> tuple[BusinessSnapshot, MonthEndBalance]:
    """
    Store a month-end "Sisa Pendapatan + Tabungan" figure.

    Raises:
        InvalidMonthError: malformed ``year_month``.
        RecordValueError: ``amount`` is not a number.
    """
    month_window(year_month)
    balance = MonthEndBalance(
        id=balance_id,
        year_month=year_month,
        amount=_amount("amount", amount),
    )
    logger.info(
        "month_end_balance_recorded",
        extra={"report_date": year_month, "amount": balance.amount},
    )
    return snapshot.with_month_end_balance(balance), balance
