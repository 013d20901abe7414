"""
Model -- Immutable business records and the business snapshot.

Responsibility:
    Defines the frozen records the engines compute over: catalog rows
    (``Service``, ``Employee``), recorded work (``DailyEntry`` with its
    ``BonusClaim`` add-ons and cached ``PaySnapshot``), money movements
    (``Transaction``, ``ProductSale`` of a catalog ``Product``), manual
    corrections (``Override``), month-end remainders (``MonthEndBalance``)
    and the ``BusinessSnapshot`` that bundles them.

Architecture position:
    Kernel > Domain -- pure data, zero I/O.  Produced by the document codec
    (``bookkeeping_kernel.documents``) and consumed by ``bookkeeping_engines``.

Invariants enforced:
    - Records are frozen; changes produce new records via ``replace``.
    - One ``DailyEntry`` per (date, employee_id) inside a snapshot:
      ``BusinessSnapshot.with_entry`` drops any record for the same pair
      regardless of its storage key.
    - Bonus data is explicit: a claim that was never selected has
      ``enabled=False``; a selected claim with no count has ``quantity=0``.

Non-goals:
    - Quantities on ``DailyEntry`` are kept as recorded.  Normalization and
      clamping belong to the revenue calculator, which re-validates them on
      every run.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from typing import Any

OVERRIDE_FIELDS: tuple[str, ...] = (
    "total_revenue",
    "total_expenses",
    "total_salary_paid",
    "owner_savings",
    "product_revenue",
)


class Role(str, Enum):
    """The two payroll roles."""

    KARYAWAN = "Karyawan"
    OWNER = "Owner"


class TransactionType(str, Enum):
    INCOME = "Income"
    EXPENSE = "Expense"


@dataclass(frozen=True)
class Service:
    """A catalog service.  ``bonusable`` services ride on a main service."""

    id: str
    name: str
    price: Decimal
    bonusable: bool = False


@dataclass(frozen=True)
class Employee:
    id: str
    name: str
    role: Role

    @property
    def is_owner(self) -> bool:
        return self.role is Role.OWNER


@dataclass(frozen=True)
class Product:
    """A sellable retail product (pomade, shampoo).  Not a service."""

    id: str
    name: str
    price: Decimal
    stock: int = 0


@dataclass(frozen=True)
class BonusClaim:
    """
    A bonus service claimed on top of a main service in one entry.

    Contract:
        ``enabled`` is the user's selection; ``quantity`` is the recorded
        count (raw, possibly unusable).  Only enabled claims with a usable
        positive quantity earn bonus revenue.
    """

    main_service_id: str
    bonus_service_id: str
    enabled: bool
    quantity: Any = 0


@dataclass(frozen=True)
class PaySnapshot:
    """
    Pay figures cached on an entry when it was saved.

    Contract:
        Authoritative for historical reporting.  Never recomputed against
        the current catalog.  ``role`` is the role used at save time, or
        None when the document predates role capture.
    """

    main_revenue: Decimal
    bonus_revenue: Decimal
    deduction: Decimal
    net_pay: Decimal
    role: Role | None = None

    @property
    def revenue(self) -> Decimal:
        return self.main_revenue + self.bonus_revenue


@dataclass(frozen=True)
class DailyEntry:
    """One employee's recorded work on one date."""

    date: str
    employee_id: str
    service_quantities: Mapping[str, Any] = field(default_factory=dict)
    bonus_claims: tuple[BonusClaim, ...] = ()
    cached: PaySnapshot | None = None

    @property
    def key(self) -> str:
        """Conventional storage key; never parsed back."""
        return f"{self.date}_{self.employee_id}"

    def claims_for(self, main_service_id: str) -> tuple[BonusClaim, ...]:
        return tuple(
            c for c in self.bonus_claims if c.main_service_id == main_service_id
        )


@dataclass(frozen=True)
class Transaction:
    id: str
    date: str
    type: TransactionType
    description: str
    amount: Decimal


@dataclass(frozen=True)
class ProductSale:
    """
    One product sale.  ``total`` is stored and authoritative; for sales
    captured here it is ``quantity x unit_price``.
    """

    id: str
    date: str
    total: Decimal
    product_name: str = ""
    quantity: int = 0
    seller_name: str = ""
    product_id: str = ""
    unit_price: Decimal | None = None


@dataclass(frozen=True)
class MonthEndBalance:
    """
    Month-end remainder ("Sisa Pendapatan + Tabungan") entered by the Owner.

    Contract:
        Informational only: never read by the monthly report.  Several
        records may exist for one month.
    """

    id: str
    year_month: str
    amount: Decimal



@dataclass(frozen=True)
class Override:
    """
    Manually supplied monthly figures, keyed by date.

    Contract:
        A field left as None means "use the computed value".  ``sequence``
        orders saves; a larger sequence was saved later.
    """

    date: str
    total_revenue: Decimal | None = None
    total_expenses: Decimal | None = None
    total_salary_paid: Decimal | None = None
    owner_savings: Decimal | None = None
    product_revenue: Decimal | None = None
    sequence: int = 0

    def value(self, name: str) -> Decimal | None:
        return getattr(self, name)

    def set_fields(self) -> tuple[str, ...]:
        return tuple(f for f in OVERRIDE_FIELDS if getattr(self, f) is not None)

    @property
    def is_empty(self) -> bool:
        return not self.set_fields()


@dataclass(frozen=True)
class BusinessSnapshot:
    """
    The whole business document as an immutable, versioned value.

    Contract:
        Loaded once at the persistence boundary and passed by value into
        every engine.  ``version`` increases on every save.  ``extras``
        holds top-level document keys this model does not interpret; they
        are written back unchanged.
    Guarantees:
        - ``daily_records`` keys are storage keys only; engines index
          records by ``DailyEntry.date`` and ``DailyEntry.employee_id``.
        - ``overrides`` are ordered by ascending save sequence.
    """

    version: int = 0
    business_name: str = ""
    services: tuple[Service, ...] = ()
    employees: tuple[Employee, ...] = ()
    daily_records: Mapping[str, DailyEntry] = field(default_factory=dict)
    transactions: Mapping[str, Transaction] = field(default_factory=dict)
    product_sales: Mapping[str, ProductSale] = field(default_factory=dict)
    overrides: tuple[Override, ...] = ()
    products: tuple[Product, ...] = ()
    month_end_balances: Mapping[str, MonthEndBalance] = field(default_factory=dict)
    extras: Mapping[str, Any] = field(default_factory=dict)

    def entries(self) -> tuple[DailyEntry, ...]:
        return tuple(self.daily_records.values())

    def find_entry(self, date: str, employee_id: str) -> DailyEntry | None:
        for entry in self.daily_records.values():
            if entry.date == date and entry.employee_id == employee_id:
                return entry
        return None

    def with_entry(self, entry: DailyEntry) -> BusinessSnapshot:
        """Return a snapshot where ``entry`` replaces any same-day record."""
        records = {
            key: existing
            for key, existing in self.daily_records.items()
            if not (
                existing.date == entry.date
                and existing.employee_id == entry.employee_id
            )
        }
        records[entry.key] = entry
        return replace(self, daily_records=records)

    def without_entry(self, date: str, employee_id: str) -> BusinessSnapshot:
        records = {
            key: existing
            for key, existing in self.daily_records.items()
            if not (existing.date == date and existing.employee_id == employee_id)
        }
        return replace(self, daily_records=records)

    def product(self, product_id: str) -> Product | None:
        for product in self.products:
            if product.id == product_id:
                return product
        return None

    def with_transaction(self, transaction: Transaction) -> BusinessSnapshot:
        return replace(self, transactions={**self.transactions, transaction.id: transaction})

    def with_product_sale(self, sale: ProductSale) -> BusinessSnapshot:
        return replace(self, product_sales={**self.product_sales, sale.id: sale})

    def with_month_end_balance(self, balance: MonthEndBalance) -> BusinessSnapshot:
        return replace(
            self, month_end_balances={**self.month_end_balances, balance.id: balance}
        )

    def with_overrides(self, overrides: tuple[Override, ...]) -> BusinessSnapshot:
        return replace(self, overrides=overrides)

    def next_version(self) -> BusinessSnapshot:
        return replace(self, version=self.version + 1)
