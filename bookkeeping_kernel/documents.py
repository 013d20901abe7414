"""
Document codec (``bookkeeping_kernel.documents``).

Responsibility
--------------
Translates the persisted business document (a JSON-compatible dict) into a
``BusinessSnapshot`` and back.  This is the persistence boundary: malformed
top-level shape is rejected here so the engines only ever see well-formed
records.

Architecture position
---------------------
**Kernel** -- boundary codec.  Imports the domain model only; called by the
SQLAlchemy repository and by scripts.  Engines never call it.

Invariants enforced
-------------------
* Record keys in ``dailyRecords`` are preserved for round-tripping but never
  interpreted; ``date`` and ``employeeId`` come from the record body.
* Quantities are passed through untouched so the revenue calculator can
  report unusable values.
* Amounts (prices, cached pay, transactions, sales, overrides) are parsed to
  ``Decimal`` here; a non-numeric amount is a shape error.
* Unknown top-level keys survive a parse/dump round trip.

Failure modes
-------------
* ``DocumentShapeError`` -- wrong container types, missing required keys,
  invalid dates, unknown roles or non-numeric amounts.
* ``OverrideValueError`` -- an override value is present but not numeric.

Legacy field names
------------------
Documents written by earlier versions of the shop app use ``services`` /
``bonusServices`` on records (nested, or the older flat ``{bonusId: true}``
map), ``potongan`` / ``gajiDiterima`` for cached
pay, ``isOwner`` on employees, ``isBonus`` on services, Indonesian
transaction types and Indonesian override keys.  All are accepted on read;
``dump_document`` always writes the current names.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from bookkeeping_kernel.domain.model import (
    BonusClaim,
    BusinessSnapshot,
    DailyEntry,
    Employee,
    MonthEndBalance,
    Override,
    PaySnapshot,
    Product,
    ProductSale,
    Role,
    Service,
    Transaction,
    TransactionType,
)
from bookkeeping_kernel.domain.values import (
    is_valid_date,
    is_valid_month,
    parse_quantity,
    to_decimal,
)
from bookkeeping_kernel.exceptions import DocumentShapeError, OverrideValueError
from bookkeeping_kernel.logging_config import get_logger

logger = get_logger("documents")

_KNOWN_KEYS = frozenset(
    {
        "version",
        "businessName",
        "services",
        "employees",
        "dailyRecords",
        "transactions",
        "productSales",
        "urgentOverrides",
        "products",
        "sisaPendapatanRecords",
    }
)

# document key -> (model field, legacy key)
_OVERRIDE_KEYS: dict[str, tuple[str, str]] = {
    "totalRevenue": ("total_revenue", "totalPendapatan"),
    "totalExpenses": ("total_expenses", "totalPengeluaran"),
    "totalSalaryPaid": ("total_salary_paid", "totalGajiDibayarkan"),
    "ownerSavings": ("owner_savings", "tabunganOwner"),
    "productRevenue": ("product_revenue", "pendapatanProduk"),
}

_TRANSACTION_TYPES: dict[str, TransactionType] = {
    "income": TransactionType.INCOME,
    "pemasukan": TransactionType.INCOME,
    "expense": TransactionType.EXPENSE,
    "pengeluaran": TransactionType.EXPENSE,
}


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def _mapping(value: Any, path: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise DocumentShapeError(path, f"expected an object, got {type(value).__name__}")
    return value


def _sequence(value: Any, path: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise DocumentShapeError(path, f"expected a list, got {type(value).__name__}")
    return value


def _required(data: Mapping[str, Any], key: str, path: str) -> Any:
    if data.get(key) is None:
        raise DocumentShapeError(f"{path}.{key}", "required value is missing")
    return data[key]


def _amount(value: Any, path: str) -> Decimal:
    try:
        return to_decimal(value)
    except ValueError as e:
        raise DocumentShapeError(path, str(e)) from e


def _date(value: Any, path: str) -> str:
    if not is_valid_date(value):
        raise DocumentShapeError(path, f"expected YYYY-MM-DD, got {value!r}")
    return value


def parse_role(value: Any, path: str) -> Role:
    """Parse an employee role, case-insensitively."""
    if isinstance(value, Role):
        return value
    if isinstance(value, str):
        for role in Role:
            if value.strip().lower() == role.value.lower():
                return role
    raise DocumentShapeError(path, f"unknown role {value!r}")


def parse_service(data: Any, path: str) -> Service:
    data = _mapping(data, path)
    return Service(
        id=str(_required(data, "id", path)),
        name=str(data.get("name", "")),
        price=_amount(_required(data, "price", path), f"{path}.price"),
        bonusable=bool(data.get("bonusable", data.get("isBonus", False))),
    )


def parse_employee(data: Any, path: str) -> Employee:
    data = _mapping(data, path)
    if data.get("role") is not None:
        role = parse_role(data["role"], f"{path}.role")
    else:
        role = Role.OWNER if data.get("isOwner") else Role.KARYAWAN
    return Employee(
        id=str(_required(data, "id", path)),
        name=str(data.get("name", "")),
        role=role,
    )


def _first_performed(service_quantities: Mapping[str, Any]) -> str:
    """Id of the first service with a positive quantity, or ``""``."""
    for service_id, raw in service_quantities.items():
        quantity, _ = parse_quantity(raw)
        if quantity > 0:
            return str(service_id)
    return ""


def _parse_claims(
    record: Mapping[str, Any],
    service_quantities: Mapping[str, Any],
    path: str,
) -> tuple[BonusClaim, ...]:
    """
    Bonus claims from ``bonusSelections`` / ``bonusQuantities``.

    The nested shape is ``{mainId: {bonusId: value}}``.  Older records store
    a flat ``{bonusId: true}`` map with no main service and an implied
    quantity of one; those claims ride on the first main service performed
    in the record so the bonus cap still applies.
    """
    selections = _mapping(
        record.get("bonusSelections", record.get("bonusServices")),
        f"{path}.bonusSelections",
    )
    quantities = _mapping(record.get("bonusQuantities"), f"{path}.bonusQuantities")

    nested_selections = {k: v for k, v in selections.items() if isinstance(v, Mapping)}
    nested_quantities = {k: v for k, v in quantities.items() if isinstance(v, Mapping)}
    flat_selections = {k: v for k, v in selections.items() if not isinstance(v, Mapping)}
    flat_quantities = {k: v for k, v in quantities.items() if not isinstance(v, Mapping)}

    pairs: dict[tuple[str, str], None] = {}
    for source in (nested_selections, nested_quantities):
        for main_id, per_bonus in source.items():
            for bonus_id in per_bonus:
                pairs.setdefault((str(main_id), str(bonus_id)), None)

    claims = []
    for main_id, bonus_id in pairs:
        enabled = nested_selections.get(main_id, {}).get(bonus_id)
        quantity = nested_quantities.get(main_id, {}).get(bonus_id)
        claims.append(
            BonusClaim(
                main_service_id=main_id,
                bonus_service_id=bonus_id,
                enabled=enabled is True,
                quantity=quantity,
            )
        )

    if flat_selections:
        main_id = _first_performed(service_quantities)
        for bonus_id, selected in flat_selections.items():
            claims.append(
                BonusClaim(
                    main_service_id=main_id,
                    bonus_service_id=str(bonus_id),
                    enabled=selected is True,
                    quantity=flat_quantities.get(bonus_id, 1),
                )
            )
        logger.debug(
            "legacy_bonus_selections_read",
            extra={"record_path": path, "claim_count": len(flat_selections)},
        )
    return tuple(claims)


def _parse_cached(record: Mapping[str, Any], path: str) -> PaySnapshot | None:
    net_pay = record.get("netPay", record.get("gajiDiterima"))
    if net_pay is None:
        return None
    main = record.get("mainRevenue", record.get("total", 0))
    return PaySnapshot(
        main_revenue=_amount(main, f"{path}.mainRevenue"),
        bonus_revenue=_amount(record.get("bonusRevenue", 0), f"{path}.bonusRevenue"),
        deduction=_amount(
            record.get("deduction", record.get("potongan", 0)), f"{path}.deduction"
        ),
        net_pay=_amount(net_pay, f"{path}.netPay"),
        role=parse_role(record["role"], f"{path}.role") if record.get("role") else None,
    )


def parse_daily_entry(data: Any, path: str) -> DailyEntry:
    """Parse one ``dailyRecords`` value."""
    record = _mapping(data, path)
    quantities = _mapping(
        record.get("serviceQuantities", record.get("services")),
        f"{path}.serviceQuantities",
    )
    return DailyEntry(
        date=_date(_required(record, "date", path), f"{path}.date"),
        employee_id=str(_required(record, "employeeId", path)),
        service_quantities={str(k): v for k, v in quantities.items()},
        bonus_claims=_parse_claims(record, quantities, path),
        cached=_parse_cached(record, path),
    )


def parse_transaction(key: str, data: Any, path: str) -> Transaction:
    record = _mapping(data, path)
    raw_type = str(_required(record, "type", path))
    tx_type = _TRANSACTION_TYPES.get(raw_type.strip().lower())
    if tx_type is None:
        raise DocumentShapeError(f"{path}.type", f"unknown transaction type {raw_type!r}")
    return Transaction(
        id=str(record.get("id", key)),
        date=_date(_required(record, "date", path), f"{path}.date"),
        type=tx_type,
        description=str(record.get("description", "")),
        amount=_amount(_required(record, "amount", path), f"{path}.amount"),
    )


def parse_product_sale(key: str, data: Any, path: str) -> ProductSale:
    record = _mapping(data, path)
    quantity = record.get("quantity", 0)
    return ProductSale(
        id=str(record.get("id", key)),
        date=_date(_required(record, "date", path), f"{path}.date"),
        total=_amount(_required(record, "total", path), f"{path}.total"),
        product_name=str(record.get("productName", "")),
        quantity=int(_amount(quantity, f"{path}.quantity")),
        seller_name=str(record.get("sellerName", "")),
        product_id=str(record.get("productId", "")),
        unit_price=(
            _amount(record["unitPrice"], f"{path}.unitPrice")
            if record.get("unitPrice") is not None
            else None
        ),
    )


def parse_product(data: Any, path: str) -> Product:
    data = _mapping(data, path)
    return Product(
        id=str(_required(data, "id", path)),
        name=str(data.get("name", "")),
        price=_amount(_required(data, "price", path), f"{path}.price"),
        stock=int(_amount(data.get("stock") or 0, f"{path}.stock")),
    )


def parse_month_end_balance(key: str, data: Any, path: str) -> MonthEndBalance:
    """Parse one ``sisaPendapatanRecords`` value."""
    record = _mapping(data, path)
    year_month = _required(record, "monthYear", path)
    if not is_valid_month(year_month):
        raise DocumentShapeError(f"{path}.monthYear", f"expected YYYY-MM, got {year_month!r}")
    return MonthEndBalance(
        id=str(record.get("id", key)),
        year_month=year_month,
        amount=_amount(_required(record, "sisaPendapatan", path), f"{path}.sisaPendapatan"),
    )


def parse_override(date: str, data: Any, fallback_sequence: int, path: str) -> Override:
    """
    Parse one ``urgentOverrides`` value.

    Empty strings count as absent, matching what the override form saves
    for a blank input.
    """
    record = _mapping(data, path)
    values: dict[str, Decimal | None] = {}
    for key, (field_name, legacy) in _OVERRIDE_KEYS.items():
        raw = record.get(key, record.get(legacy))
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            values[field_name] = None
            continue
        try:
            values[field_name] = to_decimal(raw)
        except ValueError as e:
            raise OverrideValueError(date, field_name, raw) from e
    sequence = record.get("savedSeq", fallback_sequence)
    if isinstance(sequence, bool) or not isinstance(sequence, int):
        raise DocumentShapeError(f"{path}.savedSeq", f"expected an integer, got {sequence!r}")
    return Override(date=_date(date, path), sequence=sequence, **values)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_document(data: Any) -> BusinessSnapshot:
    """
    Parse a persisted business document.

    Preconditions:
        ``data`` is the decoded JSON document.
    Postconditions:
        Returns a ``BusinessSnapshot``; overrides are ordered by save
        sequence (document order breaks ties and fills in missing
        sequences).
    Raises:
        DocumentShapeError: if the document is malformed.
        OverrideValueError: if an override value is not numeric.
    """
    if not isinstance(data, Mapping):
        raise DocumentShapeError("$", "expected an object")
    doc = data

    services = tuple(
        parse_service(item, f"services[{i}]")
        for i, item in enumerate(_sequence(doc.get("services"), "services"))
    )
    employees = tuple(
        parse_employee(item, f"employees[{i}]")
        for i, item in enumerate(_sequence(doc.get("employees"), "employees"))
    )
    records = {
        str(key): parse_daily_entry(value, f"dailyRecords.{key}")
        for key, value in _mapping(doc.get("dailyRecords"), "dailyRecords").items()
    }
    transactions = {
        str(key): parse_transaction(str(key), value, f"transactions.{key}")
        for key, value in _mapping(doc.get("transactions"), "transactions").items()
    }
    sales = {
        str(key): parse_product_sale(str(key), value, f"productSales.{key}")
        for key, value in _mapping(doc.get("productSales"), "productSales").items()
    }
    products = tuple(
        parse_product(item, f"products[{i}]")
        for i, item in enumerate(_sequence(doc.get("products"), "products"))
    )
    balances = {
        str(key): parse_month_end_balance(str(key), value, f"sisaPendapatanRecords.{key}")
        for key, value in _mapping(
            doc.get("sisaPendapatanRecords"), "sisaPendapatanRecords"
        ).items()
    }
    raw_overrides = _mapping(doc.get("urgentOverrides"), "urgentOverrides")
    overrides = [
        parse_override(str(date), value, position, f"urgentOverrides.{date}")
        for position, (date, value) in enumerate(raw_overrides.items(), start=1)
    ]
    overrides.sort(key=lambda o: o.sequence)

    version = doc.get("version", 0)
    if isinstance(version, bool) or not isinstance(version, int):
        raise DocumentShapeError("version", f"expected an integer, got {version!r}")

    snapshot = BusinessSnapshot(
        version=version,
        business_name=str(doc.get("businessName", "")),
        services=services,
        employees=employees,
        daily_records=records,
        transactions=transactions,
        product_sales=sales,
        overrides=tuple(overrides),
        products=products,
        month_end_balances=balances,
        extras={k: v for k, v in doc.items() if k not in _KNOWN_KEYS},
    )
    logger.debug(
        "document_parsed",
        extra={
            "document_version": version,
            "record_count": len(records),
            "override_count": len(overrides),
        },
    )
    return snapshot


def _number(value: Decimal) -> int | str:
    """JSON-safe number: ints stay ints, fractions keep full precision."""
    if value == value.to_integral_value():
        return int(value)
    return str(value)


def dump_daily_entry(entry: DailyEntry) -> dict[str, Any]:
    selections: dict[str, dict[str, bool]] = {}
    quantities: dict[str, dict[str, Any]] = {}
    for claim in entry.bonus_claims:
        selections.setdefault(claim.main_service_id, {})[claim.bonus_service_id] = claim.enabled
        if claim.quantity is not None:
            quantities.setdefault(claim.main_service_id, {})[claim.bonus_service_id] = claim.quantity

    record: dict[str, Any] = {
        "date": entry.date,
        "employeeId": entry.employee_id,
        "serviceQuantities": dict(entry.service_quantities),
        "bonusSelections": selections,
        "bonusQuantities": quantities,
    }
    if entry.cached is not None:
        record.update(
            mainRevenue=_number(entry.cached.main_revenue),
            bonusRevenue=_number(entry.cached.bonus_revenue),
            potongan=_number(entry.cached.deduction),
            gajiDiterima=_number(entry.cached.net_pay),
        )
        if entry.cached.role is not None:
            record["role"] = entry.cached.role.value
    return record


def _dump_product_sale(sale: ProductSale) -> dict[str, Any]:
    body: dict[str, Any] = {
        "id": sale.id,
        "date": sale.date,
        "total": _number(sale.total),
        "productName": sale.product_name,
        "quantity": sale.quantity,
        "sellerName": sale.seller_name,
    }
    if sale.product_id:
        body["productId"] = sale.product_id
    if sale.unit_price is not None:
        body["unitPrice"] = _number(sale.unit_price)
    return body


def dump_document(snapshot: BusinessSnapshot) -> dict[str, Any]:
    """
    Serialize a snapshot to a JSON-compatible document.

    Postconditions:
        ``parse_document(dump_document(s))`` equals ``s`` up to quantity
        types and legacy field names.
    """
    overrides: dict[str, Any] = {}
    for override in snapshot.overrides:
        body: dict[str, Any] = {"savedSeq": override.sequence}
        for key, (field_name, _legacy) in _OVERRIDE_KEYS.items():
            value = getattr(override, field_name)
            if value is not None:
                body[key] = _number(value)
        overrides[override.date] = body

    document: dict[str, Any] = dict(snapshot.extras)
    document.update(
        version=snapshot.version,
        businessName=snapshot.business_name,
        services=[
            {
                "id": s.id,
                "name": s.name,
                "price": _number(s.price),
                "bonusable": s.bonusable,
            }
            for s in snapshot.services
        ],
        employees=[
            {"id": e.id, "name": e.name, "role": e.role.value}
            for e in snapshot.employees
        ],
        dailyRecords={
            key: dump_daily_entry(entry) for key, entry in snapshot.daily_records.items()
        },
        transactions={
            key: {
                "id": t.id,
                "date": t.date,
                "type": t.type.value,
                "description": t.description,
                "amount": _number(t.amount),
            }
            for key, t in snapshot.transactions.items()
        },
        productSales={
            key: _dump_product_sale(s) for key, s in snapshot.product_sales.items()
        },
        products=[
            {"id": p.id, "name": p.name, "price": _number(p.price), "stock": p.stock}
            for p in snapshot.products
        ],
        sisaPendapatanRecords={
            key: {
                "id": b.id,
                "monthYear": b.year_month,
                "sisaPendapatan": _number(b.amount),
            }
            for key, b in snapshot.month_end_balances.items()
        },
        urgentOverrides=overrides,
    )
    return document
