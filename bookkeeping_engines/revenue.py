"""
Module: bookkeeping_engines.revenue
Responsibility:
    Revenue Calculator.  Computes main-service revenue and bonus-service
    revenue for a single daily entry, independent of the employee's role.
    This is phase one of the two-phase payroll computation; phase two
    (``bookkeeping_engines.payroll.compute_day_payroll``) turns revenue into
    pay once the whole day is known.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Depends on the Catalog and kernel domain values only.

Invariants enforced:
    - Bonus cap: every bonus quantity used in a computation is <= the
      quantity of the main service it rides on.
    - Quantities are normalized on every run, even if the capture boundary
      already validated them: absent -> 0, unusable or negative -> 0.
    - Unknown service ids contribute zero, and so do bonus services listed
      among the main services.
    - Decimal-only arithmetic.

Failure modes:
    None raised.  Every anomaly is returned as a Condition:
    MISSING_REFERENCE, INVALID_QUANTITY, BONUS_EXCEEDS_MAIN, BONUS_AS_MAIN.

Usage:
    revenue = compute_entry_revenue(entry, catalog)
    revenue.main_revenue, revenue.bonus_revenue, revenue.bonus_detail
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal

from bookkeeping_engines.catalog import Catalog
from bookkeeping_kernel.domain.conditions import Condition
from bookkeeping_kernel.domain.model import BonusClaim, DailyEntry
from bookkeeping_kernel.domain.values import ZERO, parse_quantity


@dataclass(frozen=True)
class ServiceLine:
    """One main service performed in an entry."""

    service_id: str
    service_name: str
    quantity: int
    unit_price: Decimal
    value: Decimal


@dataclass(frozen=True)
class BonusLine:
    """One enabled bonus add-on that earned revenue."""

    main_service_id: str
    bonus_service_id: str
    bonus_name: str
    quantity: int
    unit_price: Decimal
    value: Decimal


@dataclass(frozen=True)
class EntryRevenue:
    """
    Revenue computed for one entry.

    Guarantees:
        - ``main_revenue`` equals the sum of ``service_lines`` values.
        - ``bonus_revenue`` equals the sum of ``bonus_detail`` values.
    """

    date: str
    employee_id: str
    main_revenue: Decimal
    bonus_revenue: Decimal
    service_lines: tuple[ServiceLine, ...] = ()
    bonus_detail: tuple[BonusLine, ...] = ()
    conditions: tuple[Condition, ...] = ()

    @property
    def total(self) -> Decimal:
        return self.main_revenue + self.bonus_revenue


def main_quantities(entry: DailyEntry) -> tuple[dict[str, int], list[Condition]]:
    """Normalize the entry's main-service quantities."""
    quantities: dict[str, int] = {}
    conditions: list[Condition] = []
    for service_id, raw in entry.service_quantities.items():
        quantity, valid = parse_quantity(raw)
        if not valid:
            conditions.append(
                Condition.invalid_quantity(service_id, raw, entry.date, entry.employee_id)
            )
        quantities[service_id] = quantity
    return quantities, conditions


def clamp_bonus_claims(
    entry: DailyEntry,
    quantities: dict[str, int] | None = None,
) -> tuple[tuple[BonusClaim, ...], list[Condition]]:
    """
    Normalize bonus quantities and cap enabled claims at their main quantity.

    Disabled claims are returned with a normalized quantity but are not
    capped; they never earn revenue.
    """
    if quantities is None:
        quantities, _ = main_quantities(entry)
    claims: list[BonusClaim] = []
    conditions: list[Condition] = []
    for claim in entry.bonus_claims:
        quantity, valid = parse_quantity(claim.quantity)
        if claim.enabled and not valid:
            conditions.append(
                Condition.invalid_quantity(
                    claim.bonus_service_id, claim.quantity, entry.date, entry.employee_id
                )
            )
        allowed = quantities.get(claim.main_service_id, 0)
        if claim.enabled and quantity > allowed:
            conditions.append(
                Condition.bonus_exceeds_main(
                    claim.bonus_service_id,
                    claim.main_service_id,
                    quantity,
                    allowed,
                    entry.date,
                    entry.employee_id,
                )
            )
            quantity = allowed
        claims.append(replace(claim, quantity=quantity))
    return tuple(claims), conditions


def compute_entry_revenue(entry: DailyEntry, catalog: Catalog) -> EntryRevenue:
    """
    Compute main and bonus revenue for one entry against the live catalog.

    Preconditions:
        ``entry`` may carry raw, unvalidated quantities.
    Postconditions:
        - main_revenue = sum(price x quantity) over known non-bonusable
          services.
        - bonus_detail lists enabled claims with a positive (clamped)
          quantity and a known bonus service.
        - bonus_revenue = sum(bonus_detail.value).
        - Cached pay on the entry is ignored.
    """
    quantities, conditions = main_quantities(entry)

    service_lines: list[ServiceLine] = []
    main_revenue = ZERO
    for service_id, quantity in quantities.items():
        if quantity <= 0:
            continue
        service = catalog.service(service_id)
        if service is None:
            conditions.append(
                Condition.missing_service(service_id, entry.date, entry.employee_id)
            )
            continue
        if service.bonusable:
            conditions.append(
                Condition.bonus_as_main(service_id, entry.date, entry.employee_id)
            )
            continue
        value = service.price * quantity
        main_revenue += value
        service_lines.append(
            ServiceLine(service.id, service.name, quantity, service.price, value)
        )

    claims, claim_conditions = clamp_bonus_claims(entry, quantities)
    conditions.extend(claim_conditions)

    bonus_detail: list[BonusLine] = []
    bonus_revenue = ZERO
    for claim in claims:
        if not claim.enabled or claim.quantity <= 0:
            continue
        bonus = catalog.service(claim.bonus_service_id)
        if bonus is None:
            conditions.append(
                Condition.missing_service(
                    claim.bonus_service_id, entry.date, entry.employee_id
                )
            )
            continue
        value = bonus.price * claim.quantity
        bonus_revenue += value
        bonus_detail.append(
            BonusLine(
                claim.main_service_id,
                bonus.id,
                bonus.name,
                claim.quantity,
                bonus.price,
                value,
            )
        )

    return EntryRevenue(
        date=entry.date,
        employee_id=entry.employee_id,
        main_revenue=main_revenue,
        bonus_revenue=bonus_revenue,
        service_lines=tuple(service_lines),
        bonus_detail=tuple(bonus_detail),
        conditions=tuple(conditions),
    )
