"""
Conditions -- Non-fatal anomalies reported alongside engine results.

Responsibility:
    The engines degrade every data anomaly to a best-effort number.  A
    ``Condition`` records what was degraded so callers can show it to the
    user.  Conditions are values, never exceptions.

Architecture position:
    Kernel > Domain -- pure data, zero I/O.

Kinds:
    MISSING_REFERENCE   -- service or employee id not in the catalog;
                           contributes zero.
    INVALID_QUANTITY    -- quantity non-numeric or negative; used as 0.
    BONUS_EXCEEDS_MAIN  -- bonus quantity above its main service quantity;
                           clamped to the main quantity.
    OVERRIDE_CONFLICT   -- several override dates inside one month set the
                           same field; the most recently saved one wins.
    BONUS_AS_MAIN       -- a bonus service listed among the main services;
                           contributes zero.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum


class ConditionKind(str, Enum):
    MISSING_REFERENCE = "missing_reference"
    INVALID_QUANTITY = "invalid_quantity"
    BONUS_EXCEEDS_MAIN = "bonus_exceeds_main"
    OVERRIDE_CONFLICT = "override_conflict"
    BONUS_AS_MAIN = "bonus_as_main"


@dataclass(frozen=True)
class Condition:
    """
    One reported anomaly.

    Contract:
        ``kind`` classifies it; ``message`` is human readable; the optional
        fields locate it (``reference_id`` is the offending service id,
        employee id or override field).
    """

    kind: ConditionKind
    message: str
    date: str | None = None
    employee_id: str | None = None
    reference_id: str | None = None

    @classmethod
    def missing_service(cls, service_id: str, date: str, employee_id: str) -> Condition:
        return cls(
            ConditionKind.MISSING_REFERENCE,
            f"Service {service_id} is not in the catalog",
            date=date,
            employee_id=employee_id,
            reference_id=service_id,
        )

    @classmethod
    def missing_employee(cls, employee_id: str, date: str) -> Condition:
        return cls(
            ConditionKind.MISSING_REFERENCE,
            f"Employee {employee_id} is not in the catalog",
            date=date,
            employee_id=employee_id,
            reference_id=employee_id,
        )

    @classmethod
    def invalid_quantity(
        cls, service_id: str, raw: object, date: str, employee_id: str
    ) -> Condition:
        return cls(
            ConditionKind.INVALID_QUANTITY,
            f"Quantity {raw!r} for {service_id} is not a non-negative number; using 0",
            date=date,
            employee_id=employee_id,
            reference_id=service_id,
        )

    @classmethod
    def bonus_exceeds_main(
        cls,
        bonus_service_id: str,
        main_service_id: str,
        claimed: int,
        allowed: int,
        date: str,
        employee_id: str,
    ) -> Condition:
        return cls(
            ConditionKind.BONUS_EXCEEDS_MAIN,
            f"Bonus {bonus_service_id} claimed {claimed} times on "
            f"{main_service_id} performed {allowed} times; clamped to {allowed}",
            date=date,
            employee_id=employee_id,
            reference_id=bonus_service_id,
        )

    @classmethod
    def bonus_as_main(cls, service_id: str, date: str, employee_id: str) -> Condition:
        return cls(
            ConditionKind.BONUS_AS_MAIN,
            f"Bonus service {service_id} was recorded as a main service; ignored",
            date=date,
            employee_id=employee_id,
            reference_id=service_id,
        )

    @classmethod
    def override_conflict(cls, field: str, winner: str, losers: Iterable[str]) -> Condition:
        return cls(
            ConditionKind.OVERRIDE_CONFLICT,
            f"Overrides on {', '.join(sorted(losers))} for {field} "
            f"superseded by the later save on {winner}",
            date=winner,
            reference_id=field,
        )


def log_conditions(logger: logging.Logger, conditions: Iterable[Condition]) -> None:
    """Emit one WARNING record per condition."""
    for condition in conditions:
        logger.warning(
            condition.kind.value,
            extra={
                "condition": condition.message,
                "condition_date": condition.date,
                "condition_employee_id": condition.employee_id,
                "reference_id": condition.reference_id,
            },
        )


def dedupe(conditions: Iterable[Condition]) -> tuple[Condition, ...]:
    """Drop repeated conditions, keeping first-seen order."""
    seen: dict[Condition, None] = {}
    for condition in conditions:
        seen.setdefault(condition, None)
    return tuple(seen)
