"""
Module: bookkeeping_engines.catalog
Responsibility:
    Read-only lookup of Service and Employee definitions by id.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Leaf of the engine
    data flow: every calculator resolves ids through a Catalog.

Invariants enforced:
    - Lookups never raise; an unknown id returns None and the caller
      reports a MISSING_REFERENCE condition.
    - Employee order is the order of the catalog's employee list; it is the
      display order for recaps.
    - On duplicate ids the first definition wins.
"""

from __future__ import annotations

from collections.abc import Iterable

from bookkeeping_kernel.domain.model import BusinessSnapshot, Employee, Role, Service


class Catalog:
    """Indexed, read-only view of services and employees."""

    def __init__(
        self,
        services: Iterable[Service] = (),
        employees: Iterable[Employee] = (),
    ):
        self._services: dict[str, Service] = {}
        for service in services:
            self._services.setdefault(service.id, service)
        self._employees: dict[str, Employee] = {}
        for employee in employees:
            self._employees.setdefault(employee.id, employee)
        self._rank = {employee_id: i for i, employee_id in enumerate(self._employees)}

    @classmethod
    def from_snapshot(cls, snapshot: BusinessSnapshot) -> Catalog:
        return cls(snapshot.services, snapshot.employees)

    @property
    def services(self) -> tuple[Service, ...]:
        return tuple(self._services.values())

    @property
    def employees(self) -> tuple[Employee, ...]:
        return tuple(self._employees.values())

    def service(self, service_id: str) -> Service | None:
        return self._services.get(service_id)

    def employee(self, employee_id: str) -> Employee | None:
        return self._employees.get(employee_id)

    def role_of(self, employee_id: str) -> Role | None:
        employee = self._employees.get(employee_id)
        return employee.role if employee is not None else None

    def employee_rank(self, employee_id: str) -> int:
        """Position in the employee list; unknown ids sort after all known ones."""
        return self._rank.get(employee_id, len(self._rank))

    def main_services(self) -> tuple[Service, ...]:
        return tuple(s for s in self._services.values() if not s.bonusable)

    def bonus_services(self) -> tuple[Service, ...]:
        return tuple(s for s in self._services.values() if s.bonusable)

    def owners(self) -> tuple[Employee, ...]:
        return tuple(e for e in self._employees.values() if e.is_owner)

    def __repr__(self) -> str:
        return f"Catalog(services={len(self._services)}, employees={len(self._employees)})"
