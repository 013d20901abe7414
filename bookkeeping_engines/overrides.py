"""
Module: bookkeeping_engines.overrides
Responsibility:
    Override Store.  Holds manually supplied per-date corrections and
    resolves which of them take precedence over computed monthly figures.

Architecture position:
    Engines -- in-memory store, zero I/O.  Seeded from and written back to
    ``BusinessSnapshot.overrides``; consulted by the Monthly Aggregator at
    its boundary.

Invariants enforced:
    - ``set`` merges: fields not supplied (or supplied as None) keep their
      stored value; nothing is zeroed.
    - Values are numeric or absent.  Negative values are allowed.
    - Every ``set`` stamps a save sequence larger than any stored one, so
      "most recently saved" is well defined.
    - ``resolve`` is last-write-wins per field, never a sum.

Failure modes:
    - InvalidDateError for a malformed date key.
    - UnknownOverrideFieldError for a field the monthly report does not
      expose.
    - OverrideValueError for a non-numeric value.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any

from bookkeeping_kernel.domain.conditions import Condition
from bookkeeping_kernel.domain.model import OVERRIDE_FIELDS, Override
from bookkeeping_kernel.domain.values import in_window, require_date, to_decimal
from bookkeeping_kernel.exceptions import OverrideValueError, UnknownOverrideFieldError
from bookkeeping_kernel.logging_config import get_logger

logger = get_logger("engines.overrides")


@dataclass(frozen=True)
class OverrideResolution:
    """
    The override values that apply to one window.

    Contract:
        ``values`` maps field -> replacement value; ``sources`` maps field
        -> the date of the override that supplied it.  Fields absent from
        ``values`` keep their computed value.
    """

    values: dict[str, Decimal]
    sources: dict[str, str]
    conditions: tuple[Condition, ...] = ()

    def apply(self, field: str, computed: Decimal) -> Decimal:
        return self.values.get(field, computed)

    @property
    def has_conflict(self) -> bool:
        return bool(self.conditions)


class OverrideStore:
    """Date-keyed manual corrections with save ordering."""

    def __init__(self, overrides: Iterable[Override] = ()):
        self._by_date: dict[str, Override] = {}
        for override in sorted(overrides, key=lambda o: o.sequence):
            self._by_date[override.date] = override
        self._last_sequence = max(
            (o.sequence for o in self._by_date.values()), default=0
        )

    def __len__(self) -> int:
        return len(self._by_date)

    def __contains__(self, date: object) -> bool:
        return date in self._by_date

    def __iter__(self) -> Iterator[Override]:
        return iter(self.snapshot())

    def get(self, date: str) -> Override | None:
        return self._by_date.get(date)

    def set(self, date: str, **fields: Any) -> Override:
        """
        Merge ``fields`` into the override for ``date``.

        Preconditions:
            Field names are among ``OVERRIDE_FIELDS``; values are numeric
            (Decimal, int, float or numeric string) or None.
        Postconditions:
            Returns the stored override, stamped as the latest save.
        """
        require_date(date)
        updates: dict[str, Decimal] = {}
        for name, raw in fields.items():
            if name not in OVERRIDE_FIELDS:
                raise UnknownOverrideFieldError(name)
            if raw is None:
                continue
            try:
                updates[name] = to_decimal(raw)
            except ValueError as e:
                raise OverrideValueError(date, name, raw) from e

        self._last_sequence += 1
        current = self._by_date.pop(date, None) or Override(date=date)
        stored = replace(current, sequence=self._last_sequence, **updates)
        self._by_date[date] = stored
        logger.info(
            "override_saved",
            extra={
                "override_date": date,
                "fields": sorted(updates),
                "sequence": stored.sequence,
            },
        )
        return stored

    def clear(self, date: str) -> bool:
        """Remove the override for ``date``.  Returns False if none existed."""
        removed = self._by_date.pop(date, None)
        if removed is not None:
            logger.info("override_cleared", extra={"override_date": date})
        return removed is not None

    def in_window(self, window: tuple[str, str]) -> tuple[Override, ...]:
        """Overrides dated inside ``window``, oldest save first."""
        return tuple(o for o in self.snapshot() if in_window(o.date, window))

    def resolve(self, window: tuple[str, str]) -> OverrideResolution:
        """
        Pick the replacement value for each field inside ``window``.

        For each field, the most recently saved override that sets it wins.
        When more than one override date sets the same field, an
        OVERRIDE_CONFLICT condition names the superseded dates.
        """
        values: dict[str, Decimal] = {}
        sources: dict[str, str] = {}
        superseded: dict[str, list[str]] = {}
        for override in self.in_window(window):
            for name in override.set_fields():
                if name in sources:
                    superseded.setdefault(name, []).append(sources[name])
                values[name] = override.value(name)
                sources[name] = override.date

        conditions = tuple(
            Condition.override_conflict(name, sources[name], losers)
            for name, losers in superseded.items()
        )
        return OverrideResolution(values=values, sources=sources, conditions=conditions)

    def snapshot(self) -> tuple[Override, ...]:
        """All overrides ordered by save sequence, for persistence."""
        return tuple(sorted(self._by_date.values(), key=lambda o: o.sequence))
