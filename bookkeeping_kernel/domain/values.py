"""
Values -- Decimal, quantity and calendar-string helpers.

Responsibility:
    Provides the primitive conversions every engine relies on: turning raw
    document values into ``Decimal`` amounts and non-negative integer
    quantities, validating ``YYYY-MM-DD`` / ``YYYY-MM`` strings, building
    the monthly string window, and rendering rupiah for display.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - All monetary arithmetic uses ``Decimal``; floats are converted through
      ``str`` so ``0.1`` never becomes ``0.1000000000000000055...``.
    - Quantities are whole, non-negative numbers.
    - The monthly window is a *string* range ``YYYY-MM-01 .. YYYY-MM-31``;
      no calendar end-of-month is ever computed.

Failure modes:
    - ``to_decimal`` raises ``ValueError`` for non-numeric input.
    - ``parse_quantity`` never raises; it reports validity instead.
    - ``require_date`` / ``month_window`` raise ``InvalidDateError`` /
      ``InvalidMonthError``.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from bookkeeping_kernel.exceptions import InvalidDateError, InvalidMonthError

ZERO = Decimal("0")

_DATE_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])-(0[1-9]|[12]\d|3[01])$")
_MONTH_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


def to_decimal(value: Any) -> Decimal:
    """
    Convert a raw numeric value to ``Decimal``.

    Preconditions:
        ``value`` is a Decimal, int, float or numeric string.
    Postconditions:
        Returns a finite ``Decimal``.
    Raises:
        ValueError: for booleans, None, non-numeric strings, NaN or infinity.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or value is None:
        raise ValueError(f"Not a numeric value: {value!r}")
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise ValueError(f"Not a numeric value: {value!r}") from e
    else:
        raise ValueError(f"Not a numeric value: {value!r}")
    if not result.is_finite():
        raise ValueError(f"Not a finite value: {value!r}")
    return result


def parse_quantity(raw: Any) -> tuple[int, bool]:
    """
    Normalize a raw quantity to a non-negative integer.

    Returns ``(quantity, valid)``.  Absent values (``None`` or an empty
    string) yield ``(0, True)``.  Non-numeric or negative values yield
    ``(0, False)``.  Fractions are truncated toward zero.
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return 0, True
    try:
        amount = to_decimal(raw)
    except ValueError:
        return 0, False
    if amount < 0:
        return 0, False
    return int(amount), True


def is_valid_date(value: Any) -> bool:
    """True if ``value`` is a ``YYYY-MM-DD`` string."""
    return isinstance(value, str) and bool(_DATE_RE.match(value))


def is_valid_month(value: Any) -> bool:
    """True if ``value`` is a ``YYYY-MM`` string."""
    return isinstance(value, str) and bool(_MONTH_RE.match(value))


def require_date(value: Any) -> str:
    """Return ``value`` unchanged or raise ``InvalidDateError``."""
    if not is_valid_date(value):
        raise InvalidDateError(value)
    return value


def month_window(year_month: Any) -> tuple[str, str]:
    """
    Return the inclusive string window for a ``YYYY-MM`` month.

    The window is ``("YYYY-MM-01", "YYYY-MM-31")`` for every month; dates
    are compared lexicographically, so shorter months need no special case.

    Raises:
        InvalidMonthError: if ``year_month`` is not ``YYYY-MM``.
    """
    if not is_valid_month(year_month):
        raise InvalidMonthError(year_month)
    return f"{year_month}-01", f"{year_month}-31"


def in_window(date: str, window: tuple[str, str]) -> bool:
    """String-range membership test for a ``month_window``."""
    start, end = window
    return start <= date <= end


def to_rupiah(amount: Decimal) -> int:
    """Round an amount to whole rupiah (half-up)."""
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_rupiah(amount: Decimal | int) -> str:
    """
    Render an amount the way the shop displays money.

    >>> format_rupiah(Decimal("1500000"))
    'Rp 1.500.000'
    >>> format_rupiah(Decimal("-40000"))
    '-Rp 40.000'
    """
    whole = to_rupiah(amount if isinstance(amount, Decimal) else Decimal(amount))
    grouped = f"{abs(whole):,}".replace(",", ".")
    sign = "-" if whole < 0 else ""
    return f"{sign}Rp {grouped}"
