"""
BookkeepingSettings schema.

The runtime settings artifact produced by ``bookkeeping_config``.  YAML
files are parsed and validated by the loader into this frozen dataclass;
nothing else in the system reads configuration files.

Payroll formula constants (revenue share, attendance bonus, owner daily
savings) are deliberately absent: they are fixed business rules, not
settings.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

SETTING_KEYS: tuple[str, ...] = (
    "business_name",
    "database_url",
    "log_level",
    "minimum_wage",
)


@dataclass(frozen=True)
class BookkeepingSettings:
    """Validated application settings."""

    business_name: str
    database_url: str
    log_level: str
    minimum_wage: Decimal  # UMR threshold for the monthly salary status
    checksum: str = ""
