"""
Settings loader (``bookkeeping_config.loader``).

Responsibility
--------------
Loads YAML settings files and parses the merged mapping into a
``BookkeepingSettings``.  Callers outside this package use
``bookkeeping_config.get_active_settings()`` instead.

Invariants enforced
-------------------
* Unknown keys are rejected; a typo never silently falls back to a default.
* Every value is type-checked; ``minimum_wage`` becomes a ``Decimal``.
* ``compute_checksum`` is deterministic for identical settings.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Bad keys or values  -> ``ConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from bookkeeping_config.schema import SETTING_KEYS, BookkeepingSettings
from bookkeeping_kernel.domain.values import to_decimal
from bookkeeping_kernel.exceptions import ConfigurationError

_LOG_LEVELS = frozenset(logging.getLevelNamesMapping())


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ConfigurationError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "top level must be a mapping")
    return data


def merge_settings(*layers: Mapping[str, Any]) -> dict[str, Any]:
    """Overlay ``layers`` left to right; later layers win per key."""
    merged: dict[str, Any] = {}
    for layer in layers:
        unknown = sorted(set(layer) - set(SETTING_KEYS))
        if unknown:
            raise ConfigurationError(unknown[0], "unknown setting")
        merged.update(layer)
    return merged


def _text(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(key, f"expected a non-empty string, got {value!r}")
    return value.strip()


def compute_checksum(data: Mapping[str, Any]) -> str:
    """SHA-256 of the canonical JSON form of ``data``."""
    canonical = json.dumps(dict(data), sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_settings(data: Mapping[str, Any]) -> BookkeepingSettings:
    """
    Validate a merged settings mapping.

    Preconditions:
        ``data`` holds every key in ``SETTING_KEYS``.
    Raises:
        ConfigurationError: on a missing key or an invalid value.
    """
    for key in SETTING_KEYS:
        if key not in data:
            raise ConfigurationError(key, "required setting is missing")

    log_level = _text(data, "log_level").upper()
    if log_level not in _LOG_LEVELS:
        raise ConfigurationError("log_level", f"unknown level {log_level!r}")

    try:
        minimum_wage = to_decimal(data["minimum_wage"])
    except ValueError as e:
        raise ConfigurationError("minimum_wage", str(e)) from e
    if minimum_wage < 0:
        raise ConfigurationError("minimum_wage", "must not be negative")

    return BookkeepingSettings(
        business_name=_text(data, "business_name"),
        database_url=_text(data, "database_url"),
        log_level=log_level,
        minimum_wage=minimum_wage,
        checksum=compute_checksum(data),
    )
