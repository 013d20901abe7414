"""
bookkeeping_config -- single public entrypoint for application settings.

Responsibility:
    Provides the only way to obtain settings at runtime through
    ``get_active_settings()``.  Returns a frozen ``BookkeepingSettings``.
    YAML loading is internal to this package.

Architecture position:
    Configuration -- sits beside ``bookkeeping_kernel`` and above nothing
    else.  The engines never import it; callers pass the relevant values
    (e.g. ``minimum_wage``) into engine calls explicitly.

Invariants enforced:
    - Bundled ``defaults.yaml`` is always loaded first; a user file can
      only override known keys.
    - The returned settings have passed validation.

Failure modes:
    - ``FileNotFoundError`` -- ``config_path`` does not exist.
    - ``ConfigurationError`` -- unknown keys or invalid values.

Audit relevance:
    Every successful call emits a ``BOOKKEEPING_CONFIG_TRACE`` log record
    with the settings checksum and the files it was built from.
"""

from __future__ import annotations

from pathlib import Path

from bookkeeping_config.loader import load_yaml_file, merge_settings, parse_settings
from bookkeeping_config.schema import BookkeepingSettings
from bookkeeping_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_settings(config_path: Path | str | None = None) -> BookkeepingSettings:
    """The only public settings entrypoint.

    Args:
        config_path: Optional user YAML file overlaid on the bundled
            defaults.

    Returns:
        BookkeepingSettings -- validated and frozen.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist.
        ConfigurationError: If a key is unknown or a value is invalid.
    """
    sources = [DEFAULTS_PATH]
    layers = [load_yaml_file(DEFAULTS_PATH)]
    if config_path is not None:
        sources.append(Path(config_path))
        layers.append(load_yaml_file(Path(config_path)))

    settings = parse_settings(merge_settings(*layers))

    _logger.info(
        "BOOKKEEPING_CONFIG_TRACE",
        extra={
            "trace_type": "BOOKKEEPING_CONFIG_TRACE",
            "checksum": settings.checksum,
            "sources": [str(p) for p in sources],
            "business_name": settings.business_name,
            "log_level": settings.log_level,
        },
    )
    return settings


__all__ = ["BookkeepingSettings", "get_active_settings"]
