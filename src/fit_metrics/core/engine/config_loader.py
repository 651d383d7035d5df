"""
YAML → typed settings loader.

Loads runtime settings from defaults.yaml (bundled with the package) and
optionally merges user overrides from ~/.fit-metrics/config.yaml.

Usage:
    from fit_metrics.core.engine.config_loader import load_settings
    settings = load_settings()
    calendar = settings.calendar

If a YAML file cannot be parsed, a warning is logged and the file is
ignored; missing keys fall back to the defaults in core/config.py.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ..config import (
    DEFAULT_TIMEZONE,
    DEFAULT_WEEK_START,
    ONE_RM_COMPARISON_DAYS,
    TRAILING_WINDOW_DAYS,
)
from ..models import LENGTH_UNITS, WEIGHT_UNITS
from ..periods import CalendarPolicy, parse_week_start

logger = logging.getLogger(__name__)

USER_CONFIG_DIR = ".fit-metrics"
USER_CONFIG_FILE = "config.yaml"


@dataclass
class Settings:
    """Resolved runtime settings."""

    calendar: CalendarPolicy = field(default_factory=CalendarPolicy)
    trailing_window_days: int = TRAILING_WINDOW_DAYS
    one_rep_max_window_days: int = ONE_RM_COMPARISON_DAYS
    weight_unit: str = "kg"
    length_unit: str = "cm"
    favorites: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML mapping; return {} (and log) on any error."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring config file %s: %s", path, e)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config file %s: top level is not a mapping", path)
        return {}
    return data


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _section(config: dict[str, Any], name: str) -> dict[str, Any]:
    value = config.get(name)
    return value if isinstance(value, dict) else {}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_bundled_yaml_path() -> Path | None:
    """Return the path to the bundled defaults.yaml, or None if not found."""
    # Package root: fit_metrics/core/engine/ → fit_metrics/
    candidate = Path(__file__).parent.parent.parent / "defaults.yaml"
    return candidate if candidate.exists() else None


def get_user_yaml_path() -> Path | None:
    """Return ~/.fit-metrics/config.yaml if it exists, else None."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    p = home / USER_CONFIG_DIR / USER_CONFIG_FILE
    return p if p.exists() else None


def load_model_config(extra_path: Path | None = None) -> dict[str, Any]:
    """
    Load and merge raw configuration from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/fit_metrics/defaults.yaml
    2. User override at ~/.fit-metrics/config.yaml
    3. *extra_path* (e.g. --config on the command line)

    Returns:
        Merged dict of config sections. Empty dict if no YAML available.
    """
    config: dict[str, Any] = {}

    for path in (get_bundled_yaml_path(), get_user_yaml_path(), extra_path):
        if path is not None:
            config = _deep_merge(config, _load_yaml_file(path))

    return config


def _positive_days(section: dict[str, Any], key: str, default: int) -> int:
    raw = section.get(key, default)
    try:
        days = int(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid dashboard.%s %r; using %d", key, raw, default)
        return default
    if days <= 0:
        logger.warning("dashboard.%s must be positive, got %d; using %d", key, days, default)
        return default
    return days


def settings_from_dict(config: dict[str, Any]) -> Settings:
    """
    Build typed Settings from a merged config dict.

    Invalid individual values are logged and replaced by defaults.
    """
    cal_cfg = _section(config, "calendar")
    tz_name = str(cal_cfg.get("timezone", DEFAULT_TIMEZONE))
    try:
        week_start = parse_week_start(cal_cfg.get("week_start", DEFAULT_WEEK_START))
    except ValueError as e:
        logger.warning("Invalid calendar.week_start: %s", e)
        week_start = DEFAULT_WEEK_START
    try:
        calendar = CalendarPolicy(timezone=tz_name, week_start=week_start)
    except (ValueError, KeyError) as e:
        # ZoneInfoNotFoundError subclasses KeyError
        logger.warning("Invalid calendar.timezone %r (%s); using %s", tz_name, e, DEFAULT_TIMEZONE)
        calendar = CalendarPolicy(week_start=week_start)

    dash = _section(config, "dashboard")
    units = _section(config, "units")

    weight_unit = str(units.get("weight", "kg"))
    if weight_unit not in WEIGHT_UNITS:
        logger.warning("Invalid units.weight %r; using kg", weight_unit)
        weight_unit = "kg"
    length_unit = str(units.get("length", "cm"))
    if length_unit not in LENGTH_UNITS:
        logger.warning("Invalid units.length %r; using cm", length_unit)
        length_unit = "cm"

    favorites = config.get("favorites") or []
    if not isinstance(favorites, list):
        logger.warning("Invalid favorites: expected a list")
        favorites = []

    return Settings(
        calendar=calendar,
        trailing_window_days=_positive_days(dash, "trailing_window_days", TRAILING_WINDOW_DAYS),
        one_rep_max_window_days=_positive_days(
            dash, "one_rep_max_window_days", ONE_RM_COMPARISON_DAYS
        ),
        weight_unit=weight_unit,
        length_unit=length_unit,
        favorites=[str(f) for f in favorites],
    )


def load_settings(extra_path: Path | None = None) -> Settings:
    """Load, merge and type-check settings from all YAML sources."""
    return settings_from_dict(load_model_config(extra_path))
