# ABOUTME: Loads engine settings (cache lifetimes, report limits) from YAML.
# ABOUTME: Produces a frozen AnalyticsConfig with defaults for every omitted value.

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError


@dataclass(frozen=True)
class AnalyticsConfig:
    default_ttl_seconds: float = 300.0
    restaurant_ttl_seconds: float = 300.0
    category_ttl_seconds: float = 600.0
    sweep_interval_seconds: float = 600.0
    top_performers_limit: int = 5
    support_limit: int = 5
    trend_window_days: int = 30


_SECTIONS = {
    "cache": ("default_ttl_seconds", "restaurant_ttl_seconds", "category_ttl_seconds", "sweep_interval_seconds"),
    "reports": ("top_performers_limit", "support_limit", "trend_window_days"),
}


def load_config(config_path: Optional[Path] = None) -> AnalyticsConfig:
    """
    Load an AnalyticsConfig from a YAML file.

    Returns the defaults when no path is given. Unknown sections or keys are
    rejected so a typo cannot silently fall back to a default.
    """
    if config_path is None:
        return AnalyticsConfig()

    path = Path(config_path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    with path.open("r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}

    if not isinstance(cfg, dict):
        raise ConfigError(f"Config root must be a mapping, got {type(cfg).__name__}")

    return config_from_dict(cfg)


def config_from_dict(cfg: Dict[str, Any]) -> AnalyticsConfig:
    values: Dict[str, Any] = {}
    for section, body in cfg.items():
        if section not in _SECTIONS:
            raise ConfigError(f"Unknown config section '{section}'. Expected one of: {', '.join(_SECTIONS)}.")
        if not isinstance(body, dict):
            raise ConfigError(f"Config section '{section}' must be a mapping")
        for key, value in body.items():
            if key not in _SECTIONS[section]:
                raise ConfigError(f"Unknown key '{section}.{key}'")
            values[key] = value

    types = {f.name: f.type for f in fields(AnalyticsConfig)}
    for key, value in values.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigError(f"'{key}' must be numeric, got {value!r}")
        if value < 0:
            raise ConfigError(f"'{key}' must not be negative")
        if types[key] == "int":
            values[key] = int(value)
        else:
            values[key] = float(value)

    return AnalyticsConfig(**values)
