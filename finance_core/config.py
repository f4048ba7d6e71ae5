"""Configuration management for the finance core.

Behavioural switches that are still open product questions live here so
that changing one is a configuration edit instead of a code change.  Values
come from built-in defaults, optionally overlaid by a JSON file and then by
environment variables.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields, replace
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import ValidationError

PROJECTION_WINDOWS = ('budget', 'fixed')

CONFIG_PATH_ENV = 'FINCORE_CONFIG_PATH'
LOG_LEVEL = os.getenv('FINCORE_LOG_LEVEL', 'INFO').upper()

_ENV_OVERRIDES = {
    'fallback_on_missing_range': 'FINCORE_FALLBACK_ON_MISSING_RANGE',
    'clamp_negative_savings': 'FINCORE_CLAMP_NEGATIVE_SAVINGS',
    'projection_window': 'FINCORE_PROJECTION_WINDOW',
    'fixed_projection_days': 'FINCORE_FIXED_PROJECTION_DAYS',
}

_TRUTHY = {'1', 'true', 'yes', 'on'}
_FALSY = {'0', 'false', 'no', 'off'}


@dataclass(frozen=True)
class EngineConfig:
    """Switches consumed by the period, summary and budget calculations.

    Attributes:
        fallback_on_missing_range: Resolve ``custom`` with no range as ``month``
            instead of raising :class:`ValidationError`.
        clamp_negative_savings: Floor the savings rate at zero.
        projection_window: ``"budget"`` normalises projected spending over the
            budget's inclusive calendar day count, ``"fixed"`` over
            ``fixed_projection_days``.
        fixed_projection_days: Window length used by the ``"fixed"`` mode.
    """

    fallback_on_missing_range: bool = True
    clamp_negative_savings: bool = True
    projection_window: str = 'budget'
    fixed_projection_days: int = 30

    def __post_init__(self) -> None:
        if self.projection_window not in PROJECTION_WINDOWS:
            raise ValidationError(
                f"projection_window must be one of {PROJECTION_WINDOWS}, got '{self.projection_window}'"
            )
        if self.fixed_projection_days <= 0:
            raise ValidationError('fixed_projection_days must be positive')


DEFAULT_CONFIG = EngineConfig()


def _parse_bool(name: str, raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    text = str(raw).strip().lower()
    if text in _TRUTHY:
        return True
    if text in _FALSY:
        return False
    raise ValidationError(f"Invalid boolean for {name}: '{raw}'")


def _coerce(name: str, raw: Any) -> Any:
    if name in ('fallback_on_missing_range', 'clamp_negative_savings'):
        return _parse_bool(name, raw)
    if name == 'fixed_projection_days':
        try:
            return int(raw)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid integer for {name}: '{raw}'") from e
    return str(raw).strip().lower()


def load_config(path: Optional[Path | str] = None) -> EngineConfig:
    """Build an :class:`EngineConfig` from defaults, a JSON file and the environment.

    Args:
        path: Optional JSON file. Falls back to ``$FINCORE_CONFIG_PATH``.

    Returns:
        The merged configuration.

    Raises:
        ValidationError: If a value cannot be interpreted.
        FileNotFoundError: If an explicit ``path`` does not exist.

    Example:
        >>> load_config().projection_window
        'budget'
    """
    values: Dict[str, Any] = {}

    target = path or os.getenv(CONFIG_PATH_ENV)
    if target:
        config_path = Path(target)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValidationError(f"Configuration file {config_path} must contain a JSON object")
        known = {item.name for item in fields(EngineConfig)}
        values.update({key: _coerce(key, value) for key, value in data.items() if key in known})

    for name, env_var in _ENV_OVERRIDES.items():
        raw = os.getenv(env_var)
        if raw is not None and raw.strip():
            values[name] = _coerce(name, raw)

    return replace(DEFAULT_CONFIG, **values)


@lru_cache(maxsize=1)
def get_config() -> EngineConfig:
    """Process-wide configuration, loaded once."""
    return load_config()


def configure_logging(level: Optional[str] = None) -> None:
    """Attach a basic stream handler; used by entry points, never by the core."""
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
