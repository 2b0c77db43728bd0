"""
Trilean Configuration

Settings read from the environment once, at the point of use.

Environment variables:
- TRILEAN_CACHE_ENABLED: memoize decision reports (default: off)
- TRILEAN_CACHE_TTL: cache entry lifetime in seconds (default: 3600)
- TRILEAN_LOG_LEVEL: log level for the CLI (default: INFO)
- TRILEAN_LOG_JSON: emit structured JSON log lines (default: on)
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from .exceptions import UnsupportedValueError
from .models.enums import TernaryState

DEFAULT_CACHE_TTL = 3600.0
DEFAULT_LOG_LEVEL = "INFO"


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return TernaryState.from_mixed(raw).to_bool(unknown_as=default)
    except UnsupportedValueError as e:
        raise UnsupportedValueError(
            message=f"Invalid value for {name}: {raw!r}",
            details={"variable": name, "value": raw},
        ) from e


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise UnsupportedValueError(
            message=f"Invalid value for {name}: {raw!r}",
            details={"variable": name, "value": raw},
        ) from e


@dataclass(frozen=True)
class TrileanSettings:
    cache_enabled: bool = False
    cache_ttl: float = DEFAULT_CACHE_TTL
    log_level: str = DEFAULT_LOG_LEVEL
    log_json: bool = True

    @classmethod
    def from_env(cls, prefix: str = "TRILEAN_") -> TrileanSettings:
        """Build settings from TRILEAN_* environment variables."""
        return cls(
            cache_enabled=_env_flag(f"{prefix}CACHE_ENABLED", False),
            cache_ttl=_env_float(f"{prefix}CACHE_TTL", DEFAULT_CACHE_TTL),
            log_level=(os.getenv(f"{prefix}LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
            log_json=_env_flag(f"{prefix}LOG_JSON", True),
        )


_settings: Optional[TrileanSettings] = None


def get_settings() -> TrileanSettings:
    """Get (and cache) settings from the process environment."""
    global _settings
    if _settings is None:
        _settings = TrileanSettings.from_env()
    return _settings
