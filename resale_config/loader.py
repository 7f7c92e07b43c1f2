"""
Configuration Loader (``resale_config.loader``).

Responsibility
--------------
Loads the YAML configuration file, applies environment overrides and
parses the result into the frozen dataclasses of
``resale_config.schema``. Only ``resale_config.get_active_config()``
calls this at runtime; tests call it directly.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing ``api.base_url`` or a non-numeric timeout / page size
  -> ``ConfigError``.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from resale_config.schema import (
    ApiSettings,
    DashboardConfig,
    DisplaySettings,
    LoggingSettings,
    PaginationSettings,
)
from resale_kernel.domain.currency import CurrencyRegistry
from resale_kernel.exceptions import ConfigError

ENV_CONFIG_PATH = "RESALE_CONFIG"
ENV_API_URL = "RESALE_API_URL"
ENV_API_TIMEOUT = "RESALE_API_TIMEOUT"
ENV_LOG_LEVEL = "RESALE_LOG_LEVEL"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: Mapping[str, Any]) -> str:
    """Deterministic SHA-256 of the resolved configuration."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def apply_env_overrides(data: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    """Return a copy of ``data`` with the single-value env overrides applied."""
    merged = {key: dict(value) if isinstance(value, Mapping) else value
              for key, value in data.items()}
    api = merged.setdefault("api", {})
    if environ.get(ENV_API_URL):
        api["base_url"] = environ[ENV_API_URL]
    if environ.get(ENV_API_TIMEOUT):
        api["read_timeout"] = environ[ENV_API_TIMEOUT]
    if environ.get(ENV_LOG_LEVEL):
        merged.setdefault("logging", {})["level"] = environ[ENV_LOG_LEVEL]
    return merged


def _number(section: str, key: str, value: Any, kind: type) -> Any:
    try:
        result = kind(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{section}.{key}", f"expected a number, got {value!r}") from None
    if result <= 0:
        raise ConfigError(f"{section}.{key}", f"must be positive, got {value!r}")
    return result


def parse_api(data: Mapping[str, Any]) -> ApiSettings:
    base_url = str(data.get("base_url") or "").strip()
    if not base_url:
        raise ConfigError("api.base_url", "is required")
    return ApiSettings(
        base_url=base_url,
        connect_timeout=_number("api", "connect_timeout", data.get("connect_timeout", 5), float),
        read_timeout=_number("api", "read_timeout", data.get("read_timeout", 30), float),
    )


def parse_pagination(data: Mapping[str, Any]) -> PaginationSettings:
    defaults = PaginationSettings()
    values = {
        name: _number("pagination", name, data.get(name, getattr(defaults, name)), int)
        for name in ("contracts", "bills", "budgets", "customers", "payments")
    }
    return PaginationSettings(**values)


def parse_display(data: Mapping[str, Any]) -> DisplaySettings:
    currency = str(data.get("currency") or CurrencyRegistry.DEFAULT).upper()
    if not CurrencyRegistry.is_valid(currency):
        raise ConfigError("display.currency", f"unknown currency {currency!r}")
    return DisplaySettings(currency=currency)


def parse_logging(data: Mapping[str, Any]) -> LoggingSettings:
    level = str(data.get("level") or "INFO").upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError("logging.level", f"unknown level {level!r}")
    return LoggingSettings(level=level)


def parse_config(data: Mapping[str, Any], source: str = "") -> DashboardConfig:
    """Parse an already-merged mapping into a ``DashboardConfig``."""
    return DashboardConfig(
        api=parse_api(data.get("api") or {}),
        pagination=parse_pagination(data.get("pagination") or {}),
        display=parse_display(data.get("display") or {}),
        logging=parse_logging(data.get("logging") or {}),
        source=source,
        checksum=compute_checksum(data),
    )


def load_config(path: Path, environ: Mapping[str, str] | None = None) -> DashboardConfig:
    """Load ``path``, apply overrides from ``environ`` and parse."""
    raw = load_yaml_file(path)
    merged = apply_env_overrides(raw, environ or {})
    return parse_config(merged, source=str(path))
