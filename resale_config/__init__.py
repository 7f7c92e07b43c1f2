"""
resale_config -- single public entrypoint for client configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``. No other component reads configuration
    files or environment variables directly.

Architecture position:
    Configuration -- sits above ``resale_kernel`` and is consumed by
    ``resale_services`` and ``scripts``. The kernel and the engines MUST
    NEVER import from ``resale_config``.

Resolution order:
    1. ``config_path`` argument
    2. ``RESALE_CONFIG`` environment variable
    3. ``resale_config/defaults.yaml``
    then ``RESALE_API_URL``, ``RESALE_API_TIMEOUT`` and
    ``RESALE_LOG_LEVEL`` override single values.

Failure modes:
    - ``FileNotFoundError`` -- the selected file does not exist.
    - ``ConfigError`` -- a value is missing or invalid.

Every successful call emits a ``RESALE_CONFIG_TRACE`` log record with
the source file, checksum and API base URL.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from resale_config.loader import ENV_CONFIG_PATH, load_config
from resale_config.schema import (
    ApiSettings,
    DashboardConfig,
    DisplaySettings,
    LoggingSettings,
    PaginationSettings,
)

_logger = logging.getLogger("resale.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(
    config_path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> DashboardConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: Explicit YAML file; wins over ``RESALE_CONFIG``.
        environ: Environment to read overrides from. Defaults to
            ``os.environ``.

    Returns:
        DashboardConfig -- frozen; callers hold it for their lifetime.

    Raises:
        FileNotFoundError: If the selected file does not exist.
        ConfigError: If a value is missing or invalid.
    """
    env = os.environ if environ is None else environ
    path = Path(config_path or env.get(ENV_CONFIG_PATH) or DEFAULT_CONFIG_PATH)

    config = load_config(path, env)

    _logger.info(
        "RESALE_CONFIG_TRACE",
        extra={
            "trace_type": "RESALE_CONFIG_TRACE",
            "source": config.source,
            "checksum": config.checksum,
            "base_url": config.api.base_url,
            "currency": config.display.currency,
            "log_level": config.logging.level,
        },
    )
    return config


__all__ = [
    "ApiSettings",
    "DashboardConfig",
    "DisplaySettings",
    "LoggingSettings",
    "PaginationSettings",
    "get_active_config",
]
