"""
Configuration schema for the resale dashboard client.

Every section is a frozen dataclass; ``DashboardConfig`` is the single
runtime artifact returned by ``resale_config.get_active_config()``.

    DashboardConfig
    +-- ApiSettings         backend base URL and timeouts
    +-- PaginationSettings  page size per list screen
    +-- DisplaySettings     currency of every money value
    +-- LoggingSettings     root log level and output format
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ApiSettings:
    """Where the backend lives and how long to wait for it."""

    base_url: str
    connect_timeout: float = 5.0
    read_timeout: float = 30.0

    def url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"


@dataclass(frozen=True)
class PaginationSettings:
    contracts: int = 10
    bills: int = 10
    budgets: int = 5
    customers: int = 10
    payments: int = 10

    def for_screen(self, screen: str) -> int:
        """Page size of ``screen``; unknown screens get the contracts size."""
        return getattr(self, screen, self.contracts)


@dataclass(frozen=True)
class DisplaySettings:
    currency: str = "VND"


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"


@dataclass(frozen=True)
class DashboardConfig:
    """The resolved configuration."""

    api: ApiSettings
    pagination: PaginationSettings = field(default_factory=PaginationSettings)
    display: DisplaySettings = field(default_factory=DisplaySettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    source: str = ""
    checksum: str = ""
