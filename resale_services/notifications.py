"""
Operator notifications and observability events.

A ``Notifier`` is how the service layer tells the operator that something
went wrong without interrupting the screen: failed fetches, rejected
mutations and advisory warnings all become non-blocking notifications.

All events also go to the log with a stable ``observability_event`` field
so log pipelines can count failures per endpoint.

Usage:
    from resale_services.notifications import LogNotifier, Severity

    notifier = LogNotifier()
    notifier.notify(Severity.ERROR, "Could not load bills", path="bils")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from resale_kernel.logging_config import get_logger

logger = get_logger("services.notifications")

EVENT_OPERATOR_NOTIFIED = "operator_notified"
EVENT_API_FAILURE = "api_failure"
EVENT_STALE_RESPONSE = "stale_response_discarded"


class Severity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    severity: Severity
    message: str
    context: dict[str, Any] = field(default_factory=dict)


class Notifier(Protocol):
    def notify(self, severity: Severity, message: str, **context: Any) -> None: ...


class LogNotifier:
    """Notifier that only writes the notification to the log."""

    _LEVELS = {
        Severity.INFO: "info",
        Severity.SUCCESS: "info",
        Severity.WARNING: "warning",
        Severity.ERROR: "error",
    }

    def notify(self, severity: Severity, message: str, **context: Any) -> None:
        log = getattr(logger, self._LEVELS[severity])
        log("operator_notified", extra={
            "observability_event": EVENT_OPERATOR_NOTIFIED,
            "severity": severity.value,
            "notice": message,
            **context,
        })


class CollectingNotifier(LogNotifier):
    """Keeps every notification in memory for the screen to render."""

    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    def notify(self, severity: Severity, message: str, **context: Any) -> None:
        super().notify(severity, message, **context)
        self.notifications.append(Notification(severity, message, dict(context)))

    @property
    def last(self) -> Notification | None:
        return self.notifications[-1] if self.notifications else None

    def messages(self, severity: Severity | None = None) -> list[str]:
        return [n.message for n in self.notifications
                if severity is None or n.severity is severity]

    def clear(self) -> None:
        self.notifications.clear()


def log_api_failure(
    *,
    method: str,
    path: str,
    exc_code: str,
    status_code: int | None = None,
    **extra: Any,
) -> None:
    """Log a failed backend call that was degraded to an empty result."""
    payload: dict[str, Any] = {
        "observability_event": EVENT_API_FAILURE,
        "method": method,
        "path": path,
        "exc_code": exc_code,
        **extra,
    }
    if status_code is not None:
        payload["status_code"] = status_code
    logger.warning("api_request_failed", extra=payload)


def log_stale_response(*, screen: str, ticket: int, current: int) -> None:
    """Log a response discarded because the query changed in flight."""
    logger.info("stale_response_discarded", extra={
        "observability_event": EVENT_STALE_RESPONSE,
        "screen": screen,
        "ticket": ticket,
        "current_ticket": current,
    })
