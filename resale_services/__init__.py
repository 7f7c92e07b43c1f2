"""
resale_services -- Package init and public API.

Responsibility:
    The I/O side of the dashboard: the HTTP client, the fail-soft gateway
    over every backend operation, authentication and account management,
    role checks, list query state and the screen view models that run
    the pure engines over fetched records.

Architecture position:
    Services -- stateful orchestration over engines + kernel.

    Dependency direction (enforced by tests/architecture/test_import_boundaries.py):
        resale_services/ -> resale_engines/  (allowed)
        resale_services/ -> resale_kernel/   (allowed)
        resale_engines/  -> resale_services/ (FORBIDDEN)
        resale_kernel/   -> resale_services/ (FORBIDDEN)

Invariants enforced:
    - The session is an injected object; nothing here keeps a global
      token.
    - Only ``api_client`` imports the HTTP library.
"""

from resale_kernel.logging_config import get_logger

logger = get_logger("services")

from resale_services.access import can, check_permission, require_permission
from resale_services.api_client import ApiClient
from resale_services.auth_service import AuthService
from resale_services.gateway import (
    CustomerReport,
    MutationResult,
    Page,
    ResaleGateway,
    SupplierReport,
)
from resale_services.list_controller import ListController, ListQuery, Ticket
from resale_services.notifications import (
    CollectingNotifier,
    LogNotifier,
    Notification,
    Notifier,
    Severity,
)
from resale_services.screens import (
    BillsScreen,
    BudgetsScreen,
    ContractsScreen,
    CustomersScreen,
    DashboardScreen,
    DashboardView,
)

__all__ = [
    # Access control
    "can",
    "check_permission",
    "require_permission",
    # Transport and gateway
    "ApiClient",
    "CustomerReport",
    "MutationResult",
    "Page",
    "ResaleGateway",
    "SupplierReport",
    # Auth
    "AuthService",
    # List state
    "ListController",
    "ListQuery",
    "Ticket",
    # Notifications
    "CollectingNotifier",
    "LogNotifier",
    "Notification",
    "Notifier",
    "Severity",
    # Screens
    "BillsScreen",
    "BudgetsScreen",
    "ContractsScreen",
    "CustomersScreen",
    "DashboardScreen",
    "DashboardView",
]
