"""
resale_services.gateway -- Fail-soft access to every backend operation.

Responsibility:
    One method per backend operation the dashboard uses. Each method
    decodes the response into kernel entities or report dataclasses.

Failure policy:
    Every I/O failure (TransportError, BackendError,
    MalformedResponseError) is caught here, logged with its code and
    surfaced to the operator through the injected ``Notifier``. The
    caller receives an empty page, an empty list or None instead of an
    exception, so a failed fetch degrades a screen to "no data".
    Mutations return a ``MutationResult`` carrying the backend's message
    verbatim. A session without a token short-circuits to the empty
    result without touching the network.

Architecture position:
    Services layer. Built on ``ApiClient``; used by the screens, the
    account service and scripts.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any, Generic, TypeVar

from resale_engines.listing import ListFilter, PageInfo, PageRequest, SortSpec
from resale_engines.reporting import CustomerOverview, DashboardSummary, SupplierOverview
from resale_kernel.domain.entities import (
    Bill,
    Budget,
    BudgetUsage,
    Contract,
    Customer,
    Payment,
    Supplier,
)
from resale_kernel.domain.periods import Period
from resale_kernel.exceptions import (
    ApiError,
    BackendError,
    MalformedResponseError,
    NotAuthenticatedError,
    PermissionDeniedError,
)
from resale_kernel.logging_config import get_logger
from resale_services import endpoints
from resale_services.access import permission_for, require_permission
from resale_services.api_client import ApiClient
from resale_services.endpoints import Resource
from resale_services.envelopes import decode_overview, unwrap_list, unwrap_page, unwrap_record
from resale_services.notifications import LogNotifier, Notifier, Severity, log_api_failure

logger = get_logger("services.gateway")

T = TypeVar("T")
_REQUEST_FAILED = "Request failed, please try again"


@dataclass(frozen=True)
class Page(Generic[T]):
    """Decoded records of one page."""

    items: tuple[T, ...]
    page_info: PageInfo

    @classmethod
    def empty(cls, per_page: int = 10) -> Page[T]:
        return cls(items=(), page_info=PageInfo.compute(0, PageRequest(1, per_page)))


@dataclass(frozen=True)
class MutationResult:
    """Outcome of a create / update / delete."""

    ok: bool
    record: Any = None
    message: str = ""


@dataclass(frozen=True)
class CustomerReport:
    customer: Customer | None
    overview: CustomerOverview


@dataclass(frozen=True)
class SupplierReport:
    supplier: Supplier | None
    overview: SupplierOverview


def _day(value: date | None) -> str | None:
    return value.isoformat() if value else None


class ResaleGateway:
    """
    Every backend operation the dashboard performs, with the fail-soft
    policy applied.
    """

    def __init__(
        self,
        client: ApiClient,
        notifier: Notifier | None = None,
        currency: str | None = None,
    ) -> None:
        self.client = client
        self.session = client.session
        self.notifier: Notifier = notifier or LogNotifier()
        self.currency = currency

    # ------------------------------------------------------------------
    # Failure handling
    # ------------------------------------------------------------------

    def _fail(self, method: str, path: str, exc: ApiError, notice: str) -> None:
        log_api_failure(
            method=method,
            path=path,
            exc_code=exc.code,
            status_code=getattr(exc, "status_code", None),
        )
        message = exc.message if isinstance(exc, BackendError) else notice
        self.notifier.notify(Severity.ERROR, message, path=path, exc_code=exc.code)

    @staticmethod
    def _decode(path: str, decode: Callable[[Any], Any], body: Any) -> Any:
        """Run ``decode``; a body of the wrong shape becomes MalformedResponseError."""
        try:
            return decode(body)
        except (TypeError, AttributeError, ValueError, KeyError) as exc:
            raise MalformedResponseError(path, f"{type(exc).__name__}: {exc}") from exc

    def _call(
        self,
        method: str,
        path: str,
        fallback: Any,
        decode: Callable[[Any], Any],
        notice: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        if not self.session.access_token:
            logger.debug("request_skipped_no_token", extra={"method": method, "path": path})
            return fallback
        try:
            body = self.client.request(method, path, params=params, json=json)
            return self._decode(path, decode, body)
        except NotAuthenticatedError:
            return fallback
        except ApiError as exc:
            self._fail(method, path, exc, notice)
            return fallback

    def _mutate(
        self,
        method: str,
        path: str,
        decode: Callable[[Any], Any],
        success: str,
        *,
        json: Any = None,
        permission: str | None = None,
    ) -> MutationResult:
        if permission is not None:
            try:
                require_permission(self.session, permission)
            except (NotAuthenticatedError, PermissionDeniedError) as exc:
                logger.warning("mutation_denied", extra={
                    "method": method, "path": path, "exc_code": exc.code,
                })
                self.notifier.notify(Severity.ERROR, str(exc), path=path, exc_code=exc.code)
                return MutationResult(ok=False, message=str(exc))

        if not self.session.access_token:
            return MutationResult(ok=False, message=str(NotAuthenticatedError()))
        try:
            record = self._decode(path, decode, self.client.request(method, path, json=json))
        except ApiError as exc:
            self._fail(method, path, exc, _REQUEST_FAILED)
            message = exc.message if isinstance(exc, BackendError) else _REQUEST_FAILED
            return MutationResult(ok=False, message=message)

        self.notifier.notify(Severity.SUCCESS, success, path=path)
        return MutationResult(ok=True, record=record, message=success)

    # ------------------------------------------------------------------
    # Decoders
    # ------------------------------------------------------------------

    def _records(self, resource: Resource, path: str) -> Callable[[Any], list[Any]]:
        return lambda body: [resource.decode(row, self.currency) for row in unwrap_list(body, path)]

    def _page(self, resource: Resource, path: str, per_page: int) -> Callable[[Any], Page[Any]]:
        def decode(body: Any) -> Page[Any]:
            raw = unwrap_page(body, path, per_page=per_page)
            return Page(
                items=tuple(resource.decode(row, self.currency) for row in raw.rows),
                page_info=raw.page_info,
            )
        return decode

    def _record(self, resource: Resource, path: str) -> Callable[[Any], Any]:
        def decode(body: Any) -> Any:
            if body is None:
                return None
            return resource.decode(unwrap_record(body, path), self.currency)
        return decode

    # ------------------------------------------------------------------
    # Generic CRUD
    # ------------------------------------------------------------------

    def list_all(self, resource: Resource) -> list[Any]:
        """Every record of ``resource``; [] on failure."""
        return self._call("GET", resource.path, [], self._records(resource, resource.path),
                          f"Could not load {resource.name}")

    def create(self, resource: Resource, entity: Any) -> MutationResult:
        return self._mutate(
            "POST", resource.path, self._record(resource, resource.path),
            f"Created {resource.name[:-1].replace('_', ' ')}",
            json=entity.to_payload(),
            permission=permission_for(resource.name, "create"),
        )

    def update(self, resource: Resource, record_id: str, entity: Any) -> MutationResult:
        path = resource.item(record_id)
        return self._mutate(
            "PUT", path, self._record(resource, path),
            f"Updated {resource.name[:-1].replace('_', ' ')}",
            json=entity.to_payload(),
            permission=permission_for(resource.name, "update"),
        )

    def delete(self, resource: Resource, record_id: str) -> MutationResult:
        """Delete a record; managers are refused before any request."""
        path = resource.item(record_id)
        return self._mutate(
            "DELETE", path, lambda body: record_id,
            f"Deleted {resource.name[:-1].replace('_', ' ')}",
            permission=permission_for(resource.name, "delete"),
        )

    # ------------------------------------------------------------------
    # Filtered lists
    # ------------------------------------------------------------------

    def filtered_contracts(self, filters: ListFilter, page: PageRequest) -> Page[Contract]:
        params = {
            "customer_id": filters.customer_id,
            "supplier_id": filters.supplier_id,
            "account_type_id": filters.account_type_id,
            "product_type": getattr(filters.product_type, "value", filters.product_type),
            "from_date": _day(filters.date_from),
            "to_date": _day(filters.date_to),
            "page": page.page,
            "per_page": page.per_page,
        }
        path = endpoints.CONTRACTS_FILTERED
        return self._call("GET", path, Page.empty(page.per_page),
                          self._page(endpoints.CONTRACTS, path, page.per_page),
                          "Could not load contracts", params=params)

    def filtered_bills(self, filters: ListFilter, page: PageRequest) -> Page[Bill]:
        params = {
            "customer_id": filters.customer_id,
            "status": getattr(filters.status, "value", filters.status),
            "from_date": _day(filters.date_from),
            "to_date": _day(filters.date_to),
            "page": page.page,
            "per_page": page.per_page,
        }
        path = endpoints.BILLS_FILTERED
        return self._call("GET", path, Page.empty(page.per_page),
                          self._page(endpoints.BILLS, path, page.per_page),
                          "Could not load bills", params=params)

    def budgets_by_supplier(
        self,
        supplier_id: str,
        filters: ListFilter | None = None,
        sort: SortSpec | None = None,
        page: PageRequest | None = None,
    ) -> Page[Budget]:
        filters = filters or ListFilter()
        page = page or PageRequest(1, 5)
        params = {
            "status": getattr(filters.status, "value", filters.status),
            "product_type": getattr(filters.product_type, "value", filters.product_type),
            "sort_by": sort.field if sort else None,
            "sort_order": sort.direction.value if sort else None,
            "page": page.page,
            "limit": page.per_page,
        }
        path = f"{endpoints.BUDGETS_BY_SUPPLIER}/{supplier_id}"
        return self._call("GET", path, Page.empty(page.per_page),
                          self._page(endpoints.BUDGETS, path, page.per_page),
                          "Could not load budgets", params=params)

    def budget_usage(self) -> list[BudgetUsage]:
        """Per-budget cap and backend-computed usage."""
        path = endpoints.BUDGET_CONTRACT

        def decode(body: Any) -> list[BudgetUsage]:
            return [BudgetUsage.from_payload(row, self.currency) for row in unwrap_list(body, path)]

        return self._call("GET", path, [], decode, "Could not load budget usage")

    def payments_by_bill(self, bill_id: str) -> list[Payment]:
        path = f"{endpoints.PAYMENTS_BY_BILL}/{bill_id}"
        return self._call("GET", path, [], self._records(endpoints.PAYMENTS, path),
                          "Could not load payments")

    def payments_by_customer(self, customer_id: str, date_from: date, date_to: date) -> list[Payment]:
        path = f"{endpoints.PAYMENTS_BY_CUSTOMER}/{customer_id}"
        return self._call("GET", path, [], self._records(endpoints.PAYMENTS, path),
                          "Could not load payments",
                          params={"from_date": _day(date_from), "to_date": _day(date_to)})

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def customer_overview(self, customer_id: str, period: Period) -> CustomerReport | None:
        path = f"{endpoints.OVERVIEW_CUSTOMER}/{customer_id}/{period.start:%Y-%m}"

        def decode(body: Any) -> CustomerReport:
            numbers, subject = decode_overview(body, path)
            return CustomerReport(
                customer=Customer.from_payload(subject) if subject else None,
                overview=CustomerOverview.from_payload(numbers, self.currency),
            )

        return self._call("GET", path, None, decode, "Could not load customer overview")

    def supplier_overview(self, supplier_id: str, period: Period) -> SupplierReport | None:
        path = f"{endpoints.OVERVIEW_SUPPLIER}/{supplier_id}/{period.start:%Y-%m}"

        def decode(body: Any) -> SupplierReport:
            numbers, subject = decode_overview(body, path)
            return SupplierReport(
                supplier=Supplier.from_payload(subject) if subject else None,
                overview=SupplierOverview.from_payload(numbers, self.currency),
            )

        return self._call("GET", path, None, decode, "Could not load supplier overview")

    def dashboard(self, period: Period) -> DashboardSummary | None:
        path = f"{endpoints.DASHBOARD}/{period.granularity.value}/{period.value}"

        def decode(body: Any) -> DashboardSummary:
            return DashboardSummary.from_payload(unwrap_record(body, path), self.currency)

        return self._call("GET", path, None, decode, "Could not load dashboard")
