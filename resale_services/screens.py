"""
resale_services.screens -- View models of the dashboard screens.

Each screen wires a ``ListController`` (or a one-shot fetch) to the
gateway and runs the engines over what came back. After a mutation the
affected list is refetched and derived values are recomputed from the
refreshed records; nothing is updated incrementally.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date

from resale_engines.bill_ledger import (
    BillSummary,
    BillTotals,
    ReconciliationCheck,
    difference,
    summarize,
    totals,
)
from resale_engines.listing import ListFilter, ListView, PageRequest, view
from resale_engines.rate_allocation import (
    ConsumptionCheck,
    ContractTotals,
    check_consumption,
    default_rates,
    summarize_contracts,
)
from resale_engines.reporting import DashboardSummary, build_dashboard
from resale_kernel.domain.entities import (
    Bill,
    Budget,
    BudgetUsage,
    Contract,
    Customer,
    Payment,
)
from resale_kernel.domain.periods import Granularity, Period, month_period, period_for
from resale_kernel.domain.values import Money
from resale_kernel.logging_config import LogContext, get_logger
from resale_services import endpoints
from resale_services.gateway import (
    CustomerReport,
    MutationResult,
    Page,
    ResaleGateway,
    SupplierReport,
)
from resale_services.list_controller import ListController, ListQuery
from resale_services.notifications import Severity

logger = get_logger("services.screens")


class ContractsScreen:
    """Filtered contract list, summary cards and the contract form."""

    def __init__(self, gateway: ResaleGateway, per_page: int = 10) -> None:
        self.gateway = gateway
        self.controller: ListController[Contract] = ListController(
            "contracts", self._fetch, gateway.session, per_page,
        )
        self._usage: dict[str, BudgetUsage] = {}

    def _fetch(self, query: ListQuery) -> Page[Contract]:
        return self.gateway.filtered_contracts(query.filters, query.page)

    def load(self) -> Page[Contract]:
        with LogContext.bind(screen="contracts"):
            page = self.controller.refresh()
            self.reload_usage()
        return page

    def reload_usage(self) -> dict[str, BudgetUsage]:
        self._usage = {u.id: u for u in self.gateway.budget_usage()}
        return self._usage

    def totals(self) -> ContractTotals:
        """Summary cards over the contracts currently shown."""
        return summarize_contracts(self.controller.items, self.gateway.currency)

    def usage(self, budget_id: str) -> BudgetUsage | None:
        return self._usage.get(budget_id)

    def prefill(self, form: Contract) -> Contract:
        """Copy the chosen budget's rates into the form where it has none."""
        usage = self.usage(form.budget_id)
        if usage is None:
            return form
        rates = default_rates(usage, form.customer_rate, form.supplier_rate)
        return replace(form, customer_rate=rates.customer_rate.value,
                       supplier_rate=rates.supplier_rate.value)

    def check_budget(self, form: Contract, editing: Contract | None = None) -> ConsumptionCheck | None:
        """Advisory budget check; None when the budget's usage is unknown."""
        usage = self.usage(form.budget_id)
        if usage is None:
            return None
        previous = None
        if editing is not None and editing.budget_id == form.budget_id:
            previous = editing.total_cost
        return check_consumption(usage, form.total_cost, previous)

    def submit(self, form: Contract, editing: Contract | None = None) -> MutationResult:
        """
        Create or update a contract.

        Refused locally while the advisory budget check says the budget
        would be exceeded.
        """
        form = self.prefill(form)
        check = self.check_budget(form, editing)
        if check is not None and check.exceeded:
            message = (
                f"Budget {check.budget_id} would be exceeded: "
                f"{check.projected_used.amount} of {check.budget_money.amount}"
            )
            self.gateway.notifier.notify(Severity.WARNING, message, budget_id=check.budget_id)
            return MutationResult(ok=False, message=message)

        if editing is None:
            result = self.gateway.create(endpoints.CONTRACTS, form)
        else:
            result = self.gateway.update(endpoints.CONTRACTS, editing.id, form)
        if result.ok:
            self.load()
        return result

    def delete(self, contract_id: str) -> MutationResult:
        result = self.gateway.delete(endpoints.CONTRACTS, contract_id)
        if result.ok:
            self.load()
        return result


class BillsScreen:
    """Filtered bill list, totals, reconciliation and payments per bill."""

    def __init__(self, gateway: ResaleGateway, per_page: int = 10) -> None:
        self.gateway = gateway
        self.controller: ListController[Bill] = ListController(
            "bills", self._fetch, gateway.session, per_page,
        )

    def _fetch(self, query: ListQuery) -> Page[Bill]:
        return self.gateway.filtered_bills(query.filters, query.page)

    def load(self) -> Page[Bill]:
        with LogContext.bind(screen="bills"):
            return self.controller.refresh()

    def totals(self) -> BillTotals:
        return totals(self.controller.items, self.gateway.currency)

    def reconcile(self, cash_on_hand: Money | str | int) -> ReconciliationCheck:
        """debt + cash on hand - deposit over the bills shown."""
        return difference(self.totals(), cash_on_hand)

    def payments(self, bill: Bill) -> tuple[list[Payment], BillSummary]:
        payments = self.gateway.payments_by_bill(bill.id)
        return payments, summarize(bill, payments)

    def save_bill(self, form: Bill, editing: Bill | None = None) -> MutationResult:
        if editing is None:
            result = self.gateway.create(endpoints.BILLS, form)
        else:
            result = self.gateway.update(endpoints.BILLS, editing.id, form)
        if result.ok:
            self.load()
        return result

    def delete_bill(self, bill_id: str) -> MutationResult:
        result = self.gateway.delete(endpoints.BILLS, bill_id)
        if result.ok:
            self.load()
        return result

    def save_payment(self, payment: Payment, editing: Payment | None = None) -> MutationResult:
        if editing is None:
            result = self.gateway.create(endpoints.PAYMENTS, payment)
        else:
            result = self.gateway.update(endpoints.PAYMENTS, editing.id, payment)
        if result.ok:
            self.load()
        return result

    def delete_payment(self, payment_id: str) -> MutationResult:
        result = self.gateway.delete(endpoints.PAYMENTS, payment_id)
        if result.ok:
            self.load()
        return result


class BudgetsScreen:
    """Budgets of the selected supplier, sorted and paged by the server."""

    def __init__(self, gateway: ResaleGateway, per_page: int = 5) -> None:
        self.gateway = gateway
        self.supplier_id: str | None = None
        self.controller: ListController[Budget] = ListController(
            "budgets", self._fetch, gateway.session, per_page,
        )

    def _fetch(self, query: ListQuery) -> Page[Budget]:
        if not self.supplier_id:
            return Page.empty(query.page.per_page)
        return self.gateway.budgets_by_supplier(
            self.supplier_id, query.filters, query.sort, query.page,
        )

    def select_supplier(self, supplier_id: str) -> Page[Budget]:
        self.supplier_id = supplier_id
        self.controller.set_page(1)
        return self.load()

    def load(self) -> Page[Budget]:
        with LogContext.bind(screen="budgets", entity_id=self.supplier_id):
            return self.controller.refresh()

    def save(self, form: Budget, editing: Budget | None = None) -> MutationResult:
        if editing is None:
            result = self.gateway.create(endpoints.BUDGETS, form)
        else:
            result = self.gateway.update(endpoints.BUDGETS, editing.id, form)
        if result.ok:
            self.load()
        return result

    def delete(self, budget_id: str) -> MutationResult:
        result = self.gateway.delete(endpoints.BUDGETS, budget_id)
        if result.ok:
            self.load()
        return result


class CustomersScreen:
    """
    Customer list filtered and paged client-side: the customer endpoint
    returns every customer at once.
    """

    def __init__(self, gateway: ResaleGateway, per_page: int = 10) -> None:
        self.gateway = gateway
        self.per_page = per_page
        self.customers: list[Customer] = []

    def load(self) -> list[Customer]:
        self.customers = self.gateway.list_all(endpoints.CUSTOMERS)
        return self.customers

    def page(self, filters: ListFilter | None = None, page: int = 1) -> ListView[Customer]:
        return view(self.customers, filters, None, PageRequest(page, self.per_page))


@dataclass(frozen=True)
class DashboardView:
    period: Period
    summary: DashboardSummary | None


class DashboardScreen:
    """Dashboard for a granularity + value, and the monthly overviews."""

    def __init__(self, gateway: ResaleGateway) -> None:
        self.gateway = gateway

    def dashboard(self, granularity: Granularity | str, value: date | str) -> DashboardView:
        """Fetch the backend's dashboard for the period containing ``value``."""
        period = period_for(granularity, value)
        with LogContext.bind(screen="dashboard"):
            return DashboardView(period=period, summary=self.gateway.dashboard(period))

    def local_dashboard(self, granularity: Granularity | str, value: date | str) -> DashboardView:
        """Compute the dashboard from the full contract and payment lists."""
        period = period_for(granularity, value)
        contracts = self.gateway.list_all(endpoints.CONTRACTS)
        payments = self.gateway.list_all(endpoints.PAYMENTS)
        summary = build_dashboard(contracts, payments, period, self.gateway.currency)
        return DashboardView(period=period, summary=summary)

    def customer_overview(self, customer_id: str, year: int | str, month: int | str) -> CustomerReport | None:
        with LogContext.bind(screen="overview_customer", entity_id=customer_id):
            return self.gateway.customer_overview(customer_id, month_period(year, month))

    def supplier_overview(self, supplier_id: str, year: int | str, month: int | str) -> SupplierReport | None:
        with LogContext.bind(screen="overview_supplier", entity_id=supplier_id):
            return self.gateway.supplier_overview(supplier_id, month_period(year, month))
