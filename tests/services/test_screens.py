"""
Tests for the screen view models (resale_services/screens.py).

Screens run against the mock backend end to end: fetch through the
gateway, run the engines, refetch after a successful mutation.
"""

from decimal import Decimal

import pytest

from resale_engines.bill_ledger import ReconciliationDirection
from resale_engines.listing import ListFilter
from resale_kernel.domain.entities import BillStatus, ProductType
from resale_services.gateway import ResaleGateway
from resale_services.notifications import Severity
from resale_services.screens import (
    BillsScreen,
    BudgetsScreen,
    ContractsScreen,
    CustomersScreen,
    DashboardScreen,
)
from tests.builders import make_bill, make_contract, make_payment, vnd


@pytest.fixture
def gateway(client, notifier):
    return ResaleGateway(client, notifier)


def _usage_row(used=900_000, money=1_000_000):
    return {"id": 7, "budget_money": money, "used_budget": used,
            "customer_rate": "0.3", "supplier_rate": "0.1"}


def _contract_row(id, total_cost, customer_rate="0.2", supplier_rate="0.1", day="2025-02-10"):
    return {"id": id, "customer_id": 3, "customer_name": "Lan", "budget_id": 7,
            "total_cost": total_cost, "customer_rate": customer_rate,
            "supplier_rate": supplier_rate, "product_type": "legal",
            "account_type_name": "Agency", "supplier_name": "Ads Co", "date": day}


class TestContractsScreen:

    @pytest.fixture(autouse=True)
    def _routes(self, backend):
        backend.add("GET", "contracts/filtered", json_body={
            "data": [_contract_row(1, 100_000), _contract_row(2, 300_000)],
            "pagination": {"current_page": 1, "from": 1, "to": 2, "total": 2, "last_page": 1},
        })
        backend.add("GET", "budget-contract", json_body=[_usage_row()])

    def test_load_and_totals(self, gateway):
        screen = ContractsScreen(gateway)
        screen.load()
        totals = screen.totals()
        assert totals.count == 2
        assert totals.total_cost == vnd(400_000)
        assert totals.customer_cost == vnd(80_000)
        assert totals.profit == vnd(40_000)
        assert screen.usage("7").used_budget == vnd(900_000)

    def test_totals_skip_row_with_out_of_range_rate(self, gateway, backend):
        backend.add("GET", "contracts/filtered", json_body={"data": [
            _contract_row(1, 100_000), _contract_row(2, 300_000, customer_rate="20"),
        ]})
        screen = ContractsScreen(gateway)
        screen.load()
        totals = screen.totals()
        assert totals.count == 1
        assert totals.customer_cost == vnd(20_000)

    def test_prefill_takes_budget_rates(self, gateway):
        screen = ContractsScreen(gateway)
        screen.load()
        form = screen.prefill(make_contract(budget_id="7", customer_rate="0", supplier_rate="0"))
        assert form.customer_rate == Decimal("0.3")
        assert form.supplier_rate == Decimal("0.1")

    def test_prefill_keeps_typed_rates(self, gateway):
        screen = ContractsScreen(gateway)
        screen.load()
        form = screen.prefill(make_contract(budget_id="7", customer_rate="0.25", supplier_rate="0"))
        assert form.customer_rate == Decimal("0.25")

    def test_submit_blocked_when_budget_exceeded(self, gateway, backend, notifier):
        screen = ContractsScreen(gateway)
        screen.load()
        result = screen.submit(make_contract(id="", budget_id="7", total_cost=200_000))
        assert not result.ok
        assert "would be exceeded" in result.message
        assert notifier.last.severity is Severity.WARNING
        assert ("POST", "contracts") not in {(r.method, r.url.path.removeprefix("/api/"))
                                             for r in backend.requests}

    def test_submit_within_budget_creates_and_reloads(self, gateway, backend):
        backend.add("POST", "contracts", json_body={"data": _contract_row(9, 50_000)})
        screen = ContractsScreen(gateway)
        screen.load()
        result = screen.submit(make_contract(id="", budget_id="7", total_cost=50_000,
                                             customer_rate="0", supplier_rate="0"))
        assert result.ok
        sent = backend.sent_json("POST", "contracts")
        assert sent["customer_rate"] == "0.3"
        # list and usage refetched after the create
        assert backend.paths().count("contracts/filtered") == 2
        assert backend.paths().count("budget-contract") == 2

    def test_edit_discounts_previous_cost(self, gateway, backend):
        backend.add("PUT", "contracts/5", json_body=_contract_row(5, 250_000))
        screen = ContractsScreen(gateway)
        screen.load()
        editing = make_contract(id="5", budget_id="7", total_cost=200_000)
        check = screen.check_budget(make_contract(budget_id="7", total_cost=250_000), editing)
        assert check.projected_used == vnd(950_000)
        assert not check.exceeded
        assert screen.submit(make_contract(budget_id="7", total_cost=250_000), editing).ok

    def test_unknown_budget_is_not_checked(self, gateway):
        screen = ContractsScreen(gateway)
        screen.load()
        assert screen.check_budget(make_contract(budget_id="404")) is None

    def test_delete_failure_does_not_reload(self, gateway, backend):
        backend.add("DELETE", "contracts/1", status=500, json_body={"message": "locked"})
        screen = ContractsScreen(gateway)
        screen.load()
        result = screen.delete("1")
        assert result.message == "locked"
        assert backend.paths().count("contracts/filtered") == 1


class TestBillsScreen:

    @pytest.fixture(autouse=True)
    def _routes(self, backend):
        backend.add("GET", "bills/filter", json_body={"data": [
            {"id": 1, "customer_id": 3, "total_money": 500000, "paid_amount": 200000,
             "debt_amount": 300000, "deposit_amount": 50000, "status": "deposit"},
            {"id": 2, "customer_id": 3, "total_money": 300000, "paid_amount": 300000,
             "debt_amount": 0, "deposit_amount": 0, "status": "completed"},
        ]})

    def test_totals(self, gateway):
        screen = BillsScreen(gateway)
        screen.load()
        totals = screen.totals()
        assert totals.count == 2
        assert totals.total_debt == vnd(300_000)
        assert totals.total_deposit == vnd(50_000)

    def test_reconcile_shortfall(self, gateway):
        screen = BillsScreen(gateway)
        screen.load()
        check = screen.reconcile("100,000")
        assert check.difference == vnd(350_000)
        assert check.direction is ReconciliationDirection.SHORTFALL

    def test_reconcile_balanced(self, gateway):
        screen = BillsScreen(gateway)
        screen.load()
        assert screen.reconcile(vnd(-250_000)).is_balanced

    def test_payments_of_bill(self, gateway, backend):
        backend.add("GET", "payments-by-bill/bill1", json_body=[
            {"id": 1, "amount": 100000},
            {"id": 2, "amount": 150000, "is_deposit": 1},
        ])
        screen = BillsScreen(gateway)
        payments, summary = screen.payments(make_bill(total_money=500_000))
        assert len(payments) == 2
        assert summary.total_paid == vnd(250_000)
        assert summary.deposit == vnd(150_000)
        assert summary.status is BillStatus.DEPOSIT

    def test_status_filter_sent(self, gateway, backend):
        screen = BillsScreen(gateway)
        screen.controller.set_filters(status=BillStatus.COMPLETED)
        screen.load()
        assert backend.last("GET", "bills/filter").url.params["status"] == "completed"

    def test_saving_payment_reloads_bills(self, gateway, backend):
        backend.add("POST", "payments", json_body={"id": 8, "amount": 1000, "bill_id": 1})
        screen = BillsScreen(gateway)
        assert screen.save_payment(make_payment(bill_id="1", amount=1000)).ok
        assert backend.paths()[-1] == "bills/filter"


class TestBudgetsScreen:

    def test_no_supplier_no_request(self, gateway, backend):
        screen = BudgetsScreen(gateway)
        page = screen.load()
        assert page.items == ()
        assert page.page_info.per_page == 5
        assert backend.requests == []

    def test_select_supplier(self, gateway, backend):
        backend.add("GET", "budgets-by-supplier/9", json_body={"data": {
            "current_page": 1, "data": [{"id": 4, "supplier_id": 9, "money": 2000000}],
            "from": 1, "to": 1, "total": 1, "last_page": 1, "per_page": 5,
        }})
        screen = BudgetsScreen(gateway)
        page = screen.select_supplier("9")
        assert page.items[0].money == vnd(2_000_000)
        assert backend.last().url.params["limit"] == "5"

    def test_sort_sent_to_server(self, gateway, backend):
        backend.add("GET", "budgets-by-supplier/9", json_body={"data": []})
        screen = BudgetsScreen(gateway)
        screen.supplier_id = "9"
        screen.controller.set_sort("money", "desc")
        screen.load()
        params = backend.last().url.params
        assert (params["sort_by"], params["sort_order"]) == ("money", "desc")


class TestCustomersScreen:

    def test_client_side_filter_and_page(self, gateway, backend):
        rows = [{"id": i, "name": f"C{i}", "product_type": "legal" if i % 2 else "illegal"}
                for i in range(1, 24)]
        backend.add("GET", "customer", json_body=rows)
        screen = CustomersScreen(gateway, per_page=10)
        screen.load()

        assert screen.page(page=3).page_info.to_index == 23
        legal = screen.page(ListFilter(product_type=ProductType.LEGAL))
        assert legal.page_info.total == 12
        assert all(c.product_type is ProductType.LEGAL for c in legal.items)


class TestDashboardScreen:

    def test_backend_dashboard(self, gateway, backend):
        backend.add("GET", "dashboard/week/2025-02-12", json_body={
            "period": {"from": "2025-02-10", "to": "2025-02-16"},
            "total_contracts": 4, "revenue": 800000,
        })
        view = DashboardScreen(gateway).dashboard("week", "2025-02-12")
        assert view.period.start.isoformat() == "2025-02-10"
        assert view.summary.total_contracts == 4
        assert view.summary.revenue == vnd(800_000)

    def test_local_dashboard(self, gateway, backend):
        backend.add("GET", "contracts", json_body=[
            _contract_row(1, 100_000), _contract_row(2, 100_000, day="2025-03-01"),
        ])
        backend.add("GET", "payments", json_body=[
            {"id": 1, "amount": 70000, "date": "2025-02-20"},
            {"id": 2, "amount": 10000, "date": "2025-01-31"},
        ])
        view = DashboardScreen(gateway).local_dashboard("month", "2025-02")
        assert view.summary.total_contracts == 1
        assert view.summary.revenue == vnd(20_000)
        assert view.summary.received == vnd(70_000)
        assert view.summary.top_account_type == "Agency"

    def test_overview_failure_is_none(self, gateway, backend, notifier):
        backend.add("GET", "overview/customer/3/2025-02", status=404, json_body={"message": "Not found"})
        assert DashboardScreen(gateway).customer_overview("3", 2025, 2) is None
        assert notifier.last.message == "Not found"
