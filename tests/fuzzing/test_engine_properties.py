"""
Property-based tests for the calculation engines.

Properties:
- Allocation: profit == customer_cost - supplier_cost; shares never
  exceed total_cost.
- Budget usage: independent of contract order; a single contract uses
  exactly its rounded cost.
- Bill summary: total_paid is monotone in payments; order does not
  matter; debt is never negative.
- Aggregation: a single record aggregates to itself.
- Pagination: every filtered record appears on exactly one page.
"""

from datetime import date, timedelta

from hypothesis import given, settings
from hypothesis import strategies as st

from resale_engines.bill_ledger import summarize
from resale_engines.listing import PageRequest, view
from resale_engines.rate_allocation import allocate, used_budget, would_exceed
from resale_engines.reporting import CONTRACTS, aggregate
from resale_kernel.domain.periods import period_for
from tests.builders import make_bill, make_budget, make_contract, make_payment, vnd

amounts = st.integers(min_value=0, max_value=10_000_000_000)
rates = st.decimals(min_value=0, max_value=1, places=4, allow_nan=False, allow_infinity=False)
days = st.dates(min_value=date(2024, 1, 1), max_value=date(2026, 12, 31))


@st.composite
def contracts(draw, budget_id="b1"):
    return make_contract(
        id=str(draw(st.integers(min_value=1, max_value=10**9))),
        total_cost=draw(amounts),
        budget_id=budget_id,
        customer_rate=str(draw(rates)),
        supplier_rate=str(draw(rates)),
        day=draw(days),
    )


class TestAllocationProperties:

    @given(contracts())
    @settings(max_examples=200)
    def test_profit_is_difference_of_shares(self, contract):
        result = allocate(None, contract)
        assert result.profit == result.customer_cost - result.supplier_cost

    @given(contracts())
    @settings(max_examples=200)
    def test_shares_bounded_by_total(self, contract):
        result = allocate(None, contract)
        assert vnd(0) <= result.customer_cost <= contract.total_cost
        assert vnd(0) <= result.supplier_cost <= contract.total_cost


class TestBudgetProperties:

    @given(st.lists(contracts(), max_size=20), st.randoms(use_true_random=False))
    def test_usage_order_independent(self, items, random):
        shuffled = list(items)
        random.shuffle(shuffled)
        budget = make_budget()
        assert used_budget(budget, items) == used_budget(budget, shuffled)

    @given(contracts())
    def test_single_contract_usage(self, contract):
        assert used_budget(make_budget(), [contract]) == contract.total_cost.round()

    @given(st.lists(contracts(), max_size=10), amounts, amounts)
    def test_exceeding_is_monotone_in_candidate(self, items, a, b):
        budget = make_budget(money=5_000_000_000)
        low, high = sorted((a, b))
        if would_exceed(budget, items, vnd(low)) and low > 0:
            assert would_exceed(budget, items, vnd(high))


class TestBillProperties:

    @given(amounts, st.lists(amounts, max_size=15))
    def test_debt_never_negative(self, total, paid):
        bill = make_bill(total_money=total)
        payments = [make_payment(id=str(i), amount=a) for i, a in enumerate(paid)]
        summary = summarize(bill, payments)
        assert not summary.debt.is_negative
        assert not summary.overpaid.is_negative

    @given(amounts, st.lists(amounts, max_size=15), amounts)
    def test_paid_monotone(self, total, paid, extra):
        bill = make_bill(total_money=total)
        payments = [make_payment(id=str(i), amount=a) for i, a in enumerate(paid)]
        before = summarize(bill, payments)
        after = summarize(bill, payments + [make_payment(id="extra", amount=extra)])
        assert after.total_paid >= before.total_paid
        assert after.debt <= before.debt

    @given(amounts, st.lists(amounts, max_size=15), st.randoms(use_true_random=False))
    def test_payment_order_irrelevant(self, total, paid, random):
        bill = make_bill(total_money=total)
        payments = [make_payment(id=str(i), amount=a) for i, a in enumerate(paid)]
        shuffled = list(payments)
        random.shuffle(shuffled)
        assert summarize(bill, payments) == summarize(bill, shuffled)


class TestAggregationProperties:

    @given(contracts())
    def test_single_record_aggregate(self, contract):
        period = period_for("date", contract.date)
        summary = aggregate([contract], CONTRACTS, period, dimensions=("customer",))
        assert summary.count == 1
        assert summary.total_money == contract.total_cost
        assert summary.total_profit == allocate(None, contract).profit
        assert summary.groups["customer"][0].count == 1

    @given(contracts(), st.integers(min_value=1, max_value=400))
    def test_record_outside_period_dropped(self, contract, offset):
        period = period_for("date", contract.date + timedelta(days=offset))
        assert aggregate([contract], CONTRACTS, period).count == 0


class TestPaginationProperties:

    @given(st.integers(min_value=0, max_value=120), st.integers(min_value=1, max_value=25))
    def test_pages_partition_records(self, n, per_page):
        rows = [{"id": i} for i in range(n)]
        first = view(rows, page=PageRequest(1, per_page))
        seen = []
        for page in range(1, first.page_info.last_page + 1):
            seen.extend(r["id"] for r in view(rows, page=PageRequest(page, per_page)).items)
        assert seen == list(range(n))
