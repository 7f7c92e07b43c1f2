"""
Module: resale_engines.reporting
Responsibility:
    Bucket contracts, bills and budgets into a calendar period, group them
    by a dimension (account type, product, customer, supplier) and total
    them. Builds the dashboard summary and the per-customer and
    per-supplier monthly overviews.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import resale_kernel and sibling engines.

Invariants enforced:
    - A record belongs to a period iff its date lies in [start, end]
      inclusive; undated records never match a period.
    - Groups are ordered by descending count, ties by name ascending.
    - Contract profit is summed from ``rate_allocation`` so every screen
      derives it the same way.

Failure modes:
    - Contracts with invalid rates or costs are left out of dashboard
      and overview totals (see ``reportable_contracts``); ``aggregate``
      over CONTRACTS lets InvalidRateError / NegativeAmountError surface.
    - KeyError when an unknown dimension is requested for a source.

The overview and dashboard dataclasses also decode the backend's own
payloads (``from_payload``), so a locally computed report and a fetched
one are interchangeable.

Usage:
    from resale_engines.reporting import aggregate, CONTRACTS
    from resale_kernel.domain.periods import period_for

    summary = aggregate(contracts, CONTRACTS, period_for("month", "2025-02"),
                        dimensions=("account_type", "customer"))
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Generic, TypeVar

from resale_kernel.domain.entities import Bill, Budget, Contract, Payment, parse_day
from resale_kernel.domain.periods import Period
from resale_kernel.domain.values import Currency, Money, coerce_decimal
from resale_kernel.logging_config import get_logger
from resale_engines.rate_allocation import allocate, reportable_contracts
from resale_engines.tracer import traced_engine

logger = get_logger("engines.reporting")

R = TypeVar("R")

# (key, display name) of the group a record falls into
GroupKey = tuple[str, str]


@dataclass(frozen=True)
class ReportSource(Generic[R]):
    """
    How the reporting engine reads one kind of record.

    Contract:
        ``date_of`` buckets a record, ``money_of`` is the money it moves,
        ``profit_of`` (optional) its profit, and each entry of
        ``dimensions`` maps a record to its group key and display name.
    """

    name: str
    date_of: Callable[[R], date | None]
    money_of: Callable[[R], Money]
    dimensions: Mapping[str, Callable[[R], GroupKey]]
    profit_of: Callable[[R], Money] | None = None


def _product_label(contract: Contract) -> GroupKey:
    label = contract.product or contract.product_type.value
    return label, label


def _contract_profit(contract: Contract) -> Money:
    return allocate(None, contract).profit


CONTRACTS: ReportSource[Contract] = ReportSource(
    name="contracts",
    date_of=lambda c: c.date,
    money_of=lambda c: c.total_cost,
    profit_of=_contract_profit,
    dimensions={
        "account_type": lambda c: (c.account_type_id or c.account_type_name, c.account_type_name),
        "product": _product_label,
        "product_type": lambda c: (c.product_type.value, c.product_type.value),
        "customer": lambda c: (c.customer_id, c.customer_name),
        "supplier": lambda c: (c.supplier_id or c.supplier_name, c.supplier_name),
    },
)

BILLS: ReportSource[Bill] = ReportSource(
    name="bills",
    date_of=lambda b: b.date,
    money_of=lambda b: b.total_money,
    dimensions={
        "customer": lambda b: (b.customer_id, b.customer_name),
        "status": lambda b: (b.status.value, b.status.value),
        "product": lambda b: (b.product, b.product),
    },
)

BUDGETS: ReportSource[Budget] = ReportSource(
    name="budgets",
    date_of=lambda b: b.date,
    money_of=lambda b: b.money,
    dimensions={
        "account_type": lambda b: (b.account_type_id or b.account_type_name, b.account_type_name),
        "product_type": lambda b: (b.product_type.value, b.product_type.value),
        "supplier": lambda b: (b.supplier_id, b.supplier_name),
        "status": lambda b: (b.status.value, b.status.value),
    },
)


# ---------------------------------------------------------------------------
# Grouped summaries
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GroupTotal:
    """Count and money of one group."""

    key: str
    name: str
    count: int
    money: Money
    profit: Money | None = None


@dataclass(frozen=True)
class GroupedSummary:
    """
    Totals of the records in a period plus per-dimension breakdowns.

    Guarantees:
        - sum(g.count for g in groups[d]) == count for every dimension d.
        - ``profit`` is None for sources without a profit function.
    """

    source: str
    period: Period | None
    count: int
    total_money: Money
    total_profit: Money | None
    groups: Mapping[str, tuple[GroupTotal, ...]] = field(default_factory=dict)

    def top(self, dimension: str) -> GroupTotal | None:
        ranked = self.groups.get(dimension, ())
        return ranked[0] if ranked else None


def in_period(records: Sequence[R], date_of: Callable[[R], date | None], period: Period | None) -> list[R]:
    """Records whose date falls in ``period``; all records when None."""
    if period is None:
        return list(records)
    return [r for r in records if period.contains(date_of(r))]


def _rank(groups: Mapping[str, GroupTotal]) -> tuple[GroupTotal, ...]:
    return tuple(sorted(groups.values(), key=lambda g: (-g.count, g.name, g.key)))


@traced_engine("reporting", "1.0", fingerprint_fields=("period", "dimensions"))
def aggregate(
    records: Sequence[R],
    source: ReportSource[R],
    period: Period | None = None,
    dimensions: Sequence[str] = (),
    currency: str | Currency | None = None,
) -> GroupedSummary:
    """
    Bucket ``records`` into ``period`` and group them by ``dimensions``.

    Args:
        records: Decoded entities of one kind.
        source: How to read them (CONTRACTS, BILLS, BUDGETS or custom).
        period: Calendar bucket; None keeps every record.
        dimensions: Names from ``source.dimensions``.
        currency: Currency of empty totals; defaults to the first record's.

    Raises:
        KeyError: a dimension is not defined for the source.
    """
    key_fns = {d: source.dimensions[d] for d in dimensions}
    selected = in_period(records, source.date_of, period)

    if currency is None and selected:
        currency = source.money_of(selected[0]).currency
    zero = Money.zero(currency)

    total_money = zero
    total_profit = zero if source.profit_of else None
    buckets: dict[str, dict[str, GroupTotal]] = {d: {} for d in dimensions}

    for record in selected:
        money = source.money_of(record)
        profit = source.profit_of(record) if source.profit_of else None
        total_money = total_money + money
        if profit is not None:
            total_profit = total_profit + profit

        for dimension, key_fn in key_fns.items():
            key, name = key_fn(record)
            current = buckets[dimension].get(key)
            if current is None:
                current = GroupTotal(
                    key=key, name=name or key, count=0, money=zero,
                    profit=zero if profit is not None else None,
                )
            buckets[dimension][key] = GroupTotal(
                key=key,
                name=current.name,
                count=current.count + 1,
                money=current.money + money,
                profit=current.profit + profit if profit is not None else None,
            )

    logger.debug("records_aggregated", extra={
        "source": source.name,
        "period": str(period) if period else None,
        "input_count": len(records),
        "selected_count": len(selected),
        "dimensions": list(dimensions),
    })

    return GroupedSummary(
        source=source.name,
        period=period,
        count=len(selected),
        total_money=total_money,
        total_profit=total_profit,
        groups={d: _rank(buckets[d]) for d in dimensions},
    )


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


def _count(value: Any) -> int:
    return int(coerce_decimal(value))


@dataclass(frozen=True)
class CountEntry:
    """One row of a dashboard breakdown list."""

    key: str
    name: str
    count: int


@dataclass(frozen=True)
class DashboardSummary:
    """Numbers shown on the dashboard for one period."""

    period_from: date | None
    period_to: date | None
    total_contracts: int
    revenue: Money
    profit: Money
    received: Money
    top_account_type: str | None
    account_types: tuple[CountEntry, ...] = ()
    products: tuple[CountEntry, ...] = ()
    customers: tuple[CountEntry, ...] = ()
    suppliers: tuple[CountEntry, ...] = ()

    @classmethod
    def from_payload(cls, data: Mapping[str, Any], currency: str | None = None) -> DashboardSummary:
        """Decode the dashboard endpoint's response body."""
        period = data.get("period")
        if not isinstance(period, Mapping):
            period = {}

        def entries(rows: Any, key_field: str | None, name_field: str) -> tuple[CountEntry, ...]:
            out = []
            for row in rows or ():
                if not isinstance(row, Mapping):
                    continue
                name = str(row.get(name_field) or "")
                key = str(row.get(key_field) or name) if key_field else name
                out.append(CountEntry(key=key, name=name, count=_count(row.get("count"))))
            return tuple(out)

        return cls(
            period_from=parse_day(period.get("from")),
            period_to=parse_day(period.get("to")),
            total_contracts=_count(data.get("total_contracts")),
            revenue=Money.coerce(data.get("revenue"), currency),
            profit=Money.coerce(data.get("profit"), currency),
            received=Money.coerce(data.get("received"), currency),
            top_account_type=data.get("top_account_type") or None,
            account_types=entries(data.get("account_types"), None, "name"),
            products=entries(data.get("products"), None, "product"),
            customers=entries(data.get("customers"), "customer_id", "customer_name"),
            suppliers=entries(data.get("suppliers"), "supplier_id", "supplier_name"),
        )


def _counts(groups: tuple[GroupTotal, ...]) -> tuple[CountEntry, ...]:
    return tuple(CountEntry(key=g.key, name=g.name, count=g.count) for g in groups)


@traced_engine("reporting", "1.0", fingerprint_fields=("period",))
def build_dashboard(
    contracts: Sequence[Contract],
    payments: Sequence[Payment],
    period: Period,
    currency: str | Currency | None = None,
) -> DashboardSummary:
    """
    Dashboard numbers for ``period``.

    revenue is the sum of customer cost, profit the sum of contract
    profit and received the sum of payments dated in the period.
    """
    if currency is None and contracts:
        currency = contracts[0].total_cost.currency
    contracts = reportable_contracts(contracts)

    summary = aggregate(
        contracts, CONTRACTS, period,
        dimensions=("account_type", "product", "customer", "supplier"),
        currency=currency,
    )
    selected = in_period(contracts, CONTRACTS.date_of, period)
    revenue = Money.total((allocate(None, c).customer_cost for c in selected), currency)
    received = Money.total(
        (p.amount for p in in_period(payments, lambda p: p.date, period)), currency,
    )
    top = summary.top("account_type")

    return DashboardSummary(
        period_from=period.start,
        period_to=period.end,
        total_contracts=summary.count,
        revenue=revenue,
        profit=summary.total_profit or Money.zero(currency),
        received=received,
        top_account_type=top.name if top else None,
        account_types=_counts(summary.groups["account_type"]),
        products=_counts(summary.groups["product"]),
        customers=_counts(summary.groups["customer"]),
        suppliers=_counts(summary.groups["supplier"]),
    )


# ---------------------------------------------------------------------------
# Per-entity overviews
# ---------------------------------------------------------------------------


def _decode_groups(raw: Any, currency: str | None) -> tuple[GroupTotal, ...]:
    """Backend groups arrive as ``{key: {id, name, count, total_money}}``."""
    if not isinstance(raw, Mapping):
        return ()
    out = []
    for key, row in raw.items():
        if isinstance(row, Mapping):
            out.append(GroupTotal(
                key=str(row.get("id") or key),
                name=str(row.get("name") or key),
                count=_count(row.get("count")),
                money=Money.coerce(row.get("total_money"), currency),
            ))
        else:
            out.append(GroupTotal(key=str(key), name=str(key), count=_count(row),
                                  money=Money.zero(currency)))
    return _rank({g.key: g for g in out})


@dataclass(frozen=True)
class CustomerOverview:
    """A customer's activity in one month."""

    total_runs: int
    runs_by_account_type: tuple[GroupTotal, ...]
    runs_by_product: tuple[GroupTotal, ...]
    total_money: Money
    total_paid: Money
    total_debt: Money

    @classmethod
    def from_payload(cls, data: Mapping[str, Any], currency: str | None = None) -> CustomerOverview:
        return cls(
            total_runs=_count(data.get("total_runs")),
            runs_by_account_type=_decode_groups(data.get("runs_by_account_type"), currency),
            runs_by_product=_decode_groups(data.get("runs_by_product"), currency),
            total_money=Money.coerce(data.get("total_money"), currency),
            total_paid=Money.coerce(data.get("total_paid"), currency),
            total_debt=Money.coerce(data.get("total_debt"), currency),
        )


@dataclass(frozen=True)
class SupplierOverview:
    """A supplier's budgets in one month and what is owed to it."""

    total_budget_count: int
    total_budget_money: Money
    budget_by_account_type: tuple[GroupTotal, ...]
    total_payable: Money

    @classmethod
    def from_payload(cls, data: Mapping[str, Any], currency: str | None = None) -> SupplierOverview:
        return cls(
            total_budget_count=_count(data.get("total_budget_count")),
            total_budget_money=Money.coerce(data.get("total_budget_money"), currency),
            budget_by_account_type=_decode_groups(data.get("budget_by_account_type"), currency),
            total_payable=Money.coerce(data.get("total_payable"), currency),
        )


@traced_engine("reporting", "1.0", fingerprint_fields=("customer_id", "period"))
def customer_overview(
    customer_id: str,
    contracts: Sequence[Contract],
    bills: Sequence[Bill],
    period: Period,
    currency: str | Currency | None = None,
) -> CustomerOverview:
    """
    Runs, customer cost, paid and debt of one customer in ``period``.

    total_money is what the customer owes for the runs (customer cost);
    paid and debt come from the customer's bills.
    """
    own_contracts = reportable_contracts(c for c in contracts if c.customer_id == customer_id)
    own_bills = [b for b in bills if b.customer_id == customer_id]

    summary = aggregate(own_contracts, CONTRACTS, period,
                        dimensions=("account_type", "product"), currency=currency)
    selected = in_period(own_contracts, CONTRACTS.date_of, period)
    currency = summary.total_money.currency
    period_bills = in_period(own_bills, BILLS.date_of, period)

    return CustomerOverview(
        total_runs=summary.count,
        runs_by_account_type=summary.groups["account_type"],
        runs_by_product=summary.groups["product"],
        total_money=Money.total((allocate(None, c).customer_cost for c in selected), currency),
        total_paid=Money.total((b.paid_amount for b in period_bills), currency),
        total_debt=Money.total((b.debt_amount for b in period_bills), currency),
    )


@traced_engine("reporting", "1.0", fingerprint_fields=("supplier_id", "period"))
def supplier_overview(
    supplier_id: str,
    budgets: Sequence[Budget],
    contracts: Sequence[Contract],
    period: Period,
    currency: str | Currency | None = None,
) -> SupplierOverview:
    """
    Budgets bought from one supplier in ``period`` and the supplier cost
    of the contracts that drew on that supplier's budgets in the period.
    """
    own_budgets = [b for b in budgets if b.supplier_id == supplier_id]
    budget_ids = {b.id for b in own_budgets}
    own_contracts = reportable_contracts(
        c for c in contracts
        if c.supplier_id == supplier_id or (not c.supplier_id and c.budget_id in budget_ids)
    )

    summary = aggregate(own_budgets, BUDGETS, period,
                        dimensions=("account_type",), currency=currency)
    currency = summary.total_money.currency
    payable = Money.total(
        (allocate(None, c).supplier_cost for c in in_period(own_contracts, CONTRACTS.date_of, period)),
        currency,
    )

    return SupplierOverview(
        total_budget_count=summary.count,
        total_budget_money=summary.total_money,
        budget_by_account_type=summary.groups["account_type"],
        total_payable=payable,
    )
