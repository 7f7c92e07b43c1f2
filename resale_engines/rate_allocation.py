"""
Module: resale_engines.rate_allocation
Responsibility:
    Derive the customer cost, supplier cost and profit of a contract from
    its total_cost and rates, and evaluate how much of a budget the
    contracts drawn against it consume.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import resale_kernel.

Invariants enforced:
    - customer_cost = round(total_cost * customer_rate)
    - supplier_cost = round(total_cost * supplier_rate)
    - profit = customer_cost - supplier_cost (both already rounded)
    - Rate arithmetic is Decimal end to end; only the final share is
      rounded to the currency unit.
    - Editing a contract replaces its own prior usage: U - X + Y.

Failure modes:
    - NegativeAmountError for a negative total_cost or candidate cost.
    - InvalidRateError for a rate outside [0, 1].
    - BudgetMismatchError when a contract is allocated against a budget it
      does not draw on.
    - Display totals (``summarize_contracts``) skip rows with invalid
      rates or costs instead of raising.

Budget overconsumption is advisory. ``would_exceed`` and
``check_consumption`` report it; they never raise for it. The backend's
own check is authoritative.

Usage:
    from resale_engines.rate_allocation import allocate, would_exceed

    result = allocate(budget, contract)
    if would_exceed(budget, contracts, candidate.total_cost, candidate.id):
        ...  # disable submit
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Sequence

from resale_kernel.domain.entities import Budget, BudgetUsage, Contract
from resale_kernel.domain.values import Currency, Money, Rate
from resale_kernel.domain.validation import require_non_negative
from resale_kernel.exceptions import BudgetMismatchError, InvalidInputError
from resale_kernel.logging_config import get_logger
from resale_engines.tracer import traced_engine

logger = get_logger("engines.rate_allocation")


@dataclass(frozen=True)
class AllocationResult:
    """
    Derived money figures of one contract.

    Guarantees:
        - Both costs are rounded to the currency unit.
        - profit == customer_cost - supplier_cost exactly.
    """

    customer_cost: Money
    supplier_cost: Money
    profit: Money


@dataclass(frozen=True)
class ConsumptionCheck:
    """
    Projected usage of a budget if a candidate contract cost is applied.

    ``remaining`` is signed: negative means the budget would be overdrawn
    by that much.
    """

    budget_id: str
    budget_money: Money
    used_before: Money
    projected_used: Money
    remaining: Money
    exceeded: bool


@dataclass(frozen=True)
class ContractRates:
    """Rates to prefill a new contract with."""

    customer_rate: Rate
    supplier_rate: Rate


@dataclass(frozen=True)
class ContractTotals:
    """Summary cards of the Contracts screen."""

    count: int
    total_cost: Money
    customer_cost: Money
    supplier_cost: Money
    profit: Money


# ---------------------------------------------------------------------------
# Allocation
# ---------------------------------------------------------------------------


def _cost_shares(contract: Contract) -> AllocationResult:
    total = require_non_negative(contract.total_cost, "total_cost")
    customer_rate = Rate.of(contract.customer_rate, "customer_rate")
    supplier_rate = Rate.of(contract.supplier_rate, "supplier_rate")

    customer_cost = customer_rate.apply(total).round()
    supplier_cost = supplier_rate.apply(total).round()
    return AllocationResult(
        customer_cost=customer_cost,
        supplier_cost=supplier_cost,
        profit=customer_cost - supplier_cost,
    )


def reportable_contracts(contracts: Iterable[Contract]) -> list[Contract]:
    """
    Contracts whose cost shares can be derived, in input order.

    Backend rows with a rate outside [0, 1] or a negative total_cost are
    left out of display totals and logged as ``contract_invalid_rates``.
    """
    kept = []
    for contract in contracts:
        try:
            _cost_shares(contract)
        except InvalidInputError as exc:
            logger.warning("contract_invalid_rates", extra={
                "contract_id": contract.id,
                "budget_id": contract.budget_id,
                "exc_code": exc.code,
                "detail": str(exc),
            })
            continue
        kept.append(contract)
    return kept


@traced_engine("rate_allocation", "1.0", fingerprint_fields=("budget", "contract"))
def allocate(budget: Budget | BudgetUsage | None, contract: Contract) -> AllocationResult:
    """
    Compute customer cost, supplier cost and profit for ``contract``.

    ``budget`` may be None when only the contract's own figures are
    needed (e.g. rendering a contract row).

    Raises:
        BudgetMismatchError: ``contract.budget_id`` names another budget.
        NegativeAmountError: ``total_cost`` is negative.
        InvalidRateError: a rate is outside [0, 1].
    """
    if budget is not None and contract.budget_id and budget.id != contract.budget_id:
        raise BudgetMismatchError(budget.id, contract.budget_id)

    result = _cost_shares(contract)
    logger.debug("contract_allocated", extra={
        "contract_id": contract.id,
        "budget_id": contract.budget_id,
        "total_cost": str(contract.total_cost.amount),
        "customer_cost": str(result.customer_cost.amount),
        "supplier_cost": str(result.supplier_cost.amount),
        "profit": str(result.profit.amount),
    })
    return result


# ---------------------------------------------------------------------------
# Budget consumption
# ---------------------------------------------------------------------------


def used_budget(
    budget: Budget | BudgetUsage,
    contracts: Iterable[Contract],
    exclude_contract_id: str | None = None,
) -> Money:
    """
    Sum of rounded total_cost over the contracts that draw on ``budget``.

    Contracts referencing other budgets are ignored. The contract named
    by ``exclude_contract_id`` (the one being edited) is left out.
    """
    used = Money.zero(budget.money.currency)
    for contract in contracts:
        if contract.budget_id != budget.id:
            continue
        if exclude_contract_id is not None and contract.id == exclude_contract_id:
            continue
        used = used + require_non_negative(contract.total_cost, "total_cost").round()
    return used


def _project(budget_id: str, cap: Money, used: Money, candidate: Money) -> ConsumptionCheck:
    projected = used + candidate
    return ConsumptionCheck(
        budget_id=budget_id,
        budget_money=cap,
        used_before=used,
        projected_used=projected,
        remaining=cap - projected,
        exceeded=candidate.is_positive and projected > cap,
    )


@traced_engine(
    "rate_allocation", "1.0",
    fingerprint_fields=("budget", "candidate_cost", "editing_contract_id"),
)
def would_exceed(
    budget: Budget | BudgetUsage,
    existing: Sequence[Contract],
    candidate_cost: Money,
    editing_contract_id: str | None = None,
) -> bool:
    """
    Would adding ``candidate_cost`` push the budget past its cap?

    When ``editing_contract_id`` is given, that contract's current
    total_cost is dropped from the usage first, so an edit from X to Y
    yields U - X + Y.

    A zero candidate is always allowed. A budget with money == 0 is
    exceeded by any positive candidate.
    """
    candidate = require_non_negative(candidate_cost, "candidate_cost").round()
    used = used_budget(budget, existing, exclude_contract_id=editing_contract_id)
    check = _project(budget.id, budget.money, used, candidate)
    if check.exceeded:
        logger.info("budget_would_exceed", extra={
            "budget_id": budget.id,
            "budget_money": str(budget.money.amount),
            "used": str(used.amount),
            "candidate": str(candidate.amount),
        })
    return check.exceeded


@traced_engine(
    "rate_allocation", "1.0",
    fingerprint_fields=("usage", "candidate_cost", "previous_cost"),
)
def check_consumption(
    usage: BudgetUsage,
    candidate_cost: Money,
    previous_cost: Money | None = None,
) -> ConsumptionCheck:
    """
    Apply a candidate cost to the backend-reported usage of a budget.

    ``usage.used_budget`` already includes the contract being edited, so
    its ``previous_cost`` is subtracted before the candidate is added.
    Used by the contract form, which only has the budget-contract row and
    not every contract of the budget.
    """
    candidate = require_non_negative(candidate_cost, "candidate_cost").round()
    used = usage.used_budget
    if previous_cost is not None:
        used = used - require_non_negative(previous_cost, "previous_cost").round()
        # Backend usage may lag behind the edited contract
        used = used.max(Money.zero(used.currency))
    return _project(usage.id, usage.budget_money, used, candidate)


# ---------------------------------------------------------------------------
# Form helpers and screen totals
# ---------------------------------------------------------------------------


def default_rates(
    source: Budget | BudgetUsage,
    customer_rate: Decimal | str | int = 0,
    supplier_rate: Decimal | str | int = 0,
) -> ContractRates:
    """
    Rates for a new contract: a zero form rate takes the budget's rate.

    Raises:
        InvalidRateError: any resulting rate is outside [0, 1].
    """
    form_customer = Rate.of(customer_rate, "customer_rate")
    form_supplier = Rate.of(supplier_rate, "supplier_rate")
    return ContractRates(
        customer_rate=(
            Rate.of(source.customer_rate, "customer_rate")
            if form_customer.is_zero else form_customer
        ),
        supplier_rate=(
            Rate.of(source.supplier_rate, "supplier_rate")
            if form_supplier.is_zero else form_supplier
        ),
    )


@traced_engine("rate_allocation", "1.0")
def summarize_contracts(
    contracts: Sequence[Contract],
    currency: str | Currency | None = None,
) -> ContractTotals:
    """
    Totals of cost, customer cost, supplier cost and profit.

    Rows ``reportable_contracts`` rejects count towards nothing.
    """
    if contracts and currency is None:
        currency = contracts[0].total_cost.currency

    counted = reportable_contracts(contracts)
    total = customer = supplier = Money.zero(currency)
    for contract in counted:
        shares = _cost_shares(contract)
        total = total + contract.total_cost
        customer = customer + shares.customer_cost
        supplier = supplier + shares.supplier_cost

    return ContractTotals(
        count=len(counted),
        total_cost=total,
        customer_cost=customer,
        supplier_cost=supplier,
        profit=customer - supplier,
    )
