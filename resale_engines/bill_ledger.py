"""
Module: resale_engines.bill_ledger
Responsibility:
    Derive what a customer has paid and still owes on a bill from its
    payments, classify the bill's status, total a list of bills and run
    the cash-on-hand reconciliation shown on the Bills screen.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import resale_kernel.

Invariants enforced:
    - total_paid = sum(payment.amount)
    - debt = max(0, total_money - total_paid)
    - status = completed if debt == 0, else deposit if total_paid > 0,
      else debt
    - summarize is idempotent and independent of payment order.

Failure modes:
    - None for malformed amounts: bill totals read raw backend rows
      through ``Money.coerce`` and a bad field contributes zero.

Usage:
    from resale_engines.bill_ledger import summarize, totals, difference

    summary = summarize(bill, payments)
    check = difference(totals(bills), cash_on_hand)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping, Sequence

from resale_kernel.domain.entities import Bill, BillStatus, Payment
from resale_kernel.domain.values import Currency, Money
from resale_kernel.logging_config import get_logger
from resale_engines.tracer import traced_engine

logger = get_logger("engines.bill_ledger")


@dataclass(frozen=True)
class BillSummary:
    """
    Paid / owed position of one bill.

    Guarantees:
        - debt >= 0 and overpaid >= 0; at most one of them is positive.
        - deposit <= total_paid when no payment amount is negative.
    """

    bill_id: str
    total_money: Money
    total_paid: Money
    debt: Money
    status: BillStatus
    deposit: Money
    overpaid: Money
    payment_count: int

    @property
    def is_settled(self) -> bool:
        return self.status is BillStatus.COMPLETED


@dataclass(frozen=True)
class BillTotals:
    """Straight sums over a list of bills."""

    count: int
    total_money: Money
    total_paid: Money
    total_deposit: Money
    total_debt: Money


class ReconciliationDirection(str, Enum):
    BALANCED = "balanced"
    SHORTFALL = "shortfall"
    SURPLUS = "surplus"


@dataclass(frozen=True)
class ReconciliationCheck:
    """
    debt + cash on hand - deposit.

    A non-zero difference signals a bookkeeping error; it is shown to the
    operator and blocks nothing.
    """

    difference: Money
    direction: ReconciliationDirection

    @property
    def is_balanced(self) -> bool:
        return self.direction is ReconciliationDirection.BALANCED


def classify(total_paid: Money, debt: Money) -> BillStatus:
    """The three operator-visible states."""
    if debt.is_zero:
        return BillStatus.COMPLETED
    if total_paid.is_positive:
        return BillStatus.DEPOSIT
    return BillStatus.DEBT


@traced_engine("bill_ledger", "1.0", fingerprint_fields=("bill", "payments"))
def summarize(bill: Bill, payments: Iterable[Payment]) -> BillSummary:
    """
    Summarize ``payments`` against ``bill``.

    Payments that name a different bill are skipped; payments without a
    bill id are counted (the per-bill endpoint omits it).
    """
    currency = bill.total_money.currency
    total_paid = Money.zero(currency)
    deposit = Money.zero(currency)
    count = 0

    for payment in payments:
        if payment.bill_id and bill.id and payment.bill_id != bill.id:
            logger.warning("payment_bill_mismatch", extra={
                "bill_id": bill.id,
                "payment_id": payment.id,
                "payment_bill_id": payment.bill_id,
            })
            continue
        total_paid = total_paid + payment.amount
        if payment.is_deposit:
            deposit = deposit + payment.amount
        count += 1

    zero = Money.zero(currency)
    debt = (bill.total_money - total_paid).max(zero)
    overpaid = (total_paid - bill.total_money).max(zero)
    status = classify(total_paid, debt)

    logger.debug("bill_summarized", extra={
        "bill_id": bill.id,
        "total_money": str(bill.total_money.amount),
        "total_paid": str(total_paid.amount),
        "debt": str(debt.amount),
        "status": status.value,
        "payment_count": count,
    })

    return BillSummary(
        bill_id=bill.id,
        total_money=bill.total_money,
        total_paid=total_paid,
        debt=debt,
        status=status,
        deposit=deposit,
        overpaid=overpaid,
        payment_count=count,
    )


def _field(row: Bill | Mapping[str, Any], name: str, currency: Currency | str | None) -> Money:
    if isinstance(row, Bill):
        return getattr(row, name)
    return Money.coerce(row.get(name), currency)


@traced_engine("bill_ledger", "1.0")
def totals(
    bills: Sequence[Bill | Mapping[str, Any]],
    currency: str | Currency | None = None,
) -> BillTotals:
    """
    Sum total_money, paid_amount, deposit_amount and debt_amount.

    Accepts decoded Bills or raw backend rows. Missing or non-numeric
    fields in a raw row count as zero.
    """
    if currency is None:
        for row in bills:
            if isinstance(row, Bill):
                currency = row.total_money.currency
                break

    total_money = total_paid = total_deposit = total_debt = Money.zero(currency)
    for row in bills:
        total_money = total_money + _field(row, "total_money", currency)
        total_paid = total_paid + _field(row, "paid_amount", currency)
        total_deposit = total_deposit + _field(row, "deposit_amount", currency)
        total_debt = total_debt + _field(row, "debt_amount", currency)

    return BillTotals(
        count=len(bills),
        total_money=total_money,
        total_paid=total_paid,
        total_deposit=total_deposit,
        total_debt=total_debt,
    )


def difference(bill_totals: BillTotals, cash_on_hand: Money | Any) -> ReconciliationCheck:
    """
    Reconcile bill totals with the cash the operator has on hand.

    ``cash_on_hand`` may be typed input; it is coerced leniently.
    Positive means a shortfall, negative a surplus.
    """
    cash = Money.coerce(cash_on_hand, bill_totals.total_debt.currency)
    diff = bill_totals.total_debt + cash - bill_totals.total_deposit

    if diff.is_positive:
        direction = ReconciliationDirection.SHORTFALL
    elif diff.is_negative:
        direction = ReconciliationDirection.SURPLUS
    else:
        direction = ReconciliationDirection.BALANCED

    if direction is not ReconciliationDirection.BALANCED:
        logger.info("bill_reconciliation_unbalanced", extra={
            "difference": str(diff.amount),
            "direction": direction.value,
        })
    return ReconciliationCheck(difference=diff, direction=direction)
