"""
Unit tests for entity decoding and encoding.

Backend rows are loosely typed: numbers arrive as strings, enums in odd
case, dates as timestamps. Decoding must never raise on them.
"""

from datetime import date
from decimal import Decimal

from resale_kernel.domain.entities import (
    Bill,
    BillStatus,
    Budget,
    BudgetStatus,
    BudgetUsage,
    Contract,
    Customer,
    Payment,
    ProductType,
    Supplier,
    User,
    UserRole,
    encode_amount,
    parse_day,
)
from resale_kernel.domain.values import Money
from tests.builders import make_contract, make_payment


class TestParseDay:

    def test_iso_date(self):
        assert parse_day("2025-02-10") == date(2025, 2, 10)

    def test_timestamp(self):
        assert parse_day("2025-02-10T08:30:00.000000Z") == date(2025, 2, 10)

    def test_garbage(self):
        assert parse_day("10/02/2025") is None
        assert parse_day("") is None
        assert parse_day(None) is None


class TestContractDecoding:

    def test_lenient_money_and_rates(self):
        c = Contract.from_payload({
            "id": 7,
            "customer_id": 3,
            "budget_id": 2,
            "total_cost": "200000",
            "customer_rate": "0.2",
            "supplier_rate": 0.15,
            "product_type": "Middle-Illegal",
            "date": "2025-02-10",
        })
        assert c.id == "7"
        assert c.budget_id == "2"
        assert c.total_cost == Money.of(200_000)
        assert c.supplier_rate == Decimal("0.15")
        assert c.product_type is ProductType.MIDDLE_ILLEGAL
        assert c.date == date(2025, 2, 10)

    def test_malformed_total_is_zero(self):
        c = Contract.from_payload({"id": 1, "total_cost": "n/a"})
        assert c.total_cost.is_zero
        assert c.product_type is ProductType.LEGAL

    def test_currency_applied(self):
        c = Contract.from_payload({"id": 1, "total_cost": "12.5"}, "USD")
        assert c.total_cost == Money.of("12.5", "USD")

    def test_payload_keeps_amounts_exact(self):
        payload = make_contract(total_cost=200_000).to_payload()
        assert payload["total_cost"] == 200000
        assert payload["customer_rate"] == "0.2"
        assert payload["date"] == "2025-02-10"


class TestOtherEntities:

    def test_bill_unknown_status_defaults_to_debt(self):
        b = Bill.from_payload({"id": 1, "total_money": 500000, "status": "weird"})
        assert b.status is BillStatus.DEBT
        assert b.paid_amount.is_zero

    def test_budget_status_and_created_at(self):
        b = Budget.from_payload({
            "id": 1, "supplier_id": 9, "money": "1000000",
            "status": "INACTIVE", "created_at": "2025-01-05T00:00:00Z",
        })
        assert b.status is BudgetStatus.INACTIVE
        assert b.date == date(2025, 1, 5)

    def test_budget_usage(self):
        u = BudgetUsage.from_payload({"id": 4, "budget_money": "1000000", "used_budget": "700000"})
        assert u.money == Money.of(1_000_000)
        assert u.used_budget == Money.of(700_000)

    def test_supplier_camel_case_phone(self):
        s = Supplier.from_payload({"id": 1, "name": "S", "phoneNumber": "0900"})
        assert s.phone_number == "0900"

    def test_customer_rate(self):
        c = Customer.from_payload({"id": 1, "name": "C", "rate": "0.25"})
        assert c.rate == Decimal("0.25")

    def test_payment_flag_and_payload(self):
        p = Payment.from_payload({"id": 1, "amount": "100000", "is_deposit": "1"})
        assert p.is_deposit
        payload = make_payment(bill_id="").to_payload()
        assert "bill_id" not in payload
        assert payload["is_deposit"] == 0

    def test_user_role(self):
        u = User.from_payload({"id": 1, "name": "A", "email": "a@x", "role": "admin"})
        assert u.is_admin
        assert User.from_payload({"id": 2}).role is UserRole.MANAGER


class TestEncodeAmount:

    def test_whole_is_int(self):
        assert encode_amount(Money.of(1500)) == 1500

    def test_fraction_is_string(self):
        assert encode_amount(Decimal("12.50")) == "12.50"
