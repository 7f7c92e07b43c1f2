"""
Entities -- Immutable DTOs for the records the backend owns.

Responsibility:
    Defines Customer, Supplier, AccountType, Budget, BudgetUsage, Contract,
    Bill, Payment and User as frozen dataclasses, together with the
    boundary converters that decode backend JSON (``from_payload``) and
    encode mutation bodies (``to_payload``).

Architecture position:
    Kernel > Domain -- pure, zero I/O. ``from_payload`` is only invoked
    from the service layer; engines receive already-decoded entities.

Decoding policy:
    - Money fields go through ``Money.coerce`` (malformed -> zero).
    - Rate fields go through ``coerce_decimal``; range checks happen in the
      engines, where a bad rate is an input error.
    - Dates accept ``YYYY-MM-DD`` or an ISO timestamp; anything else is
      ``None``.
    - Unknown enum values fall back to the documented default of each
      enum instead of raising.

The client copies are transient and may be stale; the backend is always
authoritative.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, TypeVar

from resale_kernel.domain.values import Money, coerce_decimal


class ProductType(str, Enum):
    """Compliance tag of the advertised product."""

    LEGAL = "legal"
    ILLEGAL = "illegal"
    MIDDLE_ILLEGAL = "middle-illegal"


class BudgetStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class BillStatus(str, Enum):
    """The three operator-visible bill states."""

    DEPOSIT = "deposit"
    DEBT = "debt"
    COMPLETED = "completed"


class UserRole(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


# ---------------------------------------------------------------------------
# Decoding helpers
# ---------------------------------------------------------------------------

E = TypeVar("E", bound=Enum)


def parse_enum(enum_cls: type[E], value: Any, default: E) -> E:
    """Return the enum member for ``value`` or ``default`` when unknown."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        return default


def parse_day(value: Any) -> date | None:
    """Parse ``YYYY-MM-DD`` or an ISO timestamp into a date; else None."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or len(value) < 10:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _id(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


def encode_amount(value: Money | Decimal) -> int | str:
    """Encode a Decimal for JSON without going through float.

    Whole amounts become ints; fractional ones stay exact as strings.
    """
    d = value.amount if isinstance(value, Money) else value
    if d == d.to_integral_value():
        return int(d)
    return str(d)


def _encode_day(value: date | None) -> str | None:
    return value.isoformat() if value else None


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AccountType:
    """Categorical tag applied to budgets and customers."""

    id: str
    name: str
    description: str = ""
    note: str = ""

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> AccountType:
        return cls(
            id=_id(data.get("id")),
            name=_text(data.get("name")),
            description=_text(data.get("description")),
            note=_text(data.get("note")),
        )

    def to_payload(self) -> dict[str, Any]:
        return {"name": self.name, "description": self.description, "note": self.note}


@dataclass(frozen=True)
class Customer:
    """A buyer of budget slices. ``rate`` is the default customer markup."""

    id: str
    name: str
    zalo: str = ""
    facebook: str = ""
    phone_number: str = ""
    address: str = ""
    product_type: ProductType = ProductType.LEGAL
    account_type_id: str = ""
    account_type_name: str = ""
    rate: Decimal = Decimal("0")
    note: str = ""

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> Customer:
        return cls(
            id=_id(data.get("id")),
            name=_text(data.get("name")),
            zalo=_text(data.get("zalo")),
            facebook=_text(data.get("facebook")),
            phone_number=_text(data.get("phone_number")),
            address=_text(data.get("address")),
            product_type=parse_enum(ProductType, data.get("product_type"), ProductType.LEGAL),
            account_type_id=_id(data.get("account_type_id")),
            account_type_name=_text(data.get("account_type_name")),
            rate=coerce_decimal(data.get("rate")),
            note=_text(data.get("note")),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "zalo": self.zalo,
            "facebook": self.facebook,
            "phone_number": self.phone_number,
            "address": self.address,
            "product_type": self.product_type.value,
            "account_type_id": self.account_type_id,
            "rate": str(self.rate),
            "note": self.note,
        }


@dataclass(frozen=True)
class Supplier:
    """A seller of advertising budgets."""

    id: str
    name: str
    zalo: str = ""
    facebook: str = ""
    phone_number: str = ""
    address: str = ""
    note: str = ""

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> Supplier:
        # Older supplier endpoints answer with camelCase phoneNumber
        phone = data.get("phone_number", data.get("phoneNumber"))
        return cls(
            id=_id(data.get("id")),
            name=_text(data.get("name")),
            zalo=_text(data.get("zalo")),
            facebook=_text(data.get("facebook")),
            phone_number=_text(phone),
            address=_text(data.get("address")),
            note=_text(data.get("note")),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "zalo": self.zalo,
            "facebook": self.facebook,
            "phone_number": self.phone_number,
            "address": self.address,
            "note": self.note,
        }


@dataclass(frozen=True)
class Budget:
    """
    An advertising-spend allocation bought from a supplier.

    Invariant (soft): the total_cost of all contracts drawing on the
    budget should not exceed ``money``. Checked advisorily by
    ``resale_engines.rate_allocation.would_exceed``.
    """

    id: str
    supplier_id: str
    money: Money
    account_type_id: str = ""
    account_type_name: str = ""
    supplier_name: str = ""
    product_type: ProductType = ProductType.LEGAL
    supplier_rate: Decimal = Decimal("0")
    customer_rate: Decimal = Decimal("0")
    status: BudgetStatus = BudgetStatus.ACTIVE
    note: str = ""
    date: date | None = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any], currency: str | None = None) -> Budget:
        return cls(
            id=_id(data.get("id")),
            supplier_id=_id(data.get("supplier_id")),
            money=Money.coerce(data.get("money"), currency),
            account_type_id=_id(data.get("account_type_id")),
            account_type_name=_text(data.get("account_type_name")),
            supplier_name=_text(data.get("supplier_name")),
            product_type=parse_enum(ProductType, data.get("product_type"), ProductType.LEGAL),
            supplier_rate=coerce_decimal(data.get("supplier_rate")),
            customer_rate=coerce_decimal(data.get("customer_rate")),
            status=parse_enum(BudgetStatus, data.get("status"), BudgetStatus.ACTIVE),
            note=_text(data.get("note")),
            date=parse_day(data.get("date") or data.get("created_at")),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "supplier_id": self.supplier_id,
            "account_type_id": self.account_type_id,
            "money": encode_amount(self.money),
            "product_type": self.product_type.value,
            "supplier_rate": str(self.supplier_rate),
            "customer_rate": str(self.customer_rate),
            "status": self.status.value,
            "note": self.note,
            "date": _encode_day(self.date),
        }


@dataclass(frozen=True)
class BudgetUsage:
    """
    A budget as reported by the budget-contract endpoint: its cap plus the
    backend's running total of contract spend drawn against it.
    """

    id: str
    budget_money: Money
    used_budget: Money
    customer_rate: Decimal = Decimal("0")
    supplier_rate: Decimal = Decimal("0")
    account_type_name: str = ""
    supplier_name: str = ""

    @classmethod
    def from_payload(cls, data: Mapping[str, Any], currency: str | None = None) -> BudgetUsage:
        return cls(
            id=_id(data.get("id")),
            budget_money=Money.coerce(data.get("budget_money"), currency),
            used_budget=Money.coerce(data.get("used_budget"), currency),
            customer_rate=coerce_decimal(data.get("customer_rate")),
            supplier_rate=coerce_decimal(data.get("supplier_rate")),
            account_type_name=_text(data.get("account_type_name")),
            supplier_name=_text(data.get("supplier_name")),
        )

    @property
    def money(self) -> Money:
        return self.budget_money


@dataclass(frozen=True)
class Contract:
    """
    A sale of a slice of a budget to a customer.

    Rates are copied from the budget at creation time and are editable
    independently afterwards.
    """

    id: str
    customer_id: str
    budget_id: str
    total_cost: Money
    customer_rate: Decimal = Decimal("0")
    supplier_rate: Decimal = Decimal("0")
    customer_actually_paid: Money | None = None
    product: str = ""
    product_type: ProductType = ProductType.LEGAL
    customer_name: str = ""
    supplier_id: str = ""
    supplier_name: str = ""
    account_type_id: str = ""
    account_type_name: str = ""
    note: str = ""
    date: date | None = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any], currency: str | None = None) -> Contract:
        return cls(
            id=_id(data.get("id")),
            customer_id=_id(data.get("customer_id")),
            budget_id=_id(data.get("budget_id")),
            total_cost=Money.coerce(data.get("total_cost"), currency),
            customer_rate=coerce_decimal(data.get("customer_rate")),
            supplier_rate=coerce_decimal(data.get("supplier_rate")),
            customer_actually_paid=Money.coerce(data.get("customer_actually_paid"), currency),
            product=_text(data.get("product")),
            product_type=parse_enum(ProductType, data.get("product_type"), ProductType.LEGAL),
            customer_name=_text(data.get("customer_name")),
            supplier_id=_id(data.get("supplier_id")),
            supplier_name=_text(data.get("supplier_name")),
            account_type_id=_id(data.get("account_type_id")),
            account_type_name=_text(data.get("account_type_name")),
            note=_text(data.get("note")),
            date=parse_day(data.get("date")),
        )

    def to_payload(self) -> dict[str, Any]:
        paid = self.customer_actually_paid or Money.zero(self.total_cost.currency)
        return {
            "date": _encode_day(self.date),
            "customer_id": self.customer_id,
            "budget_id": self.budget_id,
            "product": self.product,
            "product_type": self.product_type.value,
            "total_cost": encode_amount(self.total_cost),
            "customer_rate": str(self.customer_rate),
            "supplier_rate": str(self.supplier_rate),
            "customer_actually_paid": encode_amount(paid),
            "note": self.note,
        }


@dataclass(frozen=True)
class Bill:
    """
    A customer bill.

    Intended: total_money ~= paid_amount + debt_amount, with deposit_amount
    tracked separately as prepaid-but-unconsumed funds.
    """

    id: str
    customer_id: str
    total_money: Money
    paid_amount: Money
    debt_amount: Money
    deposit_amount: Money
    status: BillStatus = BillStatus.DEBT
    customer_name: str = ""
    product: str = ""
    note: str = ""
    date: date | None = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any], currency: str | None = None) -> Bill:
        return cls(
            id=_id(data.get("id")),
            customer_id=_id(data.get("customer_id")),
            total_money=Money.coerce(data.get("total_money"), currency),
            paid_amount=Money.coerce(data.get("paid_amount"), currency),
            debt_amount=Money.coerce(data.get("debt_amount"), currency),
            deposit_amount=Money.coerce(data.get("deposit_amount"), currency),
            status=parse_enum(BillStatus, data.get("status"), BillStatus.DEBT),
            customer_name=_text(data.get("customer_name")),
            product=_text(data.get("product")),
            note=_text(data.get("note")),
            date=parse_day(data.get("date")),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "date": _encode_day(self.date),
            "customer_id": self.customer_id,
            "product": self.product,
            "total_money": encode_amount(self.total_money),
            "paid_amount": encode_amount(self.paid_amount),
            "debt_amount": encode_amount(self.debt_amount),
            "deposit_amount": encode_amount(self.deposit_amount),
            "status": self.status.value,
            "note": self.note,
        }


@dataclass(frozen=True)
class Payment:
    """Money received against a bill (or, per customer, over a date range)."""

    id: str
    amount: Money
    bill_id: str = ""
    customer_id: str = ""
    method: str = ""
    is_deposit: bool = False
    note: str = ""
    date: date | None = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any], currency: str | None = None) -> Payment:
        return cls(
            id=_id(data.get("id")),
            amount=Money.coerce(data.get("amount"), currency),
            bill_id=_id(data.get("bill_id")),
            customer_id=_id(data.get("customer_id")),
            method=_text(data.get("method")),
            is_deposit=_flag(data.get("is_deposit")),
            note=_text(data.get("note")),
            date=parse_day(data.get("date")),
        )

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "date": _encode_day(self.date),
            "amount": encode_amount(self.amount),
            "method": self.method,
            "is_deposit": 1 if self.is_deposit else 0,
            "note": self.note,
        }
        if self.bill_id:
            payload["bill_id"] = self.bill_id
        if self.customer_id:
            payload["customer_id"] = self.customer_id
        return payload


@dataclass(frozen=True)
class User:
    """A dashboard account. ``role`` gates destructive actions."""

    id: str
    name: str
    email: str
    role: UserRole = UserRole.MANAGER
    status: UserStatus = UserStatus.ACTIVE
    created_at: str = ""
    avatar: str | None = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> User:
        return cls(
            id=_id(data.get("id")),
            name=_text(data.get("name")),
            email=_text(data.get("email")),
            role=parse_enum(UserRole, data.get("role"), UserRole.MANAGER),
            status=parse_enum(UserStatus, data.get("status"), UserStatus.ACTIVE),
            created_at=_text(data.get("created_at")),
            avatar=data.get("avatar") or None,
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "status": self.status.value,
            "created_at": self.created_at,
            "avatar": self.avatar,
        }

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN
