"""
Backend endpoint catalogue.

Paths are relative to ``ApiSettings.base_url``. CRUD resources share one
shape: ``GET path`` lists, ``POST path`` creates, ``PUT path/{id}``
updates and ``DELETE path/{id}`` deletes.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from resale_kernel.domain.entities import (
    AccountType,
    Bill,
    Budget,
    Contract,
    Customer,
    Payment,
    Supplier,
)

# Auth and accounts
LOGIN = "login"
LIST_USER = "getListUser"
REGISTER = "register"
RESET_PASSWORD = "reset-password"
FORGOT_PASSWORD = "forgot-password"
CHANGE_PASSWORD = "change-password"
CHECK_PASSWORD = "check-password"
UPDATE_USER = "update-user"
SEND_VERIFY_EMAIL = "send-verify-email"

# Filtered / derived lists
BUDGETS_BY_SUPPLIER = "budgets-by-supplier"
BUDGET_CONTRACT = "budget-contract"
CONTRACTS_FILTERED = "contracts/filtered"
BILLS_FILTERED = "bills/filter"
PAYMENTS_BY_CUSTOMER = "payments-by-customer"
PAYMENTS_BY_BILL = "payments-by-bill"

# Reports
OVERVIEW_CUSTOMER = "overview/customer"
OVERVIEW_SUPPLIER = "overview/supplier"
DASHBOARD = "dashboard"


@dataclass(frozen=True)
class Resource:
    """
    A CRUD resource of the backend.

    ``name`` doubles as the access-control resource. ``money`` tells the
    decoder whether the entity carries money and takes a currency.
    """

    name: str
    path: str
    entity: type
    money: bool = False

    def item(self, record_id: str | int) -> str:
        return f"{self.path}/{record_id}"

    def decode(self, data: Mapping[str, Any], currency: str | None = None) -> Any:
        decoder: Callable[..., Any] = self.entity.from_payload
        if self.money:
            return decoder(data, currency)
        return decoder(data)


ACCOUNT_TYPES = Resource("account_types", "account-type", AccountType)
CUSTOMERS = Resource("customers", "customer", Customer)
SUPPLIERS = Resource("suppliers", "supplier", Supplier)
BUDGETS = Resource("budgets", "budgets", Budget, money=True)
CONTRACTS = Resource("contracts", "contracts", Contract, money=True)
# The backend routes bills under "bils"
BILLS = Resource("bills", "bils", Bill, money=True)
PAYMENTS = Resource("payments", "payments", Payment, money=True)

ALL_RESOURCES: tuple[Resource, ...] = (
    ACCOUNT_TYPES,
    CUSTOMERS,
    SUPPLIERS,
    BUDGETS,
    CONTRACTS,
    BILLS,
    PAYMENTS,
)
