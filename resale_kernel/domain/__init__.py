"""
Pure domain layer: values, entities, periods, session and validation.

Zero I/O. Everything here is safe to import from engines.
"""

from resale_kernel.domain.entities import (
    AccountType,
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
    UserStatus,
)
from resale_kernel.domain.periods import (
    Granularity,
    Period,
    month_period,
    month_range,
    period_for,
    week_range,
)
from resale_kernel.domain.session import AuthSession
from resale_kernel.domain.values import (
    Currency,
    Money,
    Rate,
    coerce_decimal,
    parse_money_input,
)

__all__ = [
    "AccountType",
    "AuthSession",
    "Bill",
    "BillStatus",
    "Budget",
    "BudgetStatus",
    "BudgetUsage",
    "Contract",
    "Currency",
    "Customer",
    "Granularity",
    "Money",
    "Payment",
    "Period",
    "ProductType",
    "Rate",
    "Supplier",
    "User",
    "UserRole",
    "UserStatus",
    "coerce_decimal",
    "month_period",
    "month_range",
    "parse_money_input",
    "period_for",
    "week_range",
]
