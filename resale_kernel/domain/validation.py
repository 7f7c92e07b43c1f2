"""
Lightweight domain validation helpers.

Pure checks with no I/O, used at the boundary before anything is sent to
the backend.
"""

from __future__ import annotations

import re

from resale_kernel.domain.values import Money
from resale_kernel.exceptions import (
    NegativeAmountError,
    PasswordMismatchError,
    PasswordPolicyError,
)

_PASSWORD_RULE = re.compile(
    r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,20}$"
)


def is_valid_password(password: str) -> bool:
    """8-20 chars of [A-Za-z0-9@$!%*?&] with lower, upper, digit and special."""
    return bool(_PASSWORD_RULE.match(password or ""))


def require_valid_password(password: str, confirmation: str | None = None) -> None:
    """Raise if the confirmation differs or the password fails the policy."""
    if confirmation is not None and password != confirmation:
        raise PasswordMismatchError()
    if not is_valid_password(password):
        raise PasswordPolicyError()


def require_non_negative(value: Money, field: str) -> Money:
    """Return ``value`` or raise NegativeAmountError."""
    if value.is_negative:
        raise NegativeAmountError(field, str(value.amount))
    return value
