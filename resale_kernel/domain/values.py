"""
Values -- Immutable, self-validating domain value objects.

Responsibility:
    Provides the value types for every money and rate computation in the
    dashboard: Currency, Money and Rate. Backend payloads carry money as
    JSON numbers or numeric strings; they become Money here and nowhere
    else.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by entities, periods and every engine.

Coercion policy:
    ``Money.coerce`` is the single place where malformed monetary input is
    tolerated. Missing, empty, non-numeric, NaN/Infinity and boolean values
    contribute zero instead of raising. Display totals have always behaved
    this way and must keep doing so. ``Money.of`` is the strict
    counterpart and raises ``ValueError``.

Failure modes:
    - ValueError on strict construction with invalid amounts or currencies
    - ValueError when arithmetic or comparison mixes currencies
    - InvalidRateError when a rate falls outside [0, 1]
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from resale_kernel.domain.currency import CurrencyRegistry
from resale_kernel.exceptions import InvalidRateError

_ZERO = Decimal("0")
_ONE = Decimal("1")
_NON_DIGITS = re.compile(r"\D")


def coerce_decimal(value: Any) -> Decimal:
    """
    Leniently convert a backend/operator value into a finite Decimal.

    Postconditions:
        - Always returns a finite Decimal; anything unparseable is zero.

    Accepts ints, floats (via ``str()`` to avoid binary artifacts), Decimals
    and numeric strings. Strings may carry commas or whitespace as
    thousands separators and parentheses for negatives: "(1,234.5)".
    """
    if value is None or isinstance(value, bool):
        return _ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else _ZERO
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        d = Decimal(str(value))
        return d if d.is_finite() else _ZERO
    if isinstance(value, str):
        s = value.strip().replace(",", "").replace(" ", "")
        if not s:
            return _ZERO
        if s.startswith("(") and s.endswith(")"):
            s = "-" + s[1:-1]
        try:
            d = Decimal(s)
        except InvalidOperation:
            return _ZERO
        return d if d.is_finite() else _ZERO
    return _ZERO


@dataclass(frozen=True, slots=True)
class Currency:
    """
    ISO 4217 currency code value object.

    Guarantees:
        - code is uppercase, stripped and known to CurrencyRegistry
    """

    code: str

    def __post_init__(self) -> None:
        normalized = self.code.upper().strip() if self.code else ""
        if not CurrencyRegistry.is_valid(normalized):
            raise ValueError(f"Invalid ISO 4217 currency code: {self.code}")
        object.__setattr__(self, "code", normalized)

    @property
    def decimal_places(self) -> int:
        return CurrencyRegistry.get_decimal_places(self.code)

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"Currency({self.code!r})"


def _as_currency(currency: str | Currency | None) -> Currency:
    if currency is None:
        return Currency(CurrencyRegistry.DEFAULT)
    if isinstance(currency, Currency):
        return currency
    return Currency(currency)


@dataclass(frozen=True, slots=True)
class Money:
    """
    Monetary amount value object.

    Contract:
        Pairs a Decimal amount with its Currency. All contract, budget, bill
        and payment amounts travel as Money.

    Guarantees:
        - Immutable and hashable
        - amount is always a finite Decimal (never float)
        - Arithmetic and comparison refuse to mix currencies

    Non-goals:
        - Does NOT auto-round; callers call ``round()`` at the point where
          an amount becomes a persisted currency value.
    """

    amount: Decimal
    currency: Currency

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            if isinstance(self.amount, (bool, float)) or self.amount is None:
                raise ValueError(f"Invalid amount: {self.amount!r}")
            try:
                object.__setattr__(self, "amount", Decimal(str(self.amount)))
            except (InvalidOperation, ValueError) as e:
                raise ValueError(f"Invalid amount: {self.amount!r}") from e
        if not self.amount.is_finite():
            raise ValueError(f"Invalid amount: {self.amount!r}")

        if isinstance(self.currency, str):
            object.__setattr__(self, "currency", Currency(self.currency))
        elif not isinstance(self.currency, Currency):
            raise TypeError(f"currency must be Currency or str, got {type(self.currency)}")

    @classmethod
    def of(cls, amount: Decimal | str | int, currency: str | Currency | None = None) -> Money:
        """
        Strict factory.

        Raises:
            ValueError: If amount is not a finite number (floats included,
                pass ``str(value)`` instead) or the currency is unknown.
        """
        return cls(amount=amount, currency=_as_currency(currency))

    @classmethod
    def coerce(cls, value: Any, currency: str | Currency | None = None) -> Money:
        """
        Lenient factory: malformed or missing values become zero.

        Accepts an existing Money unchanged (if the currency agrees).
        """
        cur = _as_currency(currency)
        if isinstance(value, Money):
            if value.currency != cur:
                raise ValueError(
                    f"Cannot coerce {value.currency} amount into {cur}"
                )
            return value
        return cls(amount=coerce_decimal(value), currency=cur)

    @classmethod
    def zero(cls, currency: str | Currency | None = None) -> Money:
        return cls(amount=_ZERO, currency=_as_currency(currency))

    @classmethod
    def total(cls, values: Iterable[Money], currency: str | Currency | None = None) -> Money:
        """Sum an iterable of Money; an empty iterable sums to zero."""
        result = cls.zero(currency)
        for value in values:
            result = result + value
        return result

    @property
    def is_zero(self) -> bool:
        return self.amount == _ZERO

    @property
    def is_positive(self) -> bool:
        return self.amount > _ZERO

    @property
    def is_negative(self) -> bool:
        return self.amount < _ZERO

    def round(self, rounding: str = ROUND_HALF_UP) -> Money:
        """Round to the currency's smallest unit (whole dong for VND)."""
        places = self.currency.decimal_places
        quantum = Decimal("1") if places == 0 else Decimal(10) ** -places
        return Money(amount=self.amount.quantize(quantum, rounding=rounding), currency=self.currency)

    def _check_currency(self, other: Money, verb: str) -> None:
        if self.currency != other.currency:
            raise ValueError(
                f"Cannot {verb} Money with different currencies: "
                f"{self.currency} and {other.currency}"
            )

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "add")
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "subtract")
        return Money(amount=self.amount - other.amount, currency=self.currency)

    def __neg__(self) -> Money:
        return Money(amount=-self.amount, currency=self.currency)

    def __abs__(self) -> Money:
        return Money(amount=abs(self.amount), currency=self.currency)

    def __mul__(self, factor: Rate | Decimal | int | str) -> Money:
        """Multiply by a scalar or a Rate. The result is not rounded."""
        if isinstance(factor, Rate):
            factor = factor.value
        elif isinstance(factor, (int, str)) and not isinstance(factor, bool):
            factor = Decimal(str(factor))
        if not isinstance(factor, Decimal):
            return NotImplemented
        return Money(amount=self.amount * factor, currency=self.currency)

    def __rmul__(self, factor: Rate | Decimal | int | str) -> Money:
        return self.__mul__(factor)

    def max(self, other: Money) -> Money:
        return self if self >= other else other

    def __lt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.amount < other.amount

    def __le__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.amount <= other.amount

    def __gt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.amount > other.amount

    def __ge__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.amount >= other.amount

    def __str__(self) -> str:
        return f"{self.amount} {self.currency.code}"

    def __repr__(self) -> str:
        return f"Money({self.amount!r}, {self.currency!r})"


@dataclass(frozen=True, slots=True)
class Rate:
    """
    A fraction in [0, 1] applied to a money amount to derive a cost share.

    0.2 means 20%.
    """

    value: Decimal

    def __post_init__(self) -> None:
        if not isinstance(self.value, Decimal):
            if isinstance(self.value, (bool, float)) or self.value is None:
                raise InvalidRateError("rate", repr(self.value))
            try:
                object.__setattr__(self, "value", Decimal(str(self.value)))
            except (InvalidOperation, ValueError) as e:
                raise InvalidRateError("rate", repr(self.value)) from e
        if not self.value.is_finite() or self.value < _ZERO or self.value > _ONE:
            raise InvalidRateError("rate", str(self.value))

    @classmethod
    def of(cls, value: Decimal | str | int, field: str = "rate") -> Rate:
        """Strict factory; ``field`` names the rate in the error."""
        try:
            return cls(value)
        except InvalidRateError as e:
            raise InvalidRateError(field, e.rate) from None

    @classmethod
    def zero(cls) -> Rate:
        return cls(_ZERO)

    @property
    def is_zero(self) -> bool:
        return self.value == _ZERO

    def apply(self, money: Money) -> Money:
        """Unrounded share of ``money``."""
        return money * self.value

    def __str__(self) -> str:
        return f"{(self.value * 100).normalize():f}%"


def parse_money_input(text: str | None, currency: str | Currency | None = None) -> Money:
    """
    Parse an operator-typed money field.

    Every non-digit is dropped ("1.000.000 d" -> 1000000); an empty
    result is zero. Operator input is never negative or fractional.
    """
    raw = _NON_DIGITS.sub("", text or "")
    if not raw:
        return Money.zero(currency)
    return Money.of(int(raw), currency)
