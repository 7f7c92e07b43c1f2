"""Currency -- ISO 4217 codes the dashboard deals in and their precision."""

from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class CurrencyInfo:
    """Information about a single ISO 4217 currency."""

    code: str
    decimal_places: int
    name: str


class CurrencyRegistry:
    """Registry of the ISO 4217 currencies the dashboard deals in."""

    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        "VND": CurrencyInfo("VND", 0, "Vietnamese Dong"),
        "USD": CurrencyInfo("USD", 2, "US Dollar"),
        "EUR": CurrencyInfo("EUR", 2, "Euro"),
        "JPY": CurrencyInfo("JPY", 0, "Japanese Yen"),
        "KRW": CurrencyInfo("KRW", 0, "South Korean Won"),
        "THB": CurrencyInfo("THB", 2, "Thai Baht"),
        "SGD": CurrencyInfo("SGD", 2, "Singapore Dollar"),
        "CNY": CurrencyInfo("CNY", 2, "Chinese Yuan"),
    }

    DEFAULT = "VND"

    @classmethod
    def is_valid(cls, code: str) -> bool:
        return code in cls._CURRENCIES

    @classmethod
    def get_decimal_places(cls, code: str) -> int:
        info = cls._CURRENCIES.get(code)
        if info is None:
            raise ValueError(f"Unknown currency: {code}")
        return info.decimal_places
