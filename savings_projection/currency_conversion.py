from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Optional

from savings_projection.records import coerce_amount

BASE_CURRENCY = "THB"

DEFAULT_RATES: dict[str, Decimal] = {
    "THB": Decimal("1"),
    "USD": Decimal("0.028"),
    "EUR": Decimal("0.026"),
}

CURRENCY_SYMBOLS: dict[str, str] = {
    "THB": "฿",
    "USD": "$",
    "EUR": "€",
}


class UnsupportedCurrencyError(ValueError):
    """Raised when a currency outside the configured rate table is used."""


def normalize_currency(value: str) -> str:
    normalized = value.strip().upper()
    if len(normalized) != 3 or not normalized.isalpha():
        raise UnsupportedCurrencyError("Currency must be a 3-letter ISO 4217 code.")
    return normalized


@dataclass(frozen=True)
class StaticRateProvider:
    """Fixed exchange rates.

    Rates are expressed as target currency per 1 unit of the base currency.
    """

    rates: Optional[Mapping[str, Decimal]] = None
    base_currency: str = BASE_CURRENCY

    def __post_init__(self) -> None:
        rates = {
            normalize_currency(code): coerce_amount(rate)
            for code, rate in (self.rates or DEFAULT_RATES).items()
        }
        base = normalize_currency(self.base_currency)
        if rates.get(base) != Decimal("1"):
            raise ValueError(f"Base currency {base} must have a rate of 1.")
        object.__setattr__(self, "rates", rates)
        object.__setattr__(self, "base_currency", base)

    def get_rate(self, currency: str) -> Decimal:
        normalized = normalize_currency(currency)
        try:
            return self.rates[normalized]
        except KeyError as exc:
            raise UnsupportedCurrencyError(f"Unsupported currency: {normalized}") from exc

    @property
    def currencies(self) -> list[str]:
        return sorted(self.rates)


DEFAULT_PROVIDER = StaticRateProvider()


def convert_amount(
    amount: Decimal | int | float | str,
    source_currency: str,
    target_currency: str,
    rate_provider: StaticRateProvider | None = None,
) -> Decimal:
    """Convert an amount between currencies by pivoting through the base currency."""
    provider = rate_provider or DEFAULT_PROVIDER
    normalized_source = normalize_currency(source_currency)
    normalized_target = normalize_currency(target_currency)
    coerced_amount = coerce_amount(amount)

    if normalized_source == normalized_target:
        provider.get_rate(normalized_source)
        return coerced_amount

    if normalized_source == provider.base_currency:
        amount_in_base = coerced_amount
    else:
        amount_in_base = coerced_amount / provider.get_rate(normalized_source)

    if normalized_target == provider.base_currency:
        return amount_in_base
    return amount_in_base * provider.get_rate(normalized_target)


def format_amount(amount: Decimal | int | float | str, currency: str = BASE_CURRENCY) -> str:
    normalized = normalize_currency(currency)
    symbol = CURRENCY_SYMBOLS.get(normalized, f"{normalized} ")
    # Baht is shown without minor units.
    places = Decimal("1") if normalized == "THB" else Decimal("0.01")
    rounded = coerce_amount(amount).quantize(places, rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    return f"{sign}{symbol}{abs(rounded):,}"
