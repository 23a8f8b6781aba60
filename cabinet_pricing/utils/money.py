from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from cabinet_pricing.config import Settings


def round_half_away(numerator: int, denominator: int) -> int:
    """Целочисленное деление с округлением половины от нуля."""

    if denominator <= 0:
        raise ValueError("denominator must be positive")

    sign = -1 if numerator < 0 else 1
    quotient, remainder = divmod(abs(numerator), denominator)
    if remainder * 2 >= denominator:
        quotient += 1
    return sign * quotient


def format_amount(price_kopeks: int) -> str:
    sign = "-" if price_kopeks < 0 else ""
    rubles, kopeks = divmod(abs(price_kopeks), 100)

    if kopeks:
        return f"{sign}{rubles}.{kopeks:02d}".rstrip("0").rstrip(".")

    return f"{sign}{rubles}"


@dataclass(frozen=True)
class MoneyFormatter:
    """Formats integer kopeks for display.

    Locale data (currency symbol, amount rendering) is injected so that the
    pricing helpers never reach for global state.
    """

    currency_symbol: str = "₽"
    amount_formatter: Optional[Callable[[int], str]] = None

    @classmethod
    def from_settings(cls, settings: "Settings") -> "MoneyFormatter":
        return cls(currency_symbol=settings.CURRENCY_SYMBOL)

    def format(self, price_kopeks: int) -> str:
        render = self.amount_formatter or format_amount
        amount = render(price_kopeks)
        if not self.currency_symbol:
            return amount
        return f"{amount} {self.currency_symbol}"

    __call__ = format

    def format_delta(self, price_kopeks: int) -> str:
        if price_kopeks > 0:
            return f"+{self.format(price_kopeks)}"
        return self.format(price_kopeks)


def price_per_month(price_kopeks: int, days: int) -> int:
    if days <= 0:
        return price_kopeks
    return round_half_away(price_kopeks * 30, days)
