from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union, TYPE_CHECKING

from cabinet_pricing.schemas import PromoDiscountSnapshot
from cabinet_pricing.utils.money import MoneyFormatter, price_per_month, round_half_away

if TYPE_CHECKING:  # pragma: no cover
    from cabinet_pricing.schemas import PeriodOption, TariffPeriod

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NoExistingDiscount:
    kind: str = "none"


@dataclass(frozen=True)
class FlatPercentDiscount:
    percent: int
    kind: str = "flatPercent"


@dataclass(frozen=True)
class OriginalPriceDiscount:
    original_price_kopeks: int
    kind: str = "original"


ExistingDiscount = Union[NoExistingDiscount, FlatPercentDiscount, OriginalPriceDiscount]

NO_EXISTING_DISCOUNT = NoExistingDiscount()


@dataclass(frozen=True)
class PromoDiscountResult:
    price: int
    original: Optional[int] = None
    percent: Optional[int] = None

    @property
    def has_discount(self) -> bool:
        return self.original is not None and self.original > self.price

    @property
    def discount_value(self) -> int:
        if self.original is None:
            return 0
        return self.original - self.price


def clamp_value(value: int, minimum: int, maximum: int) -> int:
    return max(minimum, min(maximum, value))


def is_valid_discount_percent(percent: Optional[int]) -> bool:
    return percent is not None and 0 <= percent <= 100


def resolve_active_promo_percent(promo: Optional[PromoDiscountSnapshot]) -> Optional[int]:
    """Возвращает процент активной промо-скидки или None, если скидка не действует."""

    if promo is None or not promo.is_active or promo.discount_percent is None:
        return None

    if not is_valid_discount_percent(promo.discount_percent):
        logger.warning(
            "PROMO_DISCOUNT_OUT_OF_RANGE | percent=%s | treated as inactive",
            promo.discount_percent,
        )
        return None

    return promo.discount_percent


def catalog_discount_percent(percent: Optional[int]) -> Optional[int]:
    if percent is None:
        return None
    if not is_valid_discount_percent(percent):
        logger.warning(
            "CATALOG_DISCOUNT_OUT_OF_RANGE | percent=%s | badge hidden",
            percent,
        )
        return None
    return percent


def apply_percent(price_kopeks: int, percent: int) -> int:
    if price_kopeks <= 0:
        return 0

    return max(0, round_half_away(price_kopeks * (100 - percent), 100))


def savings_percent(price_kopeks: int, original_kopeks: int) -> int:
    if original_kopeks <= 0:
        return 0
    return round_half_away((original_kopeks - price_kopeks) * 100, original_kopeks)


def reconstruct_original_price(price_kopeks: int, percent: int) -> Optional[int]:
    if price_kopeks <= 0 or not 0 < percent < 100:
        return None
    return round_half_away(price_kopeks * 100, 100 - percent)


def _normalize_existing_original(
    price_kopeks: int,
    existing: ExistingDiscount,
) -> Optional[int]:
    if isinstance(existing, OriginalPriceDiscount):
        original = existing.original_price_kopeks
    elif isinstance(existing, FlatPercentDiscount):
        original = reconstruct_original_price(price_kopeks, existing.percent)
    else:
        original = None

    if original is not None and original > price_kopeks:
        return original
    return None


def apply_promo_discount(
    price_kopeks: int,
    existing: ExistingDiscount = NO_EXISTING_DISCOUNT,
    promo: Optional[PromoDiscountSnapshot] = None,
) -> PromoDiscountResult:
    """Применяет промо-скидку поверх уже существующей скидки каталога.

    Если каталог уже снизил цену, сохраняется исходная цена каталога, а процент
    пересчитывается как суммарная экономия, чтобы не показывать два бейджа.
    """

    promo_percent = resolve_active_promo_percent(promo)
    if promo_percent is None:
        return PromoDiscountResult(price=price_kopeks)

    discounted = apply_percent(price_kopeks, promo_percent)
    existing_original = _normalize_existing_original(price_kopeks, existing)

    if existing_original is not None:
        result = PromoDiscountResult(
            price=discounted,
            original=existing_original,
            percent=savings_percent(discounted, existing_original),
        )
    else:
        result = PromoDiscountResult(
            price=discounted,
            original=price_kopeks,
            percent=promo_percent,
        )

    logger.debug(
        "Применена промо-скидка %s%%: %s → %s (исходная %s, итог %s%%)",
        promo_percent,
        price_kopeks,
        result.price,
        result.original,
        result.percent,
    )
    return result


def existing_discount_for_period(
    period: Union["TariffPeriod", "PeriodOption", None],
) -> ExistingDiscount:
    if period is None:
        return NO_EXISTING_DISCOUNT

    original = period.original_price_kopeks
    if original and original > period.price_kopeks:
        return OriginalPriceDiscount(original)

    percent = period.discount_percent
    if percent and 0 < percent < 100 and original is None:
        return FlatPercentDiscount(percent)

    return NO_EXISTING_DISCOUNT


class PromoDiscountCalculator:
    """Калькулятор, привязанный к одному снимку промо-скидки на время сессии."""

    def __init__(self, promo: Optional[PromoDiscountSnapshot] = None):
        self.promo = promo

    @property
    def active_percent(self) -> Optional[int]:
        return resolve_active_promo_percent(self.promo)

    @property
    def is_active(self) -> bool:
        return self.active_percent is not None

    def apply(
        self,
        price_kopeks: int,
        existing: ExistingDiscount = NO_EXISTING_DISCOUNT,
    ) -> PromoDiscountResult:
        return apply_promo_discount(price_kopeks, existing, self.promo)

    def apply_to_period(self, period: Union["TariffPeriod", "PeriodOption"]) -> PromoDiscountResult:
        return self.apply(period.price_kopeks, existing_discount_for_period(period))


@dataclass(frozen=True)
class PeriodPriceDisplay:
    days: int
    label: str
    price: int
    original: Optional[int]
    discount_percent: Optional[int]
    per_month: int
    from_catalog: bool

    @property
    def has_discount(self) -> bool:
        return self.original is not None and self.original > self.price


def build_period_price_display(
    period: "TariffPeriod",
    calculator: PromoDiscountCalculator,
) -> PeriodPriceDisplay:
    existing = existing_discount_for_period(period)
    from_catalog = isinstance(existing, OriginalPriceDiscount)
    promo = calculator.apply(period.price_kopeks, existing)

    if from_catalog and not calculator.is_active:
        discount_percent = catalog_discount_percent(period.discount_percent)
        original = period.original_price_kopeks
    else:
        discount_percent = promo.percent
        original = promo.original

    if from_catalog and not calculator.is_active and period.price_per_month_kopeks is not None:
        per_month = period.price_per_month_kopeks
    else:
        per_month = price_per_month(promo.price, period.days)

    return PeriodPriceDisplay(
        days=period.days,
        label=period.label or str(period.days),
        price=promo.price,
        original=original,
        discount_percent=discount_percent,
        per_month=per_month,
        from_catalog=from_catalog,
    )


def format_discounted_price(result: PromoDiscountResult, formatter: MoneyFormatter) -> str:
    if result.price == 0:
        return formatter.format(0)
    if result.has_discount:
        return (
            f"{formatter.format(result.original)} ➜ "
            f"{formatter.format(result.price)} (-{result.percent}%)"
        )
    return formatter.format(result.price)
