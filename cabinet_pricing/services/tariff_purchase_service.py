from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from cabinet_pricing.config import settings
from cabinet_pricing.schemas import Tariff, TariffPeriod
from cabinet_pricing.utils.pricing_utils import (
    NO_EXISTING_DISCOUNT,
    PromoDiscountCalculator,
    catalog_discount_percent,
    clamp_value,
    existing_discount_for_period,
)

logger = logging.getLogger(__name__)


def _coerce_int(raw: Any, fallback: int) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return fallback


def get_custom_days_bounds(tariff: Tariff) -> tuple[int, int]:
    default_min, default_max = settings.get_custom_days_bounds()
    minimum = tariff.min_days if tariff.min_days is not None else default_min
    maximum = tariff.max_days if tariff.max_days is not None else default_max
    return minimum, max(minimum, maximum)


def get_custom_traffic_bounds(tariff: Tariff) -> tuple[int, int]:
    default_min, default_max = settings.get_custom_traffic_bounds()
    minimum = tariff.min_traffic_gb if tariff.min_traffic_gb is not None else default_min
    maximum = tariff.max_traffic_gb if tariff.max_traffic_gb is not None else default_max
    return minimum, max(minimum, maximum)


def clamp_custom_days(tariff: Tariff, raw_days: Any) -> int:
    minimum, maximum = get_custom_days_bounds(tariff)
    value = _coerce_int(raw_days, minimum) or minimum
    return clamp_value(value, minimum, maximum)


def clamp_custom_traffic(tariff: Tariff, raw_gb: Any) -> int:
    minimum, maximum = get_custom_traffic_bounds(tariff)
    value = _coerce_int(raw_gb, minimum) or minimum
    return clamp_value(value, minimum, maximum)


def resolve_purchase_days(
    tariff: Tariff,
    period: Optional[TariffPeriod],
    *,
    use_custom_days: bool = False,
    custom_days: Any = None,
) -> int:
    if tariff.is_daily_tariff:
        return 1
    if use_custom_days and tariff.custom_days_enabled:
        return clamp_custom_days(tariff, custom_days)
    if period is not None:
        return period.days
    return settings.DEFAULT_PERIOD_DAYS


def resolve_custom_traffic_gb(
    tariff: Tariff,
    *,
    use_custom_traffic: bool = False,
    custom_traffic_gb: Any = None,
) -> Optional[int]:
    if not (use_custom_traffic and tariff.custom_traffic_enabled):
        return None
    return clamp_custom_traffic(tariff, custom_traffic_gb)


@dataclass(frozen=True)
class TariffPurchaseQuote:
    tariff_id: int
    days: int
    traffic_gb: Optional[int]
    period_price_kopeks: int
    period_original_kopeks: Optional[int]
    discount_percent: Optional[int]
    traffic_price_kopeks: int
    total_price_kopeks: int
    original_total_kopeks: Optional[int]
    has_enough_balance: bool
    missing_amount_kopeks: int

    @property
    def has_discount(self) -> bool:
        return (
            self.original_total_kopeks is not None
            and self.original_total_kopeks > self.total_price_kopeks
        )

    def to_request(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "tariff_id": self.tariff_id,
            "period_days": self.days,
        }
        if self.traffic_gb is not None:
            payload["traffic_gb"] = self.traffic_gb
        return payload


def build_tariff_purchase_quote(
    tariff: Tariff,
    period: Optional[TariffPeriod],
    calculator: PromoDiscountCalculator,
    *,
    balance_kopeks: Optional[int] = None,
    use_custom_days: bool = False,
    custom_days: Any = None,
    use_custom_traffic: bool = False,
    custom_traffic_gb: Any = None,
) -> TariffPurchaseQuote:
    """Считает итоговую стоимость покупки тарифа для экрана подтверждения."""

    days = resolve_purchase_days(
        tariff,
        period,
        use_custom_days=use_custom_days,
        custom_days=custom_days,
    )
    traffic_gb = resolve_custom_traffic_gb(
        tariff,
        use_custom_traffic=use_custom_traffic,
        custom_traffic_gb=custom_traffic_gb,
    )

    if tariff.is_daily_tariff:
        base_price = tariff.effective_daily_price_kopeks
        existing = NO_EXISTING_DISCOUNT
    elif use_custom_days and tariff.custom_days_enabled:
        base_price = days * (tariff.price_per_day_kopeks or 0)
        existing = NO_EXISTING_DISCOUNT
    else:
        base_price = period.price_kopeks if period is not None else 0
        existing = existing_discount_for_period(period)

    promo = calculator.apply(base_price, existing)

    if promo.original is None and period is not None and existing is not NO_EXISTING_DISCOUNT:
        # Без промо показываем скидку каталога как есть
        period_original = period.original_price_kopeks
        discount_percent = catalog_discount_percent(period.discount_percent)
    else:
        period_original = promo.original
        discount_percent = promo.percent

    traffic_price = (traffic_gb or 0) * (tariff.traffic_price_per_gb_kopeks or 0)
    total_price = promo.price + traffic_price
    original_total = period_original + traffic_price if period_original is not None else None

    if balance_kopeks is None:
        has_enough_balance = True
        missing_amount = 0
    else:
        missing_amount = max(0, total_price - balance_kopeks)
        has_enough_balance = missing_amount == 0

    logger.debug(
        "Расчет покупки тарифа %s: %s дн., трафик %s ГБ, итого %s (без скидки %s)",
        tariff.id,
        days,
        traffic_gb,
        total_price,
        original_total,
    )

    return TariffPurchaseQuote(
        tariff_id=tariff.id,
        days=days,
        traffic_gb=traffic_gb,
        period_price_kopeks=promo.price,
        period_original_kopeks=period_original,
        discount_percent=discount_percent,
        traffic_price_kopeks=traffic_price,
        total_price_kopeks=total_price,
        original_total_kopeks=original_total,
        has_enough_balance=has_enough_balance,
        missing_amount_kopeks=missing_amount,
    )
