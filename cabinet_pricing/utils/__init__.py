from .money import MoneyFormatter, price_per_month, round_half_away
from .pricing_utils import (
    FlatPercentDiscount,
    NoExistingDiscount,
    OriginalPriceDiscount,
    PromoDiscountCalculator,
    PromoDiscountResult,
    apply_promo_discount,
)

__all__ = [
    'MoneyFormatter',
    'price_per_month',
    'round_half_away',
    'FlatPercentDiscount',
    'NoExistingDiscount',
    'OriginalPriceDiscount',
    'PromoDiscountCalculator',
    'PromoDiscountResult',
    'apply_promo_discount',
]
