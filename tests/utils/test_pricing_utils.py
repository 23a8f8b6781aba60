"""Тесты калькулятора промо-скидок и отображения цен периодов."""

import logging

import pytest

from cabinet_pricing.schemas import PromoDiscountSnapshot, TariffPeriod
from cabinet_pricing.utils.money import MoneyFormatter
from cabinet_pricing.utils.pricing_utils import (
    FlatPercentDiscount,
    NoExistingDiscount,
    OriginalPriceDiscount,
    PromoDiscountCalculator,
    PromoDiscountResult,
    apply_promo_discount,
    build_period_price_display,
    clamp_value,
    existing_discount_for_period,
    format_discounted_price,
)


def promo(percent, active=True):
    return PromoDiscountSnapshot(is_active=active, discount_percent=percent)


@pytest.mark.parametrize("price", [0, 1, 99, 1000, 123456])
@pytest.mark.parametrize(
    "snapshot",
    [
        None,
        PromoDiscountSnapshot(is_active=False, discount_percent=20),
        PromoDiscountSnapshot(is_active=True, discount_percent=None),
    ],
)
def test_inactive_promo_is_noop(price, snapshot):
    result = apply_promo_discount(price, OriginalPriceDiscount(price + 500), snapshot)
    assert result == PromoDiscountResult(price=price, original=None, percent=None)


def test_promo_without_existing_discount():
    result = apply_promo_discount(1000, NoExistingDiscount(), promo(10))
    assert result == PromoDiscountResult(price=900, original=1000, percent=10)


def test_promo_on_top_of_catalog_discount_shows_combined_percent():
    result = apply_promo_discount(900, OriginalPriceDiscount(1000), promo(20))
    assert result == PromoDiscountResult(price=720, original=1000, percent=28)


def test_existing_original_not_above_price_is_ignored():
    result = apply_promo_discount(1000, OriginalPriceDiscount(1000), promo(10))
    assert result == PromoDiscountResult(price=900, original=1000, percent=10)


def test_flat_percent_reconstructs_catalog_original():
    result = apply_promo_discount(900, FlatPercentDiscount(10), promo(20))
    assert result.original == 1000
    assert result.price == 720
    assert result.percent == 28


def test_rounding_is_half_away_from_zero():
    # 995 * 0.9 = 895.5
    assert apply_promo_discount(995, promo=promo(10)).price == 896
    # 999 * 0.9 = 899.1
    assert apply_promo_discount(999, promo=promo(10)).price == 899


def test_zero_price_stays_zero():
    result = apply_promo_discount(0, OriginalPriceDiscount(500), promo(30))
    assert result.price == 0
    assert result.original == 500
    assert result.percent == 100


@pytest.mark.parametrize("percent", [-5, 101, 250])
def test_out_of_range_percent_treated_as_inactive(percent, caplog):
    with caplog.at_level(logging.WARNING):
        result = apply_promo_discount(1000, promo=promo(percent))

    assert result == PromoDiscountResult(price=1000)
    assert "PROMO_DISCOUNT_OUT_OF_RANGE" in caplog.text


@pytest.mark.parametrize("price", [1, 2, 7, 49, 100, 999, 1000, 54321])
@pytest.mark.parametrize("percent", [1, 10, 33, 50, 99])
def test_active_discount_never_raises_price(price, percent):
    result = apply_promo_discount(price, promo=promo(percent))
    assert result.price <= price
    if price * percent > 50:
        assert result.price < price
    assert result.price <= price <= result.original


@pytest.mark.parametrize(
    "price, percent, expected",
    [(1, 10, 1), (10, 1, 10), (49, 1, 49), (4, 10, 4), (1, 50, 1), (3, 50, 2), (19900, 15, 16915)],
)
def test_tiny_prices_follow_plain_rounding(price, percent, expected):
    assert apply_promo_discount(price, promo=promo(percent)).price == expected


@pytest.mark.parametrize("price", [0, 1, 15, 999, 19900])
def test_higher_percent_never_increases_price(price):
    prices = [apply_promo_discount(price, promo=promo(percent)).price for percent in range(0, 101)]
    assert prices == sorted(prices, reverse=True)


def test_combined_result_respects_invariant():
    for price in (1, 250, 900, 4999):
        for percent in (1, 15, 60, 100):
            result = apply_promo_discount(price, OriginalPriceDiscount(price * 2), promo(percent))
            assert result.price <= price <= result.original


def test_existing_discount_for_period_variants():
    assert existing_discount_for_period(None) == NoExistingDiscount()
    assert existing_discount_for_period(
        TariffPeriod(days=30, price_kopeks=900, original_price_kopeks=1000)
    ) == OriginalPriceDiscount(1000)
    assert existing_discount_for_period(
        TariffPeriod(days=30, price_kopeks=900, discount_percent=10)
    ) == FlatPercentDiscount(10)
    assert existing_discount_for_period(TariffPeriod(days=30, price_kopeks=900)) == NoExistingDiscount()


def test_calculator_bound_to_snapshot():
    calculator = PromoDiscountCalculator(promo(25))
    assert calculator.is_active
    assert calculator.active_percent == 25
    assert calculator.apply(2000).price == 1500
    assert not PromoDiscountCalculator(None).is_active


def test_period_display_uses_catalog_discount_without_promo():
    period = TariffPeriod(
        days=90,
        label="3 месяца",
        price_kopeks=49900,
        original_price_kopeks=59700,
        discount_percent=16,
        price_per_month_kopeks=16633,
    )

    display = build_period_price_display(period, PromoDiscountCalculator(None))

    assert display.price == 49900
    assert display.original == 59700
    assert display.discount_percent == 16
    assert display.per_month == 16633
    assert display.from_catalog


@pytest.mark.parametrize("percent", [-10, 150])
def test_period_display_hides_out_of_range_catalog_badge(percent, caplog):
    period = TariffPeriod(days=30, price_kopeks=900, original_price_kopeks=1000, discount_percent=percent)

    with caplog.at_level(logging.WARNING):
        display = build_period_price_display(period, PromoDiscountCalculator(None))

    assert display.price == 900
    assert display.original == 1000
    assert display.discount_percent is None
    assert "CATALOG_DISCOUNT_OUT_OF_RANGE" in caplog.text


def test_period_display_combines_catalog_and_promo():
    period = TariffPeriod(days=30, price_kopeks=900, original_price_kopeks=1000, discount_percent=10)

    display = build_period_price_display(period, PromoDiscountCalculator(promo(20)))

    assert display.price == 720
    assert display.original == 1000
    assert display.discount_percent == 28
    assert display.per_month == 720


def test_period_display_without_any_discount():
    period = TariffPeriod(days=60, price_kopeks=2000)

    display = build_period_price_display(period, PromoDiscountCalculator(None))

    assert not display.has_discount
    assert display.discount_percent is None
    assert display.per_month == 1000
    assert display.label == "60"


def test_format_discounted_price():
    formatter = MoneyFormatter("₽")
    assert format_discounted_price(PromoDiscountResult(price=90000, original=100000, percent=10), formatter) == (
        "1000 ₽ ➜ 900 ₽ (-10%)"
    )
    assert format_discounted_price(PromoDiscountResult(price=12345), formatter) == "123.45 ₽"


def test_clamp_value():
    assert clamp_value(5, 1, 10) == 5
    assert clamp_value(-3, 1, 10) == 1
    assert clamp_value(42, 1, 10) == 10
