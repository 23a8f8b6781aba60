"""Глобальные фикстуры и настройки окружения для тестов."""

import os
from datetime import datetime, timezone

import pytest

os.environ.setdefault("CABINET_API_URL", "https://cabinet.test/api")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from cabinet_pricing.schemas import (  # noqa: E402
    PeriodDevices,
    PeriodOption,
    PeriodServers,
    PeriodTraffic,
    PromoDiscountSnapshot,
    ServerOption,
    Subscription,
    Tariff,
    TariffPeriod,
    TrafficOption,
)


@pytest.fixture
def fixed_datetime() -> datetime:
    """Возвращает фиксированную отметку времени для воспроизводимых проверок."""
    return datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def inactive_promo() -> PromoDiscountSnapshot:
    return PromoDiscountSnapshot(is_active=False, discount_percent=None)


@pytest.fixture
def make_period():
    def _make(
        *,
        traffic_selectable: bool = False,
        traffic_options: int = 0,
        servers=None,
        devices=(1, 1),
        days: int = 30,
    ) -> PeriodOption:
        return PeriodOption(
            id=f"days:{days}",
            days=days,
            price_kopeks=19900,
            traffic=PeriodTraffic(
                selectable=traffic_selectable,
                options=[
                    TrafficOption(value=(index + 1) * 50, price_kopeks=10000 * (index + 1))
                    for index in range(traffic_options)
                ],
            ),
            servers=PeriodServers(options=list(servers or [])),
            devices=PeriodDevices(min=devices[0], max=devices[1]),
        )

    return _make


@pytest.fixture
def servers_catalog():
    return [
        ServerOption(uuid="nl", name="Netherlands", price_kopeks=5000),
        ServerOption(uuid="de", name="Germany", price_kopeks=5000),
        ServerOption(uuid="trial-fi", name="Finland TRIAL", price_kopeks=0),
        ServerOption(uuid="us", name="USA", price_kopeks=7000, is_available=False),
    ]


@pytest.fixture
def tariffs():
    return [
        Tariff(
            id=1,
            name="Базовый",
            periods=[
                TariffPeriod(days=30, price_kopeks=19900),
                TariffPeriod(days=90, price_kopeks=49900, original_price_kopeks=59700, discount_percent=16),
            ],
        ),
        Tariff(
            id=2,
            name="Премиум",
            periods=[
                TariffPeriod(days=30, price_kopeks=39900),
                TariffPeriod(days=180, price_kopeks=199900),
            ],
        ),
        Tariff(id=3, name="Trial", periods=[TariffPeriod(days=3, price_kopeks=0)]),
    ]


@pytest.fixture
def active_subscription() -> Subscription:
    return Subscription(tariff_id=1, is_active=True, device_limit=3)
