"""Pricing of subscription add-ons: traffic packages, servers and devices.

Traffic packages are flat-priced and are never prorated against the days left
in the billing cycle. Server prices arrive from the catalog already prorated
for ``days_left``, so only sums are taken here. Device top-ups are priced by
the catalog; device reduction is bounded by the catalog floor.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Optional

from cabinet_pricing.schemas import (
    CountryOption,
    DevicePriceInfo,
    DeviceReductionInfo,
    ServerCatalog,
    TrafficPackage,
)
from cabinet_pricing.utils.pricing_utils import clamp_value, is_valid_discount_percent

logger = logging.getLogger(__name__)


def _balance_shortfall(price_kopeks: int, balance_kopeks: Optional[int]) -> int:
    if balance_kopeks is None:
        return 0
    return max(0, price_kopeks - balance_kopeks)


@dataclass(frozen=True)
class TrafficTopupQuote:
    gb: int
    price_kopeks: int
    original_price_kopeks: Optional[int]
    discount_percent: Optional[int]
    has_enough_balance: bool
    missing_amount_kopeks: int

    @property
    def is_unlimited(self) -> bool:
        return self.gb == 0


def quote_traffic_package(
    package: TrafficPackage,
    balance_kopeks: Optional[int] = None,
) -> TrafficTopupQuote:
    discount_percent = package.discount_percent
    original = None

    if discount_percent and discount_percent > 0 and is_valid_discount_percent(discount_percent):
        if package.base_price_kopeks and package.base_price_kopeks > package.price_kopeks:
            original = package.base_price_kopeks
    else:
        discount_percent = None

    missing = _balance_shortfall(package.price_kopeks, balance_kopeks)

    return TrafficTopupQuote(
        gb=package.gb,
        price_kopeks=package.price_kopeks,
        original_price_kopeks=original,
        discount_percent=discount_percent,
        has_enough_balance=missing == 0,
        missing_amount_kopeks=missing,
    )


def find_traffic_package(packages: Iterable[TrafficPackage], gb: int) -> Optional[TrafficPackage]:
    for package in packages:
        if package.gb == gb:
            return package
    return None


@dataclass(frozen=True)
class ServerChangeSummary:
    added: FrozenSet[str]
    removed: FrozenSet[str]
    unchanged: FrozenSet[str]
    added_servers: List[CountryOption] = field(default_factory=list)
    removed_servers: List[CountryOption] = field(default_factory=list)
    total_cost_kopeks: int = 0

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed)

    @property
    def selected(self) -> FrozenSet[str]:
        return self.added | self.unchanged


@dataclass(frozen=True)
class ServerSelectionSession:
    """Состояние редактирования серверов в рамках одной открытой панели.

    ``baseline`` фиксируется один раз при открытии и не обновляется до
    закрытия панели, даже если каталог будет перезапрошен.
    """

    catalog: ServerCatalog
    baseline: FrozenSet[str]
    selected: FrozenSet[str]

    @classmethod
    def open(cls, catalog: ServerCatalog) -> "ServerSelectionSession":
        baseline = frozenset(catalog.connected_uuids)
        logger.debug("Открыта сессия управления серверами, подключено: %s", sorted(baseline))
        return cls(catalog=catalog, baseline=baseline, selected=baseline)

    def with_selection(self, uuids: Iterable[str]) -> "ServerSelectionSession":
        return ServerSelectionSession(
            catalog=self.catalog,
            baseline=self.baseline,
            selected=frozenset(uuids),
        )

    def with_catalog(self, catalog: ServerCatalog) -> "ServerSelectionSession":
        return ServerSelectionSession(catalog=catalog, baseline=self.baseline, selected=self.selected)

    def toggle(self, uuid: str) -> "ServerSelectionSession":
        if uuid in self.selected:
            return self.with_selection(self.selected - {uuid})

        country = self.catalog.get_country(uuid)
        if country is not None and not country.is_available and uuid not in self.baseline:
            logger.warning("Попытка выбрать недоступный сервер %s", uuid)
            return self

        return self.with_selection(self.selected | {uuid})

    def summarize(self) -> ServerChangeSummary:
        added = self.selected - self.baseline
        removed = self.baseline - self.selected
        unchanged = self.selected & self.baseline

        added_servers = [country for country in self.catalog.countries if country.uuid in added]
        removed_servers = [country for country in self.catalog.countries if country.uuid in removed]
        total_cost = sum(country.price_kopeks for country in added_servers)

        return ServerChangeSummary(
            added=added,
            removed=removed,
            unchanged=unchanged,
            added_servers=added_servers,
            removed_servers=removed_servers,
            total_cost_kopeks=total_cost,
        )


def server_full_period_price(country: CountryOption, days_left: int) -> Optional[int]:
    """Базовая цена сервера за 30 дней, пересчитанная на оставшиеся дни (для справки)."""

    if country.base_price_kopeks is None or days_left <= 0:
        return None
    return country.base_price_kopeks * days_left // 30


@dataclass(frozen=True)
class DeviceTopupQuote:
    devices_to_add: int
    available: bool
    reason: Optional[str]
    total_price_kopeks: int
    base_total_price_kopeks: Optional[int]
    discount_percent: Optional[int]
    can_add_more: bool
    has_enough_balance: bool
    missing_amount_kopeks: int

    @property
    def is_free(self) -> bool:
        return self.available and self.total_price_kopeks == 0


def quote_device_topup(
    info: DevicePriceInfo,
    devices_to_add: int,
    balance_kopeks: Optional[int] = None,
) -> DeviceTopupQuote:
    devices_to_add = max(1, devices_to_add)

    if not info.available:
        return DeviceTopupQuote(
            devices_to_add=devices_to_add,
            available=False,
            reason=info.reason,
            total_price_kopeks=0,
            base_total_price_kopeks=None,
            discount_percent=None,
            can_add_more=False,
            has_enough_balance=True,
            missing_amount_kopeks=0,
        )

    if info.total_price_kopeks is not None:
        total = info.total_price_kopeks
    else:
        total = (info.price_per_device_kopeks or 0) * devices_to_add

    discount_percent = info.discount_percent if (info.discount_percent or 0) > 0 else None
    base_total = None
    if discount_percent and info.base_total_price_kopeks and info.base_total_price_kopeks > total:
        base_total = info.base_total_price_kopeks

    if info.max_device_limit is not None:
        can_add_more = (info.current_device_limit or 0) + devices_to_add < info.max_device_limit
    else:
        can_add_more = True

    missing = _balance_shortfall(total, balance_kopeks)

    return DeviceTopupQuote(
        devices_to_add=devices_to_add,
        available=True,
        reason=None,
        total_price_kopeks=total,
        base_total_price_kopeks=base_total,
        discount_percent=discount_percent,
        can_add_more=can_add_more,
        has_enough_balance=missing == 0,
        missing_amount_kopeks=missing,
    )


def init_device_reduction_target(info: DeviceReductionInfo) -> int:
    return max(info.min_device_limit, info.current_device_limit - 1)


def step_device_reduction_target(info: DeviceReductionInfo, target: int, delta: int) -> int:
    upper = max(info.min_device_limit, info.current_device_limit - 1)
    return clamp_value(target + delta, info.min_device_limit, upper)


def can_submit_device_reduction(info: DeviceReductionInfo, target: int) -> bool:
    return (
        info.available
        and info.min_device_limit <= target < info.current_device_limit
    )
