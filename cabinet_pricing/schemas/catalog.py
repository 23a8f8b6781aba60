"""Schemas for catalog data returned by the cabinet API."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CatalogModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class TariffPeriod(CatalogModel):
    days: int = Field(..., ge=1)
    label: Optional[str] = None
    price_kopeks: int = Field(..., ge=0)
    original_price_kopeks: Optional[int] = Field(None, ge=0)
    discount_percent: Optional[int] = None
    price_per_month_kopeks: Optional[int] = Field(None, ge=0)
    base_tariff_price_kopeks: Optional[int] = Field(None, ge=0)
    extra_devices_count: Optional[int] = Field(None, ge=0)
    extra_devices_cost_kopeks: Optional[int] = Field(None, ge=0)

    @property
    def has_catalog_discount(self) -> bool:
        return bool(
            self.original_price_kopeks
            and self.original_price_kopeks > self.price_kopeks
        )


class Tariff(CatalogModel):
    id: int
    name: str
    description: Optional[str] = None
    periods: List[TariffPeriod] = Field(default_factory=list)
    is_current: bool = False
    is_daily: bool = False
    daily_price_kopeks: Optional[int] = Field(None, ge=0)
    price_per_day_kopeks: Optional[int] = Field(None, ge=0)
    device_limit: int = 1
    traffic_limit_gb: int = 0  # 0 = безлимит
    custom_days_enabled: bool = False
    min_days: Optional[int] = None
    max_days: Optional[int] = None
    custom_traffic_enabled: bool = False
    traffic_price_per_gb_kopeks: Optional[int] = Field(None, ge=0)
    min_traffic_gb: Optional[int] = None
    max_traffic_gb: Optional[int] = None
    promo_group_name: Optional[str] = None

    @property
    def effective_daily_price_kopeks(self) -> int:
        if self.daily_price_kopeks is not None:
            return self.daily_price_kopeks
        return self.price_per_day_kopeks or 0

    @property
    def is_daily_tariff(self) -> bool:
        return self.is_daily or bool(self.daily_price_kopeks and self.daily_price_kopeks > 0)

    @property
    def first_period(self) -> Optional[TariffPeriod]:
        return self.periods[0] if self.periods else None

    def get_period(self, days: int) -> Optional[TariffPeriod]:
        for period in self.periods:
            if period.days == days:
                return period
        return None


class TrafficOption(CatalogModel):
    value: Optional[int] = None  # None/0 = безлимит
    label: Optional[str] = None
    price_kopeks: int = Field(0, ge=0)
    original_price_kopeks: Optional[int] = Field(None, ge=0)
    is_available: bool = True


class PeriodTraffic(CatalogModel):
    selectable: bool = False
    options: List[TrafficOption] = Field(default_factory=list)
    current: Optional[int] = None


class ServerOption(CatalogModel):
    uuid: str
    name: str
    price_kopeks: int = Field(0, ge=0)
    original_price_kopeks: Optional[int] = Field(None, ge=0)
    is_available: bool = True


class PeriodServers(CatalogModel):
    options: List[ServerOption] = Field(default_factory=list)
    min: int = 0
    max: int = 0
    selected: List[str] = Field(default_factory=list)


class PeriodDevices(CatalogModel):
    min: int = 1
    max: int = 1
    current: Optional[int] = None
    price_per_device_kopeks: int = Field(0, ge=0)


class PeriodOption(CatalogModel):
    """Period of the classic (non-tariff) purchase wizard."""

    id: str
    days: int = Field(..., ge=1)
    label: Optional[str] = None
    price_kopeks: int = Field(0, ge=0)
    original_price_kopeks: Optional[int] = Field(None, ge=0)
    discount_percent: Optional[int] = None
    traffic: PeriodTraffic = Field(default_factory=PeriodTraffic)
    servers: PeriodServers = Field(default_factory=PeriodServers)
    devices: PeriodDevices = Field(default_factory=PeriodDevices)


class PromoDiscountSnapshot(CatalogModel):
    is_active: bool = False
    discount_percent: Optional[int] = None
    expires_at: Optional[datetime] = None


class TrafficPackage(CatalogModel):
    gb: int = Field(..., ge=0)  # 0 = безлимит
    price_kopeks: int = Field(..., ge=0)
    discount_percent: Optional[int] = None
    base_price_kopeks: Optional[int] = Field(None, ge=0)

    @property
    def is_unlimited(self) -> bool:
        return self.gb == 0


class DevicePriceInfo(CatalogModel):
    available: bool = False
    reason: Optional[str] = None
    current_device_limit: Optional[int] = None
    max_device_limit: Optional[int] = None
    price_per_device_kopeks: Optional[int] = Field(None, ge=0)
    original_price_per_device_kopeks: Optional[int] = Field(None, ge=0)
    total_price_kopeks: Optional[int] = Field(None, ge=0)
    base_total_price_kopeks: Optional[int] = Field(None, ge=0)
    discount_percent: Optional[int] = None
    days_left: Optional[int] = None


class DeviceReductionInfo(CatalogModel):
    available: bool = True
    reason: Optional[str] = None
    current_device_limit: int = Field(..., ge=0)
    min_device_limit: int = Field(1, ge=0)
    connected_devices_count: Optional[int] = None


class CountryOption(CatalogModel):
    uuid: str
    name: str
    price_kopeks: int = Field(0, ge=0)  # уже пропорционально days_left
    base_price_kopeks: Optional[int] = Field(None, ge=0)
    is_available: bool = True
    is_connected: bool = False
    country_code: Optional[str] = None


class ServerCatalog(CatalogModel):
    countries: List[CountryOption] = Field(default_factory=list)
    days_left: int = 0

    def get_country(self, uuid: str) -> Optional[CountryOption]:
        for country in self.countries:
            if country.uuid == uuid:
                return country
        return None

    @property
    def connected_uuids(self) -> List[str]:
        return [country.uuid for country in self.countries if country.is_connected]
