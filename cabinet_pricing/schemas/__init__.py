from cabinet_pricing.schemas.catalog import (
    CountryOption,
    DevicePriceInfo,
    DeviceReductionInfo,
    PeriodDevices,
    PeriodOption,
    PeriodServers,
    PeriodTraffic,
    PromoDiscountSnapshot,
    ServerCatalog,
    ServerOption,
    Tariff,
    TariffPeriod,
    TrafficOption,
    TrafficPackage,
)
from cabinet_pricing.schemas.subscription import (
    InsufficientBalanceDetail,
    Subscription,
    TariffSwitchPreview,
)

__all__ = [
    "CountryOption",
    "DevicePriceInfo",
    "DeviceReductionInfo",
    "InsufficientBalanceDetail",
    "PeriodDevices",
    "PeriodOption",
    "PeriodServers",
    "PeriodTraffic",
    "PromoDiscountSnapshot",
    "ServerCatalog",
    "ServerOption",
    "Subscription",
    "Tariff",
    "TariffPeriod",
    "TariffSwitchPreview",
    "TrafficOption",
    "TrafficPackage",
]
