from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Subscription(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    tariff_id: Optional[int] = None  # None = подписка без тарифа (legacy)
    is_trial: bool = False
    is_daily: bool = False
    end_date: Optional[datetime] = None
    device_limit: int = 1
    traffic_limit_gb: int = 0
    traffic_used_gb: float = 0.0
    is_active: bool = False
    is_expired: bool = False

    @property
    def is_legacy(self) -> bool:
        return not self.is_trial and self.tariff_id is None


class TariffSwitchPreview(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    current_tariff_name: Optional[str] = None
    new_tariff_name: str
    remaining_days: int = 0
    upgrade_cost_kopeks: int = Field(0, ge=0)
    base_upgrade_cost_kopeks: Optional[int] = Field(None, ge=0)
    discount_percent: Optional[int] = None
    has_enough_balance: bool = True
    missing_amount_kopeks: int = Field(0, ge=0)
    can_switch: bool = True


class InsufficientBalanceDetail(BaseModel):
    model_config = ConfigDict(frozen=True)

    required: int = 0
    balance: int = 0
    missing_amount: int = 0
