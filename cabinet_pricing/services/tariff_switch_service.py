from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional

from cabinet_pricing.schemas import Subscription, Tariff, TariffPeriod, TariffSwitchPreview
from cabinet_pricing.utils.errors import is_purchase_flow_redirect

logger = logging.getLogger(__name__)


class SubscriptionState(str, Enum):
    NO_SUBSCRIPTION = "no_subscription"
    TRIAL = "trial"
    ACTIVE_WITH_TARIFF = "active_with_tariff"
    ACTIVE_WITHOUT_TARIFF = "active_without_tariff"
    EXPIRED = "expired"


class TariffAction(str, Enum):
    SWITCH = "switch"
    EXTEND = "extend"
    SELECT_FOR_RENEWAL = "select_for_renewal"
    PURCHASE = "purchase"


def resolve_subscription_state(subscription: Optional[Subscription]) -> SubscriptionState:
    if subscription is None:
        return SubscriptionState.NO_SUBSCRIPTION
    if subscription.is_trial:
        return SubscriptionState.TRIAL
    if subscription.is_expired or not subscription.is_active:
        return SubscriptionState.EXPIRED
    if subscription.tariff_id is None:
        return SubscriptionState.ACTIVE_WITHOUT_TARIFF
    return SubscriptionState.ACTIVE_WITH_TARIFF


def can_switch(subscription: Optional[Subscription], target_tariff_id: Optional[int]) -> bool:
    if subscription is None or subscription.tariff_id is None or target_tariff_id is None:
        return False
    return (
        target_tariff_id != subscription.tariff_id
        and not subscription.is_trial
        and not subscription.is_expired
        and subscription.is_active
    )


def resolve_tariff_action(subscription: Optional[Subscription], tariff: Tariff) -> TariffAction:
    is_current = tariff.is_current or (
        subscription is not None and subscription.tariff_id == tariff.id
    )

    if not is_current and can_switch(subscription, tariff.id):
        return TariffAction.SWITCH
    if is_current:
        return TariffAction.EXTEND
    if subscription is not None and subscription.is_legacy:
        return TariffAction.SELECT_FOR_RENEWAL
    return TariffAction.PURCHASE


class SwitchPreviewSlot:
    """Предпросмотр смены тарифа, привязанный к id целевого тарифа.

    Смена цели сразу сбрасывает предыдущий предпросмотр, а ответы, пришедшие
    для уже неактуального тарифа, не сохраняются.
    """

    def __init__(self) -> None:
        self._target_tariff_id: Optional[int] = None
        self._preview: Optional[TariffSwitchPreview] = None

    @property
    def target_tariff_id(self) -> Optional[int]:
        return self._target_tariff_id

    def select(self, tariff_id: Optional[int]) -> None:
        if tariff_id != self._target_tariff_id:
            self._preview = None
        self._target_tariff_id = tariff_id

    def clear(self) -> None:
        self.select(None)

    def store(self, tariff_id: int, preview: TariffSwitchPreview) -> bool:
        if tariff_id != self._target_tariff_id:
            logger.debug(
                "Отброшен устаревший предпросмотр для тарифа %s (текущая цель %s)",
                tariff_id,
                self._target_tariff_id,
            )
            return False
        self._preview = preview
        return True

    def current(self) -> Optional[TariffSwitchPreview]:
        return self._preview

    def confirmable_preview(self, tariff_id: int) -> Optional[TariffSwitchPreview]:
        if self._preview is None or tariff_id != self._target_tariff_id:
            return None
        return self._preview


@dataclass(frozen=True)
class SwitchPreviewSummary:
    upgrade_cost_kopeks: int
    base_upgrade_cost_kopeks: Optional[int]
    discount_percent: Optional[int]
    is_free: bool
    has_enough_balance: bool
    missing_amount_kopeks: int
    daily_price_kopeks: int
    can_confirm: bool


def evaluate_switch_preview(
    preview: TariffSwitchPreview,
    target_tariff: Optional[Tariff] = None,
) -> SwitchPreviewSummary:
    discount_percent = preview.discount_percent if (preview.discount_percent or 0) > 0 else None

    base_cost = None
    if discount_percent and preview.base_upgrade_cost_kopeks and preview.base_upgrade_cost_kopeks > 0:
        base_cost = preview.base_upgrade_cost_kopeks

    is_free = preview.upgrade_cost_kopeks == 0
    has_enough_balance = preview.has_enough_balance or is_free
    missing = 0 if has_enough_balance else preview.missing_amount_kopeks

    return SwitchPreviewSummary(
        upgrade_cost_kopeks=preview.upgrade_cost_kopeks,
        base_upgrade_cost_kopeks=base_cost,
        discount_percent=discount_percent,
        is_free=is_free,
        has_enough_balance=has_enough_balance,
        missing_amount_kopeks=missing,
        daily_price_kopeks=target_tariff.effective_daily_price_kopeks if target_tariff else 0,
        can_confirm=preview.can_switch and has_enough_balance,
    )


@dataclass(frozen=True)
class PurchaseFlowRedirect:
    tariff: Tariff
    period: Optional[TariffPeriod]


def find_tariff(tariffs: Iterable[Tariff], tariff_id: Optional[int]) -> Optional[Tariff]:
    if tariff_id is None:
        return None
    for tariff in tariffs:
        if tariff.id == tariff_id:
            return tariff
    return None


def resolve_switch_failure(
    error: Any,
    target_tariff_id: Optional[int],
    tariffs: Iterable[Tariff],
) -> Optional[PurchaseFlowRedirect]:
    """Переводит отказ «подписка истекла» в полноценный сценарий покупки."""

    if not is_purchase_flow_redirect(error):
        return None

    tariff = find_tariff(tariffs, target_tariff_id)
    if tariff is None:
        logger.warning(
            "Смена тарифа отклонена (подписка истекла), но тариф %s не найден в каталоге",
            target_tariff_id,
        )
        return None

    logger.info("Подписка истекла, переводим смену на тариф %s в сценарий покупки", tariff.id)
    return PurchaseFlowRedirect(tariff=tariff, period=tariff.first_period)
