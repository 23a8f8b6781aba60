import logging

import pytest

from cabinet_pricing.external.cabinet_api import CabinetAPIError
from cabinet_pricing.schemas import Subscription, Tariff, TariffSwitchPreview
from cabinet_pricing.services.tariff_switch_service import (
    SubscriptionState,
    SwitchPreviewSlot,
    TariffAction,
    can_switch,
    evaluate_switch_preview,
    resolve_subscription_state,
    resolve_switch_failure,
    resolve_tariff_action,
)


def expired_error(use_purchase_flow=True):
    return CabinetAPIError(
        "Subscription expired",
        400,
        {"detail": {"error_code": "subscription_expired", "use_purchase_flow": use_purchase_flow}},
    )


def preview(**overrides):
    data = {
        "current_tariff_name": "Базовый",
        "new_tariff_name": "Премиум",
        "remaining_days": 12,
        "upgrade_cost_kopeks": 8000,
        "has_enough_balance": True,
        "missing_amount_kopeks": 0,
        "can_switch": True,
    }
    data.update(overrides)
    return TariffSwitchPreview(**data)


@pytest.mark.parametrize(
    "subscription, expected",
    [
        (None, SubscriptionState.NO_SUBSCRIPTION),
        (Subscription(is_trial=True, is_active=True), SubscriptionState.TRIAL),
        (Subscription(tariff_id=1, is_active=True), SubscriptionState.ACTIVE_WITH_TARIFF),
        (Subscription(tariff_id=None, is_active=True), SubscriptionState.ACTIVE_WITHOUT_TARIFF),
        (Subscription(tariff_id=1, is_active=False, is_expired=True), SubscriptionState.EXPIRED),
    ],
)
def test_subscription_state(subscription, expected):
    assert resolve_subscription_state(subscription) == expected


def test_switch_allowed_only_from_active_tariff(active_subscription):
    assert can_switch(active_subscription, 2)
    assert not can_switch(active_subscription, 1)
    assert not can_switch(None, 2)
    assert not can_switch(active_subscription, None)
    assert not can_switch(Subscription(tariff_id=None, is_active=True), 2)
    assert not can_switch(Subscription(tariff_id=1, is_trial=True, is_active=True), 2)
    assert not can_switch(Subscription(tariff_id=1, is_active=False), 2)


@pytest.mark.parametrize("target", [1, 2, 3])
def test_expired_subscription_never_switches(target):
    expired = Subscription(tariff_id=1, is_active=True, is_expired=True)
    assert not can_switch(expired, target)


def test_tariff_actions(tariffs, active_subscription):
    assert resolve_tariff_action(active_subscription, tariffs[0]) == TariffAction.EXTEND
    assert resolve_tariff_action(active_subscription, tariffs[1]) == TariffAction.SWITCH

    legacy = Subscription(tariff_id=None, is_active=True)
    assert resolve_tariff_action(legacy, tariffs[1]) == TariffAction.SELECT_FOR_RENEWAL

    expired = Subscription(tariff_id=1, is_active=False, is_expired=True)
    assert resolve_tariff_action(expired, tariffs[1]) == TariffAction.PURCHASE
    assert resolve_tariff_action(None, tariffs[1]) == TariffAction.PURCHASE

    current_flag = Tariff(id=5, name="Текущий", is_current=True)
    assert resolve_tariff_action(None, current_flag) == TariffAction.EXTEND


def test_preview_slot_discards_stale_preview():
    slot = SwitchPreviewSlot()
    slot.select(2)
    assert slot.store(2, preview())
    assert slot.confirmable_preview(2) is not None

    slot.select(3)
    assert slot.current() is None
    assert slot.confirmable_preview(2) is None
    assert slot.confirmable_preview(3) is None


def test_preview_slot_rejects_late_response_for_old_target():
    slot = SwitchPreviewSlot()
    slot.select(2)
    slot.select(3)

    assert not slot.store(2, preview())
    assert slot.current() is None

    assert slot.store(3, preview(new_tariff_name="Ультра"))
    assert slot.confirmable_preview(3).new_tariff_name == "Ультра"


def test_preview_slot_reselecting_same_target_keeps_preview():
    slot = SwitchPreviewSlot()
    slot.select(2)
    slot.store(2, preview())
    slot.select(2)
    assert slot.current() is not None

    slot.clear()
    assert slot.target_tariff_id is None
    assert slot.current() is None


def test_evaluate_preview_with_discount():
    summary = evaluate_switch_preview(
        preview(upgrade_cost_kopeks=8000, base_upgrade_cost_kopeks=10000, discount_percent=20)
    )
    assert summary.discount_percent == 20
    assert summary.base_upgrade_cost_kopeks == 10000
    assert summary.can_confirm


def test_evaluate_preview_reports_shortfall_proactively():
    summary = evaluate_switch_preview(
        preview(has_enough_balance=False, missing_amount_kopeks=3000, discount_percent=0)
    )
    assert not summary.has_enough_balance
    assert summary.missing_amount_kopeks == 3000
    assert summary.discount_percent is None
    assert not summary.can_confirm


def test_evaluate_free_preview_for_daily_tariff():
    daily = Tariff(id=4, name="Daily", daily_price_kopeks=1200)
    summary = evaluate_switch_preview(
        preview(upgrade_cost_kopeks=0, has_enough_balance=False, missing_amount_kopeks=100),
        daily,
    )
    assert summary.is_free
    assert summary.has_enough_balance
    assert summary.missing_amount_kopeks == 0
    assert summary.daily_price_kopeks == 1200


def test_expired_rejection_redirects_to_purchase_flow(tariffs, caplog):
    with caplog.at_level(logging.INFO):
        redirect = resolve_switch_failure(expired_error(), 2, tariffs)

    assert redirect is not None
    assert redirect.tariff.id == 2
    assert redirect.period.days == 30


def test_expired_rejection_without_purchase_flow_flag(tariffs):
    assert resolve_switch_failure(expired_error(use_purchase_flow=False), 2, tariffs) is None


def test_expired_rejection_for_unknown_tariff(tariffs):
    assert resolve_switch_failure(expired_error(), 42, tariffs) is None


def test_other_rejections_do_not_redirect(tariffs):
    error = CabinetAPIError("nope", 400, {"detail": {"code": "insufficient_balance"}})
    assert resolve_switch_failure(error, 2, tariffs) is None


def test_redirect_for_tariff_without_periods():
    tariff = Tariff(id=8, name="Empty")
    redirect = resolve_switch_failure(expired_error(), 8, [tariff])
    assert redirect.tariff is tariff
    assert redirect.period is None
