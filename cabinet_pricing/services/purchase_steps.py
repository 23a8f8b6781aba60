from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from cabinet_pricing.config import settings
from cabinet_pricing.schemas import PeriodOption, ServerOption, Subscription, Tariff

logger = logging.getLogger(__name__)


class PurchaseStep(str, Enum):
    PERIOD = "period"
    TRAFFIC = "traffic"
    SERVERS = "servers"
    DEVICES = "devices"
    CONFIRM = "confirm"


STEP_LABELS = {
    "ru": {
        PurchaseStep.PERIOD: "Период",
        PurchaseStep.TRAFFIC: "Трафик",
        PurchaseStep.SERVERS: "Серверы",
        PurchaseStep.DEVICES: "Устройства",
        PurchaseStep.CONFIRM: "Подтверждение",
    },
    "en": {
        PurchaseStep.PERIOD: "Period",
        PurchaseStep.TRAFFIC: "Traffic",
        PurchaseStep.SERVERS: "Servers",
        PurchaseStep.DEVICES: "Devices",
        PurchaseStep.CONFIRM: "Confirm",
    },
}


def _is_trial_reserved(name: str, marker: str) -> bool:
    return bool(marker) and marker in (name or "").lower()


def get_available_servers_for_period(
    period: Optional[PeriodOption],
    is_trial_subscription: bool,
    *,
    trial_marker: Optional[str] = None,
) -> List[ServerOption]:
    if period is None or not period.servers.options:
        return []

    marker = (trial_marker if trial_marker is not None else settings.TRIAL_SERVER_MARKER).lower()

    available: List[ServerOption] = []
    for server in period.servers.options:
        if not server.is_available:
            continue
        if is_trial_subscription and _is_trial_reserved(server.name, marker):
            continue
        available.append(server)

    return available


def build_purchase_steps(
    period: Optional[PeriodOption],
    available_servers_count: int,
) -> List[PurchaseStep]:
    steps = [PurchaseStep.PERIOD]

    if period is not None and period.traffic.selectable and len(period.traffic.options) > 0:
        steps.append(PurchaseStep.TRAFFIC)

    if available_servers_count > 1:
        steps.append(PurchaseStep.SERVERS)

    if period is not None and period.devices.max > period.devices.min:
        steps.append(PurchaseStep.DEVICES)

    steps.append(PurchaseStep.CONFIRM)

    logger.debug(
        "Шаги покупки для периода %s: %s",
        period.id if period else None,
        [step.value for step in steps],
    )
    return steps


def get_step_label(step: PurchaseStep, language: Optional[str] = None) -> str:
    language_code = (language or settings.DEFAULT_LANGUAGE or "ru").split("-")[0].lower()
    labels = STEP_LABELS.get(language_code, STEP_LABELS["en"])
    return labels[step]


def next_step(steps: Sequence[PurchaseStep], current: PurchaseStep) -> Optional[PurchaseStep]:
    if current not in steps:
        return steps[0] if steps else None
    index = steps.index(current)
    if index + 1 >= len(steps):
        return None
    return steps[index + 1]


def previous_step(steps: Sequence[PurchaseStep], current: PurchaseStep) -> Optional[PurchaseStep]:
    if current not in steps:
        return None
    index = steps.index(current)
    if index == 0:
        return None
    return steps[index - 1]


def is_current_tariff(tariff: Tariff, subscription: Optional[Subscription]) -> bool:
    return tariff.is_current or (
        subscription is not None
        and subscription.tariff_id is not None
        and tariff.id == subscription.tariff_id
    )


def filter_tariffs_for_subscription(
    tariffs: Iterable[Tariff],
    subscription: Optional[Subscription],
    *,
    trial_marker: Optional[str] = None,
) -> List[Tariff]:
    """Скрывает триальные тарифы от триальных подписчиков, текущий тариф идёт первым."""

    marker = (trial_marker if trial_marker is not None else settings.TRIAL_SERVER_MARKER).lower()
    is_trial = bool(subscription and subscription.is_trial)

    visible = [
        tariff
        for tariff in tariffs
        if not (is_trial and _is_trial_reserved(tariff.name, marker))
    ]
    # sorted() стабилен, поэтому остальные тарифы сохраняют порядок каталога
    return sorted(visible, key=lambda tariff: 0 if is_current_tariff(tariff, subscription) else 1)
