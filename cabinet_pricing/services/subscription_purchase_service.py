from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional

from cabinet_pricing.external.cabinet_api import CabinetAPI, CabinetAPIError
from cabinet_pricing.schemas import (
    DeviceReductionInfo,
    InsufficientBalanceDetail,
    Tariff,
    TariffSwitchPreview,
)
from cabinet_pricing.services.addon_pricing import (
    ServerSelectionSession,
    can_submit_device_reduction,
)
from cabinet_pricing.services.submission_guard import SingleFlightGuard
from cabinet_pricing.services.tariff_purchase_service import TariffPurchaseQuote
from cabinet_pricing.services.tariff_switch_service import (
    PurchaseFlowRedirect,
    SwitchPreviewSlot,
    resolve_switch_failure,
)
from cabinet_pricing.utils.errors import get_error_message, get_insufficient_balance_error

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PurchaseOutcome:
    success: bool
    message: Optional[str] = None
    insufficient_balance: Optional[InsufficientBalanceDetail] = None
    redirect: Optional[PurchaseFlowRedirect] = None
    deduplicated: bool = False
    response: Optional[Dict[str, Any]] = None
    preview: Optional[TariffSwitchPreview] = None

    @classmethod
    def ignored(cls) -> "PurchaseOutcome":
        return cls(success=False, deduplicated=True)


class CabinetPurchaseService:
    """Отправляет выбранные пользователем покупки во внешний сервис исполнения.

    Каждая операция проходит через ``SingleFlightGuard``: пока запрос в полёте,
    повторная отправка игнорируется. Автоматических повторов нет, кроме
    перевода истекшей подписки из смены тарифа в сценарий покупки.
    """

    def __init__(
        self,
        api: CabinetAPI,
        guard: Optional[SingleFlightGuard] = None,
        language: str = "ru",
    ):
        self.api = api
        self.guard = guard or SingleFlightGuard()
        self.language = language

    async def _submit(
        self,
        key: str,
        call: Callable[[], Awaitable[Dict[str, Any]]],
        on_error: Optional[Callable[[CabinetAPIError], Optional[PurchaseOutcome]]] = None,
    ) -> PurchaseOutcome:
        async def operation() -> PurchaseOutcome:
            try:
                response = await call()
            except CabinetAPIError as error:
                if on_error is not None:
                    handled = on_error(error)
                    if handled is not None:
                        return handled

                insufficient = get_insufficient_balance_error(error)
                logger.warning(
                    "Операция %s отклонена: %s (status=%s)",
                    key,
                    error.message,
                    error.status_code,
                )
                return PurchaseOutcome(
                    success=False,
                    message=get_error_message(error, self.language),
                    insufficient_balance=insufficient,
                )

            logger.info("Операция %s выполнена", key)
            return PurchaseOutcome(success=True, response=response)

        submitted, outcome = await self.guard.try_run(key, operation)
        if not submitted:
            return PurchaseOutcome.ignored()
        return outcome

    async def purchase_tariff(self, quote: TariffPurchaseQuote) -> PurchaseOutcome:
        return await self._submit(
            "tariff_purchase",
            lambda: self.api.purchase_tariff(quote.tariff_id, quote.days, quote.traffic_gb),
        )

    async def preview_switch(
        self,
        tariff_id: int,
        preview_slot: SwitchPreviewSlot,
    ) -> PurchaseOutcome:
        """Запрашивает стоимость смены тарифа и сохраняет её только для актуальной цели."""

        preview_slot.select(tariff_id)
        try:
            preview = await self.api.preview_tariff_switch(tariff_id)
        except CabinetAPIError as error:
            logger.warning(
                "Не удалось получить предпросмотр смены на тариф %s: %s (status=%s)",
                tariff_id,
                error.message,
                error.status_code,
            )
            return PurchaseOutcome(success=False, message=get_error_message(error, self.language))

        if not preview_slot.store(tariff_id, preview):
            return PurchaseOutcome.ignored()
        return PurchaseOutcome(success=True, preview=preview)

    async def switch_tariff(
        self,
        tariff_id: int,
        tariffs: Iterable[Tariff],
        preview_slot: Optional[SwitchPreviewSlot] = None,
    ) -> PurchaseOutcome:
        if preview_slot is not None and preview_slot.target_tariff_id != tariff_id:
            logger.warning(
                "Смена на тариф %s отклонена: предпросмотр построен для тарифа %s",
                tariff_id,
                preview_slot.target_tariff_id,
            )
            return PurchaseOutcome(success=False)

        catalog = list(tariffs)

        def on_error(error: CabinetAPIError) -> Optional[PurchaseOutcome]:
            redirect = resolve_switch_failure(error, tariff_id, catalog)
            if redirect is None:
                return None
            if preview_slot is not None:
                preview_slot.clear()
            return PurchaseOutcome(success=False, redirect=redirect)

        outcome = await self._submit(
            "tariff_switch",
            lambda: self.api.switch_tariff(tariff_id),
            on_error=on_error,
        )
        if outcome.success and preview_slot is not None:
            preview_slot.clear()
        return outcome

    async def purchase_traffic(self, gb: int) -> PurchaseOutcome:
        return await self._submit("traffic_topup", lambda: self.api.purchase_traffic(gb))

    async def purchase_devices(self, devices_to_add: int) -> PurchaseOutcome:
        return await self._submit(
            "device_topup",
            lambda: self.api.purchase_devices(max(1, devices_to_add)),
        )

    async def reduce_devices(self, info: DeviceReductionInfo, target: int) -> PurchaseOutcome:
        if not can_submit_device_reduction(info, target):
            logger.warning(
                "Недопустимый лимит устройств %s (текущий %s, минимум %s)",
                target,
                info.current_device_limit,
                info.min_device_limit,
            )
            return PurchaseOutcome(success=False, message=info.reason)

        return await self._submit("device_reduction", lambda: self.api.reduce_devices(target))

    async def update_servers(self, session: ServerSelectionSession) -> PurchaseOutcome:
        summary = session.summarize()
        if not summary.has_changes:
            return PurchaseOutcome(success=True)

        return await self._submit(
            "servers_update",
            lambda: self.api.update_countries(sorted(summary.selected)),
        )
