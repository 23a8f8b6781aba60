import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from cabinet_pricing.schemas import (
    DevicePriceInfo,
    DeviceReductionInfo,
    PeriodOption,
    PromoDiscountSnapshot,
    ServerCatalog,
    Tariff,
    TariffSwitchPreview,
    TrafficPackage,
)

logger = logging.getLogger(__name__)


class CabinetAPIError(Exception):
    def __init__(self, message: str, status_code: int = None, response_data: dict = None):
        self.message = message
        self.status_code = status_code
        self.response_data = response_data
        super().__init__(self.message)

    @property
    def detail(self) -> Any:
        if isinstance(self.response_data, dict):
            return self.response_data.get("detail")
        return None


class CabinetAPI:
    """Клиент REST API кабинета: каталог, цены и исполнение покупок."""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: int = 30,
    ):
        self.base_url = base_url.rstrip('/')
        self.token = token
        self.timeout = timeout
        self.session: Optional[aiohttp.ClientSession] = None

    @classmethod
    def from_settings(cls, settings) -> "CabinetAPI":
        return cls(
            base_url=settings.get_cabinet_base_url(),
            token=settings.CABINET_API_TOKEN,
            timeout=settings.CABINET_API_TIMEOUT,
        )

    def _prepare_headers(self) -> Dict[str, str]:
        headers = {
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        }
        if self.token:
            headers['Authorization'] = f'Bearer {self.token}'
        return headers

    async def __aenter__(self):
        logger.debug(f"Подключение к API кабинета: {self.base_url}")
        self.session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            headers=self._prepare_headers(),
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.session:
            await self.session.close()
            self.session = None

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        data: Optional[Dict] = None,
        params: Optional[Dict] = None
    ) -> Dict:
        if not self.session:
            raise CabinetAPIError("Session not initialized. Use async context manager.")

        url = f"{self.base_url}{endpoint}"

        try:
            kwargs = {
                'url': url,
                'params': params
            }

            if data is not None:
                kwargs['json'] = data

            async with self.session.request(method, **kwargs) as response:
                response_text = await response.text()

                try:
                    response_data = json.loads(response_text) if response_text else {}
                except json.JSONDecodeError:
                    response_data = {'raw_response': response_text}

                if response.status >= 400:
                    detail = response_data.get('detail') if isinstance(response_data, dict) else None
                    if isinstance(detail, str):
                        error_message = detail
                    elif isinstance(detail, dict) and detail.get('message'):
                        error_message = detail['message']
                    else:
                        error_message = f'HTTP {response.status}'
                    logger.error(f"Cabinet API Error {response.status}: {error_message}")
                    logger.debug(f"Response: {response_text[:500]}")
                    raise CabinetAPIError(
                        error_message,
                        response.status,
                        response_data
                    )

                return response_data

        except asyncio.TimeoutError as e:
            logger.error(f"Таймаут запроса к API кабинета {method} {endpoint}")
            raise CabinetAPIError(f"Request timed out: {method} {endpoint}") from e
        except aiohttp.ClientError as e:
            logger.error(f"Request failed: {e}")
            raise CabinetAPIError(f"Request failed: {str(e)}")

    # ---------- каталог ----------

    async def get_purchase_options(self) -> List[PeriodOption]:
        response = await self._make_request('GET', '/subscription/purchase-options')
        return [PeriodOption.model_validate(item) for item in response.get('periods', [])]

    async def get_tariffs(self) -> List[Tariff]:
        response = await self._make_request('GET', '/subscription/tariffs')
        return [Tariff.model_validate(item) for item in response.get('tariffs', [])]

    async def get_promo_discount(self) -> PromoDiscountSnapshot:
        response = await self._make_request('GET', '/promo/active-discount')
        return PromoDiscountSnapshot.model_validate(response or {})

    async def get_traffic_packages(self) -> List[TrafficPackage]:
        response = await self._make_request('GET', '/subscription/traffic-packages')
        items = response if isinstance(response, list) else response.get('packages', [])
        return [TrafficPackage.model_validate(item) for item in items]

    async def get_device_price(self, devices: int) -> DevicePriceInfo:
        response = await self._make_request(
            'GET', '/subscription/devices/price', params={'devices': devices}
        )
        return DevicePriceInfo.model_validate(response)

    async def get_device_reduction_info(self) -> DeviceReductionInfo:
        response = await self._make_request('GET', '/subscription/devices/reduction-info')
        return DeviceReductionInfo.model_validate(response)

    async def get_countries(self) -> ServerCatalog:
        response = await self._make_request('GET', '/subscription/countries')
        return ServerCatalog.model_validate(response)

    async def preview_tariff_switch(self, tariff_id: int) -> TariffSwitchPreview:
        response = await self._make_request(
            'POST', '/subscription/tariff/switch/preview', data={'tariff_id': tariff_id}
        )
        return TariffSwitchPreview.model_validate(response)

    # ---------- исполнение покупок ----------

    async def switch_tariff(self, tariff_id: int) -> Dict:
        return await self._make_request(
            'POST', '/subscription/tariff/switch', data={'tariff_id': tariff_id}
        )

    async def purchase_tariff(
        self,
        tariff_id: int,
        period_days: int,
        traffic_gb: Optional[int] = None,
    ) -> Dict:
        data: Dict[str, Any] = {'tariff_id': tariff_id, 'period_days': period_days}
        if traffic_gb is not None:
            data['traffic_gb'] = traffic_gb
        return await self._make_request('POST', '/subscription/tariff/purchase', data=data)

    async def purchase_traffic(self, gb: int) -> Dict:
        return await self._make_request('POST', '/subscription/traffic', data={'gb': gb})

    async def purchase_devices(self, devices: int) -> Dict:
        return await self._make_request('POST', '/subscription/devices', data={'devices': devices})

    async def reduce_devices(self, new_device_limit: int) -> Dict:
        return await self._make_request(
            'POST', '/subscription/devices/reduce', data={'new_device_limit': new_device_limit}
        )

    async def update_countries(self, countries: List[str]) -> Dict:
        return await self._make_request(
            'POST', '/subscription/countries', data={'countries': countries}
        )
