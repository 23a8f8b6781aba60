from __future__ import annotations

from typing import Any, Mapping, Optional

from cabinet_pricing.schemas import InsufficientBalanceDetail

INSUFFICIENT_BALANCE_CODES = frozenset({"insufficient_balance", "insufficient_funds"})
SUBSCRIPTION_EXPIRED_CODE = "subscription_expired"

DEFAULT_ERROR_MESSAGES = {
    "ru": "Произошла ошибка. Попробуйте ещё раз.",
    "en": "Something went wrong. Please try again.",
}


def extract_error_detail(error: Any) -> Any:
    """Достаёт поле ``detail`` из ошибки API или из уже разобранного ответа."""

    if isinstance(error, Mapping):
        return error.get("detail", error)
    return getattr(error, "detail", None)


def get_error_message(error: Any, language: str = "ru") -> str:
    detail = extract_error_detail(error)
    if isinstance(detail, str) and detail:
        return detail
    if isinstance(detail, Mapping) and detail.get("message"):
        return str(detail["message"])
    if isinstance(error, Exception) and str(error):
        return str(error)

    language_code = (language or "ru").split("-")[0].lower()
    return DEFAULT_ERROR_MESSAGES.get(language_code, DEFAULT_ERROR_MESSAGES["en"])


def _first_int(detail: Mapping[str, Any], *keys: str) -> int:
    for key in keys:
        value = detail.get(key)
        if value:
            try:
                return int(value)
            except (TypeError, ValueError):
                continue
    return 0


def get_insufficient_balance_error(error: Any) -> Optional[InsufficientBalanceDetail]:
    detail = extract_error_detail(error)
    if not isinstance(detail, Mapping) or detail.get("code") not in INSUFFICIENT_BALANCE_CODES:
        return None

    return InsufficientBalanceDetail(
        required=_first_int(detail, "required", "total_price"),
        balance=_first_int(detail, "balance"),
        missing_amount=_first_int(detail, "missing_amount", "missingAmount"),
    )


def is_purchase_flow_redirect(error: Any) -> bool:
    detail = extract_error_detail(error)
    return (
        isinstance(detail, Mapping)
        and detail.get("error_code") == SUBSCRIPTION_EXPIRED_CODE
        and detail.get("use_purchase_flow") is True
    )
