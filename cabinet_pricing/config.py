import logging
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


logger = logging.getLogger(__name__)


class Settings(BaseSettings):

    CABINET_API_URL: str = "http://localhost:8080/cabinet"
    CABINET_API_TOKEN: Optional[str] = None
    CABINET_API_TIMEOUT: int = 30

    DEFAULT_LANGUAGE: str = "ru"
    AVAILABLE_LANGUAGES: str = "ru,en"
    CURRENCY_SYMBOL: str = "₽"

    # Подстрока в названии сервера, зарезервированного под триал
    TRIAL_SERVER_MARKER: str = "trial"

    DEFAULT_PERIOD_DAYS: int = 30
    CUSTOM_DAYS_MIN: int = 1
    CUSTOM_DAYS_MAX: int = 365
    CUSTOM_TRAFFIC_MIN_GB: int = 1
    CUSTOM_TRAFFIC_MAX_GB: int = 1000

    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/cabinet.log"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore"
    }

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        normalized = (value or "INFO").strip().upper()
        if normalized not in logging.getLevelNamesMapping():
            raise ValueError(f"Некорректный уровень логирования: {value}")
        return normalized

    @field_validator("TRIAL_SERVER_MARKER")
    @classmethod
    def normalize_trial_marker(cls, value: str) -> str:
        return (value or "").strip().lower()

    def get_available_languages(self) -> list[str]:
        return [lang.strip() for lang in self.AVAILABLE_LANGUAGES.split(",") if lang.strip()]

    def get_cabinet_base_url(self) -> str:
        return self.CABINET_API_URL.rstrip("/")

    def get_custom_days_bounds(self) -> tuple[int, int]:
        return self.CUSTOM_DAYS_MIN, self.CUSTOM_DAYS_MAX

    def get_custom_traffic_bounds(self) -> tuple[int, int]:
        return self.CUSTOM_TRAFFIC_MIN_GB, self.CUSTOM_TRAFFIC_MAX_GB

    def format_price(self, price_kopeks: int) -> str:
        from cabinet_pricing.utils.money import MoneyFormatter

        return MoneyFormatter.from_settings(self).format(price_kopeks)


settings = Settings()
