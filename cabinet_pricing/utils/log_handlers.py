"""Хэндлеры и настройка логирования.

Модуль предоставляет:
- LevelRangeFileHandler: файл только для диапазона уровней
- PurchaseLogFilter: перехват логов отправки покупок во внешний сервис
- setup_logging: базовая настройка корневого логгера
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List, TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from cabinet_pricing.config import Settings


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class LevelRangeFileHandler(logging.FileHandler):
    """Файловый хэндлер, пропускающий только записи из диапазона уровней.

    Файл открывается лениво, при первой подходящей записи.
    """

    def __init__(
        self,
        filename: str,
        min_level: int,
        max_level: int = logging.CRITICAL,
        encoding: str = "utf-8",
    ):
        Path(filename).parent.mkdir(parents=True, exist_ok=True)
        super().__init__(filename, encoding=encoding, delay=True)
        self.setLevel(min_level)
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.level <= record.levelno <= self.max_level:
            return False
        return bool(super().filter(record))


class PurchaseLogFilter(logging.Filter):
    """Пропускает только записи модулей, отправляющих покупки."""

    PURCHASE_MODULES = (
        "cabinet_pricing.services.subscription_purchase_service",
        "cabinet_pricing.services.submission_guard",
        "cabinet_pricing.external.cabinet_api",
    )

    def filter(self, record: logging.LogRecord) -> bool:
        return any(record.name.startswith(module) for module in self.PURCHASE_MODULES)


def setup_logging(settings: "Settings") -> List[logging.Handler]:
    log_path = Path(settings.LOG_FILE)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT)

    main_handler = logging.FileHandler(log_path, encoding='utf-8')
    stream_handler = logging.StreamHandler(sys.stdout)

    warning_handler = LevelRangeFileHandler(
        str(log_path.with_name("warning.log")),
        min_level=logging.WARNING,
    )

    purchases_handler = logging.FileHandler(log_path.with_name("purchases.log"), encoding='utf-8')
    purchases_handler.addFilter(PurchaseLogFilter())

    handlers: List[logging.Handler] = [main_handler, stream_handler, warning_handler, purchases_handler]
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
    return handlers
