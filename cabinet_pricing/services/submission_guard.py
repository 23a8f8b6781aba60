from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Hashable, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SubmissionInProgress(Exception):
    """Поднимается, когда операция с тем же ключом уже выполняется."""

    def __init__(self, key: Hashable):
        self.key = key
        super().__init__(f"Submission {key!r} is already in progress")


class SingleFlightGuard:
    """Не более одного запроса в полёте на каждую логическую операцию.

    Повторная отправка, пока первая не завершилась, отклоняется без обращения
    к внешнему сервису. Повторов после ошибки нет.
    """

    def __init__(self) -> None:
        self._in_flight: Dict[Hashable, asyncio.Task] = {}
        self._lock = asyncio.Lock()

    def is_in_flight(self, key: Hashable) -> bool:
        return key in self._in_flight

    async def _claim(self, key: Hashable) -> bool:
        async with self._lock:
            if key in self._in_flight:
                return False
            task = asyncio.current_task()
            self._in_flight[key] = task
            return True

    async def run(
        self,
        key: Hashable,
        operation: Callable[[], Awaitable[T]],
    ) -> T:
        if not await self._claim(key):
            logger.warning("Повторная отправка операции %s проигнорирована", key)
            raise SubmissionInProgress(key)

        try:
            return await operation()
        finally:
            self._in_flight.pop(key, None)

    async def try_run(
        self,
        key: Hashable,
        operation: Callable[[], Awaitable[T]],
    ) -> Tuple[bool, Optional[T]]:
        try:
            result = await self.run(key, operation)
        except SubmissionInProgress:
            return False, None
        return True, result
