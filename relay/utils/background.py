"""Фоновые задачи fire-and-forget.

HTTP ответ отправляется сразу, работа продолжается в asyncio.Task.
Event loop хранит только слабые ссылки на задачи, поэтому runner держит
сильные ссылки до завершения и логирует любое исключение, вылетевшее из
корутины, вместо "Task exception was never retrieved".
"""

import asyncio
from collections.abc import Coroutine
from typing import Any

from relay.utils.logging import get_logger

logger = get_logger()


class BackgroundTasks:
    """Runner для detached задач со strong references и логированием ошибок."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()
        self._failed = 0

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task[Any]:
        """Запустить корутину в фоне, не дожидаясь результата.

        Args:
            coro: Корутина для выполнения
            name: Имя задачи для логов

        Returns:
            Созданная asyncio.Task

        """
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)

        if task.cancelled():
            logger.warning("Фоновая задача отменена", task_name=task.get_name())
            return

        exc = task.exception()
        if exc is not None:
            self._failed += 1
            logger.opt(exception=exc).error(
                "Фоновая задача завершилась с ошибкой",
                task_name=task.get_name(),
                error=str(exc),
            )

    async def drain(self, timeout: float | None = None) -> bool:
        """Дождаться завершения всех запущенных задач.

        Задачи, запущенные во время ожидания, тоже дожидаются.

        Args:
            timeout: Максимальное время ожидания в секундах (None = без лимита)

        Returns:
            True если все задачи завершились, False при таймауте

        """
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout

        while True:
            running = {task for task in self._tasks if not task.done()}
            if not running:
                break
            remaining = None if deadline is None else deadline - loop.time()
            if remaining is not None and remaining <= 0:
                logger.warning("Не все фоновые задачи завершились", pending=len(running))
                return False
            await asyncio.wait(running, timeout=remaining)

        # done-callback'и выполняются на следующей итерации loop
        await asyncio.sleep(0)
        return True

    @property
    def pending(self) -> int:
        """Количество незавершённых задач."""
        return len(self._tasks)

    @property
    def failed(self) -> int:
        """Количество задач, упавших с исключением."""
        return self._failed
