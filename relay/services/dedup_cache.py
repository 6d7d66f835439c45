"""Кеш дедупликации входящих webhook сообщений.

Green API может доставить одно и то же уведомление несколько раз.
Запись живёт ttl_seconds, при превышении max_size вытесняются самые старые.

Методы синхронные: проверка и пометка выполняются без await между ними,
поэтому два webhook с одним ID не могут оба пройти проверку.
"""

import time
from collections import OrderedDict
from collections.abc import Callable

from relay.utils.logging import get_logger

logger = get_logger()


class DedupCache:
    """TTL + size-bounded множество обработанных ID сообщений."""

    def __init__(
        self,
        ttl_seconds: float,
        max_size: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Инициализировать кеш.

        Args:
            ttl_seconds: Время жизни записи
            max_size: Максимальное количество записей
            clock: Источник времени (monotonic, подменяется в тестах)

        """
        if ttl_seconds <= 0 or max_size <= 0:
            msg = "ttl_seconds и max_size должны быть положительными"
            raise ValueError(msg)

        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._clock = clock
        # key -> момент истечения; порядок вставки = порядок истечения
        self._entries: OrderedDict[str, float] = OrderedDict()

    def _purge_expired(self) -> None:
        now = self._clock()
        while self._entries:
            key, expires_at = next(iter(self._entries.items()))
            if expires_at > now:
                break
            self._entries.popitem(last=False)

    def seen(self, key: str) -> bool:
        """Проверить, обрабатывалось ли сообщение в пределах TTL."""
        self._purge_expired()
        return key in self._entries

    def mark(self, key: str) -> None:
        """Пометить сообщение как обработанное."""
        self._entries.pop(key, None)
        self._entries[key] = self._clock() + self.ttl_seconds

        while len(self._entries) > self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Запись вытеснена из кеша дедупликации", message_id=evicted)

    def check_and_mark(self, key: str) -> bool:
        """Пометить сообщение, если оно новое.

        Returns:
            True если сообщение новое и его нужно обработать

        """
        if self.seen(key):
            return False
        self.mark(key)
        return True

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.seen(key)

    def __len__(self) -> int:
        self._purge_expired()
        return len(self._entries)
