"""Green API client - отправка сообщений в WhatsApp.

Отвечает ТОЛЬКО за исходящие вызовы Green API (sendMessage, sendFileByUrl).
Без повторов: ошибка отправки пробрасывается как MessagingError,
вызывающий обработчик решает, что с ней делать.
"""

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

import httpx

from relay.config import Settings, settings as default_settings
from relay.shared.errors import MessagingError
from relay.utils.logging import get_logger

logger = get_logger()


@runtime_checkable
class Messenger(Protocol):
    """Контракт отправки сообщений в чат."""

    async def send_message(self, chat_id: str, message: str, quoted_message_id: str | None = None) -> str | None:
        """Отправить текст, вернуть idMessage отправленного сообщения."""
        ...

    async def send_file_by_url(self, chat_id: str, url: str, file_name: str, caption: str = "") -> str | None:
        """Отправить файл по URL, вернуть idMessage."""
        ...


class GreenApiClient:
    """HTTP клиент Green API для одного инстанса.

    Attributes:
        instance_url: {green_api_url}/waInstance{idInstance}
        on_sent: Callback с idMessage каждого отправленного сообщения

    """

    def __init__(
        self,
        id_instance: str | None = None,
        api_token: str | None = None,
        config: Settings | None = None,
        client: httpx.AsyncClient | None = None,
        on_sent: Callable[[str], None] | None = None,
    ) -> None:
        """Инициализировать GreenApiClient.

        Args:
            id_instance: ID инстанса (defaults из settings)
            api_token: apiTokenInstance (defaults из settings)
            config: Настройки приложения
            client: Готовый httpx клиент (для тестов)
            on_sent: Callback, получающий idMessage отправленного сообщения

        """
        config = config or default_settings
        self.id_instance = id_instance or config.green_api_id_instance
        self.api_token = api_token or config.green_api_token_instance
        self.instance_url = f"{config.green_api_url.rstrip('/')}/waInstance{self.id_instance}"
        self.client = client or httpx.AsyncClient(timeout=config.http_timeout_seconds)
        self.on_sent = on_sent

        logger.info(
            "GreenApiClient инициализирован",
            id_instance=self.id_instance,
            configured=self.is_configured,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.id_instance and self.api_token)

    async def send_message(self, chat_id: str, message: str, quoted_message_id: str | None = None) -> str | None:
        """Отправить текстовое сообщение.

        Args:
            chat_id: ID чата (79001234567@c.us или группа @g.us)
            message: Текст сообщения
            quoted_message_id: ID сообщения, на которое отвечаем

        Returns:
            idMessage отправленного сообщения

        Raises:
            MessagingError: Инстанс не настроен или Green API вернул ошибку

        """
        payload: dict[str, Any] = {"chatId": chat_id, "message": message}
        if quoted_message_id:
            payload["quotedMessageId"] = quoted_message_id

        return await self._call("sendMessage", chat_id, payload)

    async def send_file_by_url(self, chat_id: str, url: str, file_name: str, caption: str = "") -> str | None:
        """Отправить файл по публичному URL.

        Raises:
            MessagingError: Инстанс не настроен или Green API вернул ошибку

        """
        payload = {"chatId": chat_id, "urlFile": url, "fileName": file_name, "caption": caption}
        return await self._call("sendFileByUrl", chat_id, payload)

    async def _call(self, method: str, chat_id: str, payload: dict[str, Any]) -> str | None:
        if not self.is_configured:
            raise MessagingError(chat_id, "Green API инстанс не настроен")

        url = f"{self.instance_url}/{method}/{self.api_token}"

        try:
            response = await self.client.post(url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Green API вернул ошибку",
                method=method,
                chat_id=chat_id,
                status_code=e.response.status_code,
                body=e.response.text[:500],
            )
            raise MessagingError(chat_id, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error("Green API недоступен", method=method, chat_id=chat_id, error=str(e))
            raise MessagingError(chat_id, str(e)) from e

        message_id = response.json().get("idMessage")
        logger.info("Сообщение отправлено", method=method, chat_id=chat_id, message_id=message_id)

        if message_id and self.on_sent is not None:
            self.on_sent(message_id)

        return message_id

    async def close(self) -> None:
        """Закрыть HTTP клиент."""
        await self.client.aclose()
