"""Webhook dispatcher - классификация и маршрутизация уведомлений Green API.

Авторизованный webhook: распознать typeWebhook -> отсеять дубликаты ->
запустить обработчик в фоне. HTTP ответ не ждёт обработчик.
"""

from typing import Any

from pydantic import ValidationError as PydanticValidationError

from relay.core.enums import MessageDirection, WebhookType
from relay.services.dedup_cache import DedupCache
from relay.utils.background import BackgroundTasks
from relay.utils.logging import get_logger
from relay.whatsapp.handlers import MessageHandlers
from relay.whatsapp.schemas import WebhookPayload

logger = get_logger()

MESSAGE_DIRECTIONS = {
    WebhookType.INCOMING_MESSAGE: MessageDirection.INCOMING,
    WebhookType.OUTGOING_MESSAGE: MessageDirection.OUTGOING,
}


class WebhookDispatcher:
    """Маршрутизатор webhook уведомлений.

    Attributes:
        handlers: Обработчики по типу содержимого
        dedup: Кеш обработанных ID сообщений
        background: Runner фоновых задач

    """

    def __init__(self, handlers: MessageHandlers, dedup: DedupCache, background: BackgroundTasks) -> None:
        self.handlers = handlers
        self.dedup = dedup
        self.background = background

    def dispatch(self, body: Any) -> WebhookType | None:
        """Распознать уведомление и запустить обработчик без ожидания.

        Args:
            body: Распарсенное JSON тело webhook

        Returns:
            Распознанный тип или None, если тело не удалось разобрать

        """
        if not isinstance(body, dict):
            logger.warning("Webhook с телом не-объектом проигнорирован", body_type=type(body).__name__)
            return None

        try:
            payload = WebhookPayload.model_validate(body)
        except PydanticValidationError as e:
            logger.warning("Webhook не соответствует формату Green API", errors=e.error_count())
            return None

        webhook_type = payload.webhook_type

        match webhook_type:
            case WebhookType.INCOMING_MESSAGE | WebhookType.OUTGOING_MESSAGE:
                self._dispatch_message(payload, MESSAGE_DIRECTIONS[webhook_type])
            case WebhookType.OUTGOING_MESSAGE_STATUS:
                self.background.spawn(self.handlers.handle_status(payload), name="webhook-status")
            case WebhookType.INCOMING_CALL:
                self.background.spawn(self.handlers.handle_call(payload), name="webhook-call")
            case _:
                logger.info("Неизвестный typeWebhook проигнорирован", type_webhook=payload.type_webhook)

        return webhook_type

    def _dispatch_message(self, payload: WebhookPayload, direction: MessageDirection) -> None:
        unique_id = payload.unique_message_id()

        if unique_id is None:
            logger.warning("Сообщение без idMessage проигнорировано", **payload.summary())
            return

        if not self.dedup.check_and_mark(unique_id):
            logger.info("Дубликат сообщения пропущен", message_id=unique_id, direction=direction.value)
            return

        self.background.spawn(
            self.handlers.handle_message(payload, direction),
            name=f"webhook-{direction.value}-{unique_id}",
        )
