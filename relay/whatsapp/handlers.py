"""Обработчики сообщений WhatsApp по типу содержимого.

Текст (включая ответы на сообщения, правки и подписи к медиа) проходит через
парсер команд. Команда "# ..." уходит в текстовый provider, ответ
отправляется в тот же чат. Остальные типы пока только логируются.

Обработчики выполняются в фоне после ответа 200 на webhook, поэтому ошибки
отсюда не возвращаются Green API, а только логируются.
"""

from dataclasses import dataclass

from relay.core.enums import CommandType, MessageDirection, MessageType
from relay.providers.registry import ProviderRegistry
from relay.services.conversation_store import ConversationStore
from relay.services.green_api import Messenger
from relay.shared.errors import AppException
from relay.utils.logging import get_logger
from relay.whatsapp.commands import Command, parse_command
from relay.whatsapp.schemas import MessageData, SenderData, WebhookPayload

logger = get_logger()


@dataclass(frozen=True)
class IncomingMessage:
    """Сообщение с гарантированно заполненными senderData и messageData."""

    sender: SenderData
    data: MessageData
    id_message: str | None
    direction: MessageDirection

    @property
    def chat_id(self) -> str:
        return self.sender.chat_id


class MessageHandlers:
    """Набор обработчиков для сообщений, статусов и звонков.

    Attributes:
        messenger: Отправка сообщений в WhatsApp
        registry: Реестр AI providers (нужен текстовый)
        conversations: История диалогов по chatId
        ack_message: Подтверждение приёма команды
        error_message: Извинение при ошибке обработки
        cleared_message: Подтверждение очистки истории

    """

    def __init__(
        self,
        messenger: Messenger,
        registry: ProviderRegistry,
        conversations: ConversationStore,
        ack_message: str,
        error_message: str,
        cleared_message: str,
    ) -> None:
        self.messenger = messenger
        self.registry = registry
        self.conversations = conversations
        self.ack_message = ack_message
        self.error_message = error_message
        self.cleared_message = cleared_message

    # =================================================================
    # Сообщения
    # =================================================================

    async def handle_message(self, payload: WebhookPayload, direction: MessageDirection) -> None:
        """Выбрать обработчик по typeMessage."""
        if payload.sender_data is None or payload.message_data is None:
            logger.warning("Сообщение без senderData/messageData", **payload.summary())
            return

        message = IncomingMessage(payload.sender_data, payload.message_data, payload.id_message, direction)

        logger.info(
            "Сообщение получено",
            direction=direction.value,
            chat_id=message.chat_id,
            sender=message.sender.display_name,
            type_message=message.data.type_message,
            id_message=message.id_message,
        )

        match message.data.message_type:
            case MessageType.TEXT | MessageType.EXTENDED_TEXT | MessageType.EDITED:
                await self.handle_text(message)
            case MessageType.QUOTED:
                await self.handle_quoted(message)
            case MessageType.IMAGE:
                await self.handle_image(message)
            case MessageType.VIDEO:
                await self.handle_video(message)
            case MessageType.AUDIO:
                await self.handle_audio(message)
            case MessageType.DOCUMENT:
                await self.handle_document(message)
            case _:
                logger.info("Тип сообщения не обрабатывается", type_message=message.data.type_message)

    async def handle_text(self, message: IncomingMessage) -> None:
        """Текстовое сообщение: распознать и выполнить команду."""
        await self._run_command(message, parse_command(message.data.extract_text()))

    async def handle_quoted(self, message: IncomingMessage) -> None:
        """Ответ на сообщение: текст ответа обрабатывается как обычная команда."""
        quoted = message.data.quoted_message
        if quoted is not None:
            logger.info(
                "Ответ на сообщение",
                chat_id=message.chat_id,
                quoted_id=quoted.stanza_id,
                quoted_type=quoted.type_message,
            )
        await self._run_command(message, parse_command(message.data.extract_text()))

    async def handle_image(self, message: IncomingMessage) -> None:
        """Изображение. Подпись вида "# ..." обрабатывается как команда чата."""
        self._log_file("Изображение", message)
        await self._run_caption_command(message)

    async def handle_video(self, message: IncomingMessage) -> None:
        """Видео. Подпись вида "# ..." обрабатывается как команда чата."""
        self._log_file("Видео", message)
        await self._run_caption_command(message)

    async def handle_audio(self, message: IncomingMessage) -> None:
        """Аудио: пока только логирование метаданных."""
        self._log_file("Аудио", message)

    async def handle_document(self, message: IncomingMessage) -> None:
        """Документ: пока только логирование метаданных."""
        self._log_file("Документ", message)

    async def _run_caption_command(self, message: IncomingMessage) -> None:
        command = parse_command(message.data.extract_text())
        if command.type != CommandType.UNKNOWN:
            await self._run_command(message, command)

    def _log_file(self, kind: str, message: IncomingMessage) -> None:
        file_data = message.data.file_message_data
        logger.info(
            f"{kind}: метаданные",
            direction=message.direction.value,
            chat_id=message.chat_id,
            download_url=file_data.download_url if file_data else None,
            file_name=file_data.file_name if file_data else None,
            caption=file_data.caption if file_data else None,
            mime_type=file_data.mime_type if file_data else None,
        )

    # =================================================================
    # Команды
    # =================================================================

    async def _run_command(self, message: IncomingMessage, command: Command) -> None:
        match command.type:
            case CommandType.OPENAI_CHAT:
                await self.handle_openai_chat(message.chat_id, command.prompt, message.id_message)
            case CommandType.CLEAR_CONVERSATION:
                await self.handle_clear_conversation(message.chat_id, message.id_message)
            case _:
                logger.debug("Команда не распознана", chat_id=message.chat_id, direction=message.direction.value)

    async def handle_openai_chat(self, chat_id: str, prompt: str, message_id: str | None = None) -> None:
        """Команда "# вопрос": подтверждение, ответ модели, запись в историю.

        При любой ошибке пользователь получает извинение, сама ошибка логируется.
        """
        logger.info("Команда openai_chat", chat_id=chat_id, prompt_length=len(prompt))

        try:
            await self.messenger.send_message(chat_id, self.ack_message, message_id)

            provider = self.registry.get_text_provider()
            history = self.conversations.get_messages(chat_id)
            result = await provider.generate_text(prompt, history)

            if result.error or not result.text:
                logger.warning("Текстовый provider вернул ошибку", chat_id=chat_id, error=result.error)
                await self._apologize(chat_id, message_id)
                return

            await self.messenger.send_message(chat_id, result.text, message_id)
            self.conversations.add_turn(chat_id, prompt, result.text)

        except Exception:
            logger.exception("Ошибка обработки openai_chat", chat_id=chat_id)
            await self._apologize(chat_id, message_id)

    async def handle_clear_conversation(self, chat_id: str, message_id: str | None = None) -> None:
        """Команда /clear: сбросить историю диалога и подтвердить."""
        self.conversations.clear(chat_id)
        await self.messenger.send_message(chat_id, self.cleared_message, message_id)

    async def _apologize(self, chat_id: str, message_id: str | None) -> None:
        try:
            await self.messenger.send_message(chat_id, self.error_message, message_id)
        except AppException as e:
            logger.error("Не удалось отправить сообщение об ошибке", chat_id=chat_id, error=str(e))

    # =================================================================
    # Статусы и звонки
    # =================================================================

    async def handle_status(self, payload: WebhookPayload) -> None:
        """Статус исходящего сообщения (sent, delivered, read, failed)."""
        logger.info(
            "Статус сообщения",
            id_message=payload.id_message,
            chat_id=payload.chat_id,
            status=payload.status,
        )

    async def handle_call(self, payload: WebhookPayload) -> None:
        """Входящий звонок."""
        logger.info("Входящий звонок", caller=payload.caller, status=payload.status, id_message=payload.id_message)
