"""Conversation Store - история диалогов WhatsApp для команды "# ...".

История хранится в памяти процесса по chatId, ограничена по количеству
сообщений и сбрасывается после conversation_ttl_seconds без активности.
Истёкшие диалоги вычищаются при каждом обращении, число чатов ограничено
max_conversations.
"""

import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field

from relay.providers.base import ChatMessage
from relay.utils.logging import get_logger

logger = get_logger()


@dataclass
class _Conversation:
    messages: list[ChatMessage] = field(default_factory=list)
    updated_at: float = 0.0


class ConversationStore:
    """In-memory хранилище multi-turn диалогов.

    Attributes:
        max_messages: Максимум сообщений в истории одного чата
        conversation_ttl: Через сколько секунд неактивный диалог сбрасывается
        max_conversations: Максимум одновременно хранимых чатов

    """

    def __init__(
        self,
        max_messages: int,
        conversation_ttl: float,
        max_conversations: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_messages <= 0 or conversation_ttl <= 0 or max_conversations <= 0:
            msg = "max_messages, conversation_ttl и max_conversations должны быть положительными"
            raise ValueError(msg)

        self.max_messages = max_messages
        self.conversation_ttl = conversation_ttl
        self.max_conversations = max_conversations
        self._clock = clock
        # порядок = порядок последней активности, самые старые в начале
        self._conversations: OrderedDict[str, _Conversation] = OrderedDict()

    def _purge_expired(self) -> None:
        now = self._clock()
        while self._conversations:
            chat_id, conversation = next(iter(self._conversations.items()))
            if now - conversation.updated_at <= self.conversation_ttl:
                break
            self._conversations.popitem(last=False)
            logger.debug("Диалог истёк по TTL", chat_id=chat_id)

    def get_messages(self, chat_id: str) -> list[ChatMessage]:
        """Получить историю чата (копию).

        Args:
            chat_id: ID чата WhatsApp

        Returns:
            Список сообщений от старых к новым

        """
        self._purge_expired()
        conversation = self._conversations.get(chat_id)
        return list(conversation.messages) if conversation else []

    def add_message(self, chat_id: str, role: str, content: str) -> None:
        """Добавить сообщение в историю чата."""
        self._purge_expired()
        conversation = self._conversations.pop(chat_id, None) or _Conversation()

        conversation.messages.append(ChatMessage(role=role, content=content))  # type: ignore[arg-type]
        del conversation.messages[: -self.max_messages]
        conversation.updated_at = self._clock()
        self._conversations[chat_id] = conversation

        while len(self._conversations) > self.max_conversations:
            evicted, _ = self._conversations.popitem(last=False)
            logger.debug("Диалог вытеснен из хранилища", chat_id=evicted)

        logger.debug(
            "Сообщение добавлено",
            chat_id=chat_id,
            role=role,
            message_count=len(conversation.messages),
        )

    def add_turn(self, chat_id: str, user_message: str, assistant_response: str) -> None:
        """Добавить полный turn (user + assistant) после успешной генерации."""
        self.add_message(chat_id, "user", user_message)
        self.add_message(chat_id, "assistant", assistant_response)

    def clear(self, chat_id: str) -> bool:
        """Удалить историю чата.

        Returns:
            True если история существовала

        """
        existed = self._conversations.pop(chat_id, None) is not None
        logger.info("История диалога очищена", chat_id=chat_id, existed=existed)
        return existed

    def __len__(self) -> int:
        self._purge_expired()
        return len(self._conversations)
