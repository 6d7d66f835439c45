"""Enums для WhatsApp AI Relay.

Централизованное хранилище всех enum'ов проекта.
"""

from enum import Enum


class TaskStatus(str, Enum):
    """Статус задачи генерации."""

    PENDING = "pending"
    DONE = "done"
    ERROR = "error"


class TaskType(str, Enum):
    """Тип задачи генерации."""

    TEXT_TO_IMAGE = "text-to-image"
    TEXT_TO_VIDEO = "text-to-video"


class ProviderCapability(str, Enum):
    """Что умеет генерировать провайдер."""

    IMAGE = "image"
    VIDEO = "video"
    TEXT = "text"


class ProviderType(str, Enum):
    """Тип AI провайдера."""

    OPENAI = "openai"  # OpenAI API (изображения и чат)
    GEMINI = "gemini"  # Google Gemini REST API
    REPLICATE = "replicate"  # Replicate predictions API


class CommandType(str, Enum):
    """Тип команды из текста сообщения WhatsApp."""

    OPENAI_CHAT = "openai_chat"  # "# вопрос"
    CLEAR_CONVERSATION = "clear_conversation"  # "/clear" или "/reset"
    UNKNOWN = "unknown"


class WebhookType(str, Enum):
    """Тип webhook уведомления Green API."""

    INCOMING_MESSAGE = "incomingMessageReceived"
    OUTGOING_MESSAGE = "outgoingMessageReceived"
    OUTGOING_MESSAGE_STATUS = "outgoingMessageStatus"
    INCOMING_CALL = "incomingCall"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str | None) -> "WebhookType":
        """Распознать typeWebhook, неизвестные значения -> UNKNOWN."""
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class MessageType(str, Enum):
    """Тип сообщения (messageData.typeMessage)."""

    TEXT = "textMessage"
    EXTENDED_TEXT = "extendedTextMessage"
    QUOTED = "quotedMessage"
    EDITED = "editedMessage"
    IMAGE = "imageMessage"
    VIDEO = "videoMessage"
    AUDIO = "audioMessage"
    DOCUMENT = "documentMessage"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str | None) -> "MessageType":
        """Распознать typeMessage, неизвестные значения -> UNKNOWN."""
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class MessageDirection(str, Enum):
    """Направление сообщения относительно инстанса."""

    INCOMING = "incoming"
    OUTGOING = "outgoing"
