"""Pydantic схемы webhook уведомлений Green API.

Поля в camelCase приходят от Green API, в коде используются snake_case
через alias. Неизвестные поля сохраняются (extra="allow"): Green API
добавляет их без предупреждения.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from relay.core.constants import EDITED_MESSAGE_SUFFIX
from relay.core.enums import MessageType, WebhookType


class GreenApiModel(BaseModel):
    """Базовая модель с alias-ами Green API."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class SenderData(GreenApiModel):
    """Отправитель и чат."""

    chat_id: str = Field(..., alias="chatId", description="ID чата (@c.us или @g.us)")
    sender: str | None = Field(default=None, description="ID отправителя")
    sender_name: str | None = Field(default=None, alias="senderName")
    sender_contact_name: str | None = Field(default=None, alias="senderContactName")
    chat_name: str | None = Field(default=None, alias="chatName")

    @property
    def display_name(self) -> str:
        return self.sender_name or self.sender_contact_name or self.sender or self.chat_id


class TextMessageData(GreenApiModel):
    text_message: str | None = Field(default=None, alias="textMessage")


class ExtendedTextMessageData(GreenApiModel):
    text: str | None = None
    description: str | None = None
    title: str | None = None
    stanza_id: str | None = Field(default=None, alias="stanzaId")
    participant: str | None = None


class FileMessageData(GreenApiModel):
    """Медиа вложение (изображение, видео, аудио, документ)."""

    download_url: str | None = Field(default=None, alias="downloadUrl")
    caption: str | None = None
    file_name: str | None = Field(default=None, alias="fileName")
    mime_type: str | None = Field(default=None, alias="mimeType")


class EditedMessageData(GreenApiModel):
    text_message: str | None = Field(default=None, alias="textMessage")
    stanza_id: str | None = Field(default=None, alias="stanzaId")


class QuotedMessage(GreenApiModel):
    """Сообщение, на которое отвечают."""

    stanza_id: str | None = Field(default=None, alias="stanzaId")
    participant: str | None = None
    type_message: str | None = Field(default=None, alias="typeMessage")
    text_message: str | None = Field(default=None, alias="textMessage")
    caption: str | None = None
    download_url: str | None = Field(default=None, alias="downloadUrl")


class MessageData(GreenApiModel):
    """Содержимое сообщения, вид определяется typeMessage."""

    type_message: str | None = Field(default=None, alias="typeMessage")
    text_message_data: TextMessageData | None = Field(default=None, alias="textMessageData")
    extended_text_message_data: ExtendedTextMessageData | None = Field(
        default=None, alias="extendedTextMessageData"
    )
    file_message_data: FileMessageData | None = Field(default=None, alias="fileMessageData")
    edited_message_data: EditedMessageData | None = Field(default=None, alias="editedMessageData")
    quoted_message: QuotedMessage | None = Field(default=None, alias="quotedMessage")

    @property
    def message_type(self) -> MessageType:
        return MessageType.parse(self.type_message)

    def extract_text(self) -> str | None:
        """Достать текст сообщения в зависимости от typeMessage.

        Для изображений и видео текстом считается подпись.
        """
        caption = self.file_message_data.caption if self.file_message_data else None
        extended = self.extended_text_message_data.text if self.extended_text_message_data else None

        match self.message_type:
            case MessageType.TEXT:
                text = self.text_message_data.text_message if self.text_message_data else None
            case MessageType.EXTENDED_TEXT:
                text = extended
            case MessageType.QUOTED:
                text = extended or caption
            case MessageType.EDITED:
                text = self.edited_message_data.text_message if self.edited_message_data else None
            case MessageType.IMAGE | MessageType.VIDEO:
                text = caption
            case _:
                text = None

        return text or None


class InstanceData(GreenApiModel):
    id_instance: int | str | None = Field(default=None, alias="idInstance")
    wid: str | None = None
    type_instance: str | None = Field(default=None, alias="typeInstance")


class WebhookPayload(GreenApiModel):
    """Webhook уведомление Green API.

    Для разных typeWebhook заполнены разные поля: сообщения несут senderData и
    messageData, статусы - status, звонки - from и status.
    """

    type_webhook: str | None = Field(default=None, alias="typeWebhook")
    id_message: str | None = Field(default=None, alias="idMessage")
    timestamp: int | None = None
    instance_data: InstanceData | None = Field(default=None, alias="instanceData")
    sender_data: SenderData | None = Field(default=None, alias="senderData")
    message_data: MessageData | None = Field(default=None, alias="messageData")
    status: str | None = None
    chat_id: str | None = Field(default=None, alias="chatId")
    caller: str | None = Field(default=None, alias="from")
    token: str | None = Field(default=None, description="Секрет webhook, если передан в теле")

    @property
    def webhook_type(self) -> WebhookType:
        return WebhookType.parse(self.type_webhook)

    def unique_message_id(self) -> str | None:
        """Ключ дедупликации.

        Редактирование приходит с тем же idMessage, поэтому к нему добавляется
        timestamp уведомления: правка обрабатывается как новое сообщение, а
        повторная доставка той же правки отсекается.
        """
        if not self.id_message:
            return None
        if self.message_data is not None and self.message_data.message_type == MessageType.EDITED:
            return f"{self.id_message}{EDITED_MESSAGE_SUFFIX}{self.timestamp or 0}"
        return self.id_message

    def summary(self) -> dict[str, Any]:
        """Короткое описание для логов."""
        return {
            "type_webhook": self.type_webhook,
            "id_message": self.id_message,
            "chat_id": self.sender_data.chat_id if self.sender_data else self.chat_id,
            "type_message": self.message_data.type_message if self.message_data else None,
        }
