"""Unit тесты для whatsapp/schemas.py."""

import pytest

from relay.core.enums import MessageType, WebhookType
from relay.whatsapp.schemas import WebhookPayload


def message_payload(message_data: dict, **extra: object) -> dict:
    return {
        "typeWebhook": "incomingMessageReceived",
        "idMessage": "BAE5F4886F0A1",
        "timestamp": 1700000000,
        "senderData": {"chatId": "972501234567@c.us", "senderName": "Dana"},
        "messageData": message_data,
        **extra,
    }


@pytest.mark.unit
class TestWebhookPayload:
    """Тесты разбора webhook Green API."""

    def test_text_message(self) -> None:
        payload = WebhookPayload.model_validate(
            message_payload({"typeMessage": "textMessage", "textMessageData": {"textMessage": "# hi"}})
        )

        assert payload.webhook_type == WebhookType.INCOMING_MESSAGE
        assert payload.sender_data is not None
        assert payload.sender_data.chat_id == "972501234567@c.us"
        assert payload.sender_data.display_name == "Dana"
        assert payload.message_data is not None
        assert payload.message_data.message_type == MessageType.TEXT
        assert payload.message_data.extract_text() == "# hi"

    def test_extended_text_message(self) -> None:
        payload = WebhookPayload.model_validate(
            message_payload(
                {
                    "typeMessage": "extendedTextMessage",
                    "extendedTextMessageData": {"text": "# look https://example.com", "title": "Example"},
                }
            )
        )

        assert payload.message_data is not None
        assert payload.message_data.extract_text() == "# look https://example.com"

    def test_quoted_message(self) -> None:
        payload = WebhookPayload.model_validate(
            message_payload(
                {
                    "typeMessage": "quotedMessage",
                    "extendedTextMessageData": {"text": "# explain", "stanzaId": "BAE0"},
                    "quotedMessage": {"stanzaId": "BAE0", "typeMessage": "textMessage", "textMessage": "E=mc^2"},
                }
            )
        )

        assert payload.message_data is not None
        assert payload.message_data.extract_text() == "# explain"
        assert payload.message_data.quoted_message is not None
        assert payload.message_data.quoted_message.stanza_id == "BAE0"

    def test_image_caption_is_text(self) -> None:
        payload = WebhookPayload.model_validate(
            message_payload(
                {
                    "typeMessage": "imageMessage",
                    "fileMessageData": {"downloadUrl": "https://media/x.jpg", "caption": "# what is this"},
                }
            )
        )

        assert payload.message_data is not None
        assert payload.message_data.extract_text() == "# what is this"

    def test_audio_has_no_text(self) -> None:
        payload = WebhookPayload.model_validate(
            message_payload({"typeMessage": "audioMessage", "fileMessageData": {"downloadUrl": "https://media/x.ogg"}})
        )

        assert payload.message_data is not None
        assert payload.message_data.extract_text() is None

    def test_unknown_types(self) -> None:
        payload = WebhookPayload.model_validate(
            {"typeWebhook": "stateInstanceChanged", "messageData": {"typeMessage": "pollMessage"}}
        )

        assert payload.webhook_type == WebhookType.UNKNOWN
        assert payload.message_data is not None
        assert payload.message_data.message_type == MessageType.UNKNOWN

    def test_unique_id_for_plain_message(self) -> None:
        payload = WebhookPayload.model_validate(
            message_payload({"typeMessage": "textMessage", "textMessageData": {"textMessage": "hi"}})
        )

        assert payload.unique_message_id() == "BAE5F4886F0A1"

    def test_unique_id_for_edited_message(self) -> None:
        """Правка получает отдельный ключ, зависящий от timestamp уведомления."""
        payload = WebhookPayload.model_validate(
            message_payload(
                {"typeMessage": "editedMessage", "editedMessageData": {"textMessage": "# fixed", "stanzaId": "BAE5"}},
                timestamp=1700000500,
            )
        )

        assert payload.unique_message_id() == "BAE5F4886F0A1_edited_1700000500"
        assert payload.message_data is not None
        assert payload.message_data.extract_text() == "# fixed"

    def test_unique_id_missing(self) -> None:
        payload = WebhookPayload.model_validate({"typeWebhook": "incomingMessageReceived"})

        assert payload.unique_message_id() is None

    def test_call_payload(self) -> None:
        payload = WebhookPayload.model_validate(
            {"typeWebhook": "incomingCall", "from": "972501234567@c.us", "status": "offer", "idMessage": "C1"}
        )

        assert payload.webhook_type == WebhookType.INCOMING_CALL
        assert payload.caller == "972501234567@c.us"

    def test_unknown_fields_are_kept(self) -> None:
        payload = WebhookPayload.model_validate({"typeWebhook": "incomingCall", "newField": 1})

        assert payload.model_extra == {"newField": 1}
