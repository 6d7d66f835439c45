"""Проверка секрета webhook Green API.

Токен ищется по порядку: заголовок Authorization (Bearer), query параметр
token, поле token в теле. Сравнение constant-time.
"""

import hmac
from typing import Any

from fastapi import Request

from relay.core.constants import WEBHOOK_BEARER_PREFIX
from relay.shared.errors import UnauthorizedError, WebhookNotConfiguredError
from relay.utils.logging import get_logger

logger = get_logger()


def extract_token(request: Request, body: Any) -> str | None:
    """Достать токен из запроса.

    Args:
        request: HTTP запрос
        body: Распарсенное тело (dict или что угодно)

    Returns:
        Токен или None

    """
    authorization = request.headers.get("Authorization")
    if authorization:
        if authorization.startswith(WEBHOOK_BEARER_PREFIX):
            return authorization[len(WEBHOOK_BEARER_PREFIX) :].strip()
        return authorization.strip()

    query_token = request.query_params.get("token")
    if query_token:
        return query_token

    if isinstance(body, dict) and isinstance(body.get("token"), str):
        return body["token"]

    return None


def verify_token(provided: str | None, expected: str | None) -> None:
    """Проверить токен webhook.

    Raises:
        WebhookNotConfiguredError: Секрет не настроен на сервере (500)
        UnauthorizedError: Токен отсутствует или не совпадает (401)

    """
    if not expected:
        logger.error("Webhook token не настроен (GREEN_API_WEBHOOK_TOKEN)")
        raise WebhookNotConfiguredError

    if not provided or not hmac.compare_digest(provided.encode(), expected.encode()):
        logger.warning("Webhook с неверным токеном отклонён", token_present=bool(provided))
        raise UnauthorizedError
