"""Webhook API Route - приём уведомлений Green API.

Ответ 200 {"status": "ok"} отправляется сразу после авторизации и
постановки обработчика в фон. Результат обработки на ответ не влияет.
"""

import json

from fastapi import APIRouter, Request

from relay.api.schemas.responses import WebhookAckResponse
from relay.core.dependencies import SettingsDep, WebhookDispatcherDep
from relay.shared.errors import UnauthorizedError, WebhookNotConfiguredError
from relay.utils.logging import get_logger
from relay.whatsapp.security import extract_token, verify_token

logger = get_logger()

router = APIRouter(tags=["webhook"])


@router.post(
    "/webhook",
    response_model=WebhookAckResponse,
    summary="Webhook Green API",
    description="Принимает уведомления Green API (сообщения, статусы, звонки)",
    responses={
        401: UnauthorizedError.openapi_response(),
        500: WebhookNotConfiguredError.openapi_response(),
    },
)
async def receive_webhook(
    request: Request,
    settings: SettingsDep,
    dispatcher: WebhookDispatcherDep,
) -> WebhookAckResponse:
    """Принять webhook уведомление.

    Raises:
        WebhookNotConfiguredError: Секрет webhook не настроен (500)
        UnauthorizedError: Неверный токен (401)

    """
    raw = await request.body()
    try:
        body = json.loads(raw) if raw else None
    except ValueError:
        body = None
        logger.warning("Webhook с невалидным JSON", size=len(raw))

    verify_token(extract_token(request, body), settings.green_api_webhook_token)

    dispatcher.dispatch(body)

    return WebhookAckResponse()
