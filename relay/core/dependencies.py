"""Dependency Injection для FastAPI.

Компоненты создаются в create_app() и лежат в app.state. Endpoints получают
их через Depends, поэтому в тестах достаточно собрать приложение с нужными
заглушками.
"""

from typing import Annotated

from fastapi import Depends, Request

from relay.config import Settings
from relay.services.task_service import TaskService
from relay.services.task_store import TaskStore
from relay.whatsapp.dispatcher import WebhookDispatcher


def get_settings(request: Request) -> Settings:
    """Получить настройки приложения."""
    return request.app.state.settings


def get_task_store(request: Request) -> TaskStore:
    """Получить хранилище задач."""
    return request.app.state.task_store


def get_task_service(request: Request) -> TaskService:
    """Получить сервис задач."""
    return request.app.state.task_service


def get_webhook_dispatcher(request: Request) -> WebhookDispatcher:
    """Получить маршрутизатор webhook."""
    return request.app.state.webhook_dispatcher


def get_public_base_url(request: Request) -> str:
    """Base URL для ссылок на результаты: из настроек или scheme://host запроса."""
    configured = request.app.state.settings.public_base_url
    if configured:
        return configured.rstrip("/")
    return f"{request.url.scheme}://{request.url.netloc}"


# Type aliases для удобства
SettingsDep = Annotated[Settings, Depends(get_settings)]
TaskStoreDep = Annotated[TaskStore, Depends(get_task_store)]
TaskServiceDep = Annotated[TaskService, Depends(get_task_service)]
WebhookDispatcherDep = Annotated[WebhookDispatcher, Depends(get_webhook_dispatcher)]
PublicBaseUrlDep = Annotated[str, Depends(get_public_base_url)]
