"""Response Schemas для WhatsApp AI Relay API."""

from pydantic import BaseModel, ConfigDict, Field


class StartTaskResponse(BaseModel):
    """Ответ на запуск задачи: только ID, генерация идёт в фоне."""

    model_config = ConfigDict(populate_by_name=True)

    task_id: str = Field(..., alias="taskId", description="ID задачи для опроса статуса")


class WebhookAckResponse(BaseModel):
    """Подтверждение приёма webhook."""

    status: str = Field(default="ok", description="Всегда ok для авторизованного webhook")


class HealthCheckResponse(BaseModel):
    """Ответ health check."""

    status: str = Field(..., description="Статус сервиса")
    service: str = Field(..., description="Имя сервиса")
    version: str = Field(..., description="Версия сервиса")
    tasks: int = Field(..., description="Количество задач в хранилище")
    background_tasks: int = Field(..., description="Фоновых задач в работе")
    providers: dict[str, list[str]] = Field(default_factory=dict, description="Providers и их возможности")
