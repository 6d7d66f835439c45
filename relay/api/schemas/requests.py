"""Request Schemas для WhatsApp AI Relay API.

Pydantic models для валидации входящих запросов.
"""

from pydantic import BaseModel, Field


class StartTaskRequest(BaseModel):
    """Запрос на запуск задачи генерации.

    POST /start-task

    type проверяется только на наличие: неподдерживаемое значение создаёт
    задачу, которая сразу завершается ошибкой "Unsupported task type".
    """

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"type": "text-to-image", "prompt": "A red fox in the snow, watercolor"},
                {"type": "text-to-image", "prompt": "Логотип кофейни", "provider": "openai"},
                {"type": "text-to-video", "prompt": "Waves crashing on a rocky shore at sunset"},
            ]
        }
    }

    type: str = Field(
        description="Тип задачи",
        min_length=1,
        examples=["text-to-image", "text-to-video"],
    )

    prompt: str = Field(
        description="Промпт для генерации",
        min_length=1,
        examples=["A red fox in the snow, watercolor"],
    )

    provider: str | None = Field(
        default=None,
        description="Provider (openai, gemini, replicate). По умолчанию: gemini для изображений, replicate для видео",
        examples=["openai"],
    )
