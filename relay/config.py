"""Настройки приложения WhatsApp AI Relay.

Конфигурация загружается из переменных окружения через pydantic-settings.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Основные настройки приложения."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="WhatsApp AI Relay", description="Название приложения")
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Окружение",
    )
    debug: bool = Field(default=True, description="Режим отладки")
    log_level: str = Field(default="INFO", description="Уровень логирования")

    server_host: str = Field(default="0.0.0.0", description="Хост сервера")
    server_port: int = Field(default=8000, description="Порт сервера")

    static_dir: str = Field(default="./static", description="Директория для сгенерированных файлов")
    static_url_path: str = Field(default="/static", description="URL префикс для статических файлов")
    public_base_url: str | None = Field(
        default=None,
        description="Публичный base URL для ссылок на результаты (по умолчанию из запроса)",
    )
    prompt_max_length: int = Field(default=4000, description="Максимальная длина промпта")

    green_api_webhook_token: str | None = Field(default=None, description="Секрет для проверки webhook")
    green_api_url: str = Field(default="https://api.green-api.com", description="Base URL Green API")
    green_api_id_instance: str | None = Field(default=None, description="ID инстанса Green API")
    green_api_token_instance: str | None = Field(default=None, description="API токен инстанса Green API")

    dedup_ttl_seconds: int = Field(default=1800, gt=0, description="TTL записей кеша дедупликации в секундах")
    dedup_max_size: int = Field(default=1000, gt=0, description="Максимальный размер кеша дедупликации")

    http_timeout_seconds: int = Field(default=60, description="Таймаут HTTP запросов")
    http_max_retries: int = Field(default=2, description="Количество повторов HTTP запросов")

    openai_api_key: str | None = Field(default=None, description="API ключ OpenAI")
    openai_base_url: str | None = Field(default=None, description="Base URL для OpenAI API")
    openai_image_model: str = Field(default="gpt-image-1", description="Модель OpenAI для изображений")
    openai_image_size: str = Field(default="1024x1024", description="Размер изображения OpenAI")
    openai_image_quality: str = Field(default="high", description="Качество изображения OpenAI")
    openai_chat_model: str = Field(default="gpt-4o-mini", description="Модель OpenAI для чата")

    gemini_api_key: str | None = Field(default=None, description="API ключ Google Gemini")
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Base URL Gemini API",
    )
    gemini_image_model: str = Field(
        default="gemini-2.5-flash-image-preview",
        description="Модель Gemini для изображений",
    )

    replicate_api_token: str | None = Field(default=None, description="API токен Replicate")
    replicate_base_url: str = Field(default="https://api.replicate.com/v1", description="Base URL Replicate API")
    replicate_video_model: str = Field(default="kwaivgi/kling-v2.1-master", description="Модель Replicate для видео")
    replicate_poll_interval_seconds: float = Field(default=10.0, description="Интервал опроса prediction")
    replicate_max_poll_attempts: int = Field(default=80, description="Максимум попыток опроса prediction")
    replicate_video_cost: float = Field(default=1.40, description="Стоимость 5-секундного видео в USD")

    conversation_max_messages: int = Field(default=20, ge=1, description="Максимум сообщений в истории чата")
    conversation_ttl_seconds: int = Field(default=3600, gt=0, description="TTL неактивной истории чата")
    conversation_max_chats: int = Field(default=1000, gt=0, description="Максимум хранимых историй чатов")

    chat_ack_message: str = Field(default="💬 קיבלתי. מעבד עם OpenAI...", description="Подтверждение приёма")
    chat_error_message: str = Field(
        default="❌ סליחה, הייתה שגיאה בעיבוד הבקשה שלך.",
        description="Сообщение об ошибке для пользователя",
    )
    chat_cleared_message: str = Field(default="🗑️ השיחה נמחקה.", description="Подтверждение очистки истории")

    shutdown_drain_timeout_seconds: float = Field(
        default=10.0,
        description="Сколько ждать фоновые задачи при остановке",
    )

    cors_allowed_origins: list[str] = Field(default=["*"], description="Разрешённые origins для CORS")


settings = Settings()
