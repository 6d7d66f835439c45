"""Base types и Protocol для AI Providers.

Провайдеры - внешние коллабораторы с одним вызовом request/response.
Ожидаемые ошибки провайдера (HTTP ошибка, пустой ответ) возвращаются в поле
error результата. Неожиданные исключения вызывающий код превращает в
терминальное состояние задачи сам.
"""

from typing import Literal, Protocol, runtime_checkable

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """Сообщение диалога в формате OpenAI Chat Completions."""

    role: Literal["system", "user", "assistant"] = Field(..., description="Роль отправителя")
    content: str = Field(..., description="Текст сообщения")


class ProviderResult(BaseModel):
    """Общие поля результата провайдера."""

    text: str | None = Field(default=None, description="Текст, сопровождающий результат")
    cost: float | None = Field(default=None, description="Стоимость вызова")
    error: str | None = Field(default=None, description="Описание ошибки провайдера")


class ImageResult(ProviderResult):
    """Результат генерации изображения."""

    image_buffer: bytes | None = Field(default=None, description="PNG байты изображения")


class VideoResult(ProviderResult):
    """Результат генерации видео."""

    video_url: str | None = Field(default=None, description="URL готового видео у провайдера")


class TextResult(ProviderResult):
    """Результат генерации текста."""


@runtime_checkable
class ImageProvider(Protocol):
    """Провайдер text-to-image."""

    name: str

    async def generate_image(self, prompt: str) -> ImageResult:
        """Сгенерировать изображение по промпту."""
        ...


@runtime_checkable
class VideoProvider(Protocol):
    """Провайдер text-to-video."""

    name: str

    async def generate_video(self, prompt: str) -> VideoResult:
        """Сгенерировать видео по промпту."""
        ...


@runtime_checkable
class TextProvider(Protocol):
    """Провайдер генерации текста (чат)."""

    name: str

    async def generate_text(self, prompt: str, history: list[ChatMessage] | None = None) -> TextResult:
        """Сгенерировать ответ на промпт с учётом истории диалога."""
        ...


@runtime_checkable
class ClosableProvider(Protocol):
    """Провайдер, владеющий HTTP клиентом, который нужно закрыть."""

    async def cleanup(self) -> None:
        """Освободить ресурсы."""
        ...
