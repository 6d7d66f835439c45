"""Pytest configuration для unit тестов."""

import asyncio
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from relay.app import create_app
from relay.config import Settings
from relay.core.enums import ProviderCapability
from relay.providers.base import ChatMessage, ImageResult, TextResult, VideoResult
from relay.providers.registry import ProviderRegistry

WEBHOOK_TOKEN = "test-webhook-secret"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"fake-image-payload"


class StubImageProvider:
    """Image provider с заданным результатом и опциональной паузой."""

    def __init__(
        self,
        name: str = "gemini",
        result: ImageResult | None = None,
        gate: asyncio.Event | None = None,
        exc: Exception | None = None,
    ) -> None:
        self.name = name
        self.result = result or ImageResult(image_buffer=PNG_BYTES, text="a fox", cost=0.04)
        self.gate = gate
        self.exc = exc
        self.prompts: list[str] = []

    async def generate_image(self, prompt: str) -> ImageResult:
        self.prompts.append(prompt)
        if self.gate is not None:
            await self.gate.wait()
        if self.exc is not None:
            raise self.exc
        return self.result


class StubVideoProvider:
    """Video provider с заданным результатом."""

    def __init__(self, name: str = "replicate", result: VideoResult | None = None) -> None:
        self.name = name
        self.result = result or VideoResult(video_url="https://x/y.mp4", text="t", cost=0.5)
        self.prompts: list[str] = []

    async def generate_video(self, prompt: str) -> VideoResult:
        self.prompts.append(prompt)
        return self.result


class StubTextProvider:
    """Text provider, запоминающий вызовы."""

    def __init__(self, name: str = "openai", result: TextResult | None = None) -> None:
        self.name = name
        self.result = result or TextResult(text="It is noon.")
        self.calls: list[tuple[str, list[ChatMessage] | None]] = []

    async def generate_text(self, prompt: str, history: list[ChatMessage] | None = None) -> TextResult:
        self.calls.append((prompt, history))
        return self.result


class FakeMessenger:
    """Messenger, записывающий отправленные сообщения."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[dict[str, Any]] = []
        self.fail = fail

    async def send_message(self, chat_id: str, message: str, quoted_message_id: str | None = None) -> str | None:
        if self.fail:
            from relay.shared.errors import MessagingError

            raise MessagingError(chat_id, "HTTP 500")
        self.sent.append({"chat_id": chat_id, "message": message, "quoted_message_id": quoted_message_id})
        return f"BOT{len(self.sent)}"

    async def send_file_by_url(self, chat_id: str, url: str, file_name: str, caption: str = "") -> str | None:
        self.sent.append({"chat_id": chat_id, "url": url, "file_name": file_name, "caption": caption})
        return f"BOT{len(self.sent)}"

    @property
    def messages(self) -> list[str]:
        return [item["message"] for item in self.sent if "message" in item]


def make_registry(
    image: Any | None = None,
    video: Any | None = None,
    text: Any | None = None,
) -> ProviderRegistry:
    """Registry с заглушками вместо реальных providers."""
    registry = ProviderRegistry()
    registry.register("gemini", image or StubImageProvider(), {ProviderCapability.IMAGE})
    registry.register("replicate", video or StubVideoProvider(), {ProviderCapability.VIDEO})
    registry.register(
        "openai",
        text or StubTextProvider(),
        {ProviderCapability.TEXT, ProviderCapability.IMAGE},
    )
    return registry


@pytest.fixture
def static_dir(tmp_path: Path) -> Path:
    """Директория для сгенерированных файлов."""
    return tmp_path / "static"


@pytest.fixture
def settings(static_dir: Path) -> Settings:
    """Настройки для тестов без чтения .env."""
    return Settings(
        _env_file=None,
        app_env="development",
        debug=False,
        static_dir=str(static_dir),
        green_api_webhook_token=WEBHOOK_TOKEN,
        green_api_id_instance="1101000001",
        green_api_token_instance="instance-token",
    )


@pytest.fixture
def image_provider() -> StubImageProvider:
    return StubImageProvider()


@pytest.fixture
def video_provider() -> StubVideoProvider:
    return StubVideoProvider()


@pytest.fixture
def text_provider() -> StubTextProvider:
    return StubTextProvider()


@pytest.fixture
def registry(
    image_provider: StubImageProvider,
    video_provider: StubVideoProvider,
    text_provider: StubTextProvider,
) -> ProviderRegistry:
    return make_registry(image_provider, video_provider, text_provider)


@pytest.fixture
def messenger() -> FakeMessenger:
    return FakeMessenger()


@pytest.fixture
def app(settings: Settings, registry: ProviderRegistry, messenger: FakeMessenger) -> FastAPI:
    """Приложение с заглушками providers и messenger."""
    return create_app(config=settings, registry=registry, messenger=messenger)


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Test client для FastAPI приложения (без lifespan)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
