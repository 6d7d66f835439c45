"""Gemini Provider - генерация изображений через Gemini REST API.

Провайдер изображений по умолчанию. Запрос generateContent с модальностями
IMAGE+TEXT, изображение приходит base64 в inlineData одной из частей ответа.
"""

import base64
import re
from typing import Any

import httpx

from relay.config import Settings, settings as default_settings
from relay.core.enums import ProviderType
from relay.providers.base import ImageResult
from relay.utils.logging import get_logger

logger = get_logger()

IMAGE_INSTRUCTION_RE = re.compile(
    r"(צייר|צור|הפוך|צרי|תצייר|תצור|תמונה|draw|create|make|generate|produce|image|picture|photo)",
    re.IGNORECASE,
)
HEBREW_RE = re.compile("[\u0590-\u05ff]")


def build_image_prompt(prompt: str) -> str:
    """Добавить явную инструкцию "создай изображение", если её нет.

    Без неё Gemini иногда отвечает только текстом.
    """
    if IMAGE_INSTRUCTION_RE.search(prompt):
        return prompt
    if HEBREW_RE.search(prompt):
        return f"צור תמונה של {prompt}"
    return f"Create an image of {prompt}"


class GeminiProvider:
    """Provider для Google Gemini (text-to-image)."""

    name = ProviderType.GEMINI.value

    def __init__(
        self,
        api_key: str | None = None,
        config: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Инициализировать Gemini Provider.

        Args:
            api_key: API ключ Gemini (если None, используется из settings)
            config: Настройки приложения
            client: Готовый httpx клиент (для тестов)

        Raises:
            ValueError: Если API ключ не задан

        """
        config = config or default_settings
        self.api_key = api_key or config.gemini_api_key
        self.model = config.gemini_image_model

        if not self.api_key:
            msg = "Gemini API key не установлен (GEMINI_API_KEY)"
            raise ValueError(msg)

        self.client = client or httpx.AsyncClient(
            base_url=config.gemini_base_url,
            timeout=config.http_timeout_seconds,
        )

        logger.info("GeminiProvider инициализирован", model=self.model)

    async def generate_image(self, prompt: str) -> ImageResult:
        """Сгенерировать изображение.

        Args:
            prompt: Промпт для генерации

        Returns:
            ImageResult с байтами изображения или ошибкой

        """
        payload = {
            "contents": [{"role": "user", "parts": [{"text": build_image_prompt(prompt)}]}],
            "generationConfig": {"responseModalities": ["IMAGE", "TEXT"]},
        }

        try:
            response = await self.client.post(
                f"/models/{self.model}:generateContent",
                json=payload,
                headers={"x-goog-api-key": self.api_key},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Gemini: HTTP ошибка",
                status_code=e.response.status_code,
                body=e.response.text[:500],
            )
            return ImageResult(error=_extract_error(e.response))
        except httpx.HTTPError as e:
            logger.warning("Gemini: ошибка запроса", error=str(e))
            return ImageResult(error=f"Gemini request failed: {e}")

        return self._parse_response(response.json(), prompt)

    def _parse_response(self, data: dict[str, Any], prompt: str) -> ImageResult:
        candidates = data.get("candidates") or []
        if not candidates:
            reason = (data.get("promptFeedback") or {}).get("blockReason")
            error = f"Gemini returned no candidates ({reason})" if reason else "Gemini returned no candidates"
            return ImageResult(error=error)

        parts = (candidates[0].get("content") or {}).get("parts") or []
        text_parts: list[str] = []
        image_buffer: bytes | None = None

        for part in parts:
            if part.get("text"):
                text_parts.append(part["text"])
            elif (part.get("inlineData") or {}).get("data"):
                image_buffer = base64.b64decode(part["inlineData"]["data"])

        text = "".join(text_parts).strip()

        if image_buffer is None:
            finish_reason = candidates[0].get("finishReason")
            logger.warning("Gemini: изображение не вернулось", finish_reason=finish_reason, text=text[:200])
            return ImageResult(text=text or None, error="No image data")

        logger.info("Gemini: изображение сгенерировано", model=self.model, size=len(image_buffer))
        return ImageResult(image_buffer=image_buffer, text=text or prompt)

    async def cleanup(self) -> None:
        """Закрыть HTTP клиент."""
        await self.client.aclose()


def _extract_error(response: httpx.Response) -> str:
    try:
        message = response.json().get("error", {}).get("message")
    except ValueError:
        message = None
    return message or f"Gemini HTTP {response.status_code}"
