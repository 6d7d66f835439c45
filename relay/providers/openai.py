"""OpenAI Provider для WhatsApp AI Relay.

Генерация изображений (images.generate) и ответов чата (chat.completions)
через официальный OpenAI SDK.
"""

import base64

from openai import AsyncOpenAI, OpenAIError

from relay.config import Settings, settings as default_settings
from relay.core.enums import ProviderType
from relay.providers.base import ChatMessage, ImageResult, TextResult
from relay.utils.logging import get_logger

logger = get_logger()

SYSTEM_PROMPT = (
    "You are a helpful assistant in a WhatsApp chat. "
    "Answer in the language of the user's message. Keep answers concise."
)


class OpenAIProvider:
    """Provider для официального OpenAI API.

    Умеет text-to-image и чат. Ошибки API возвращаются в поле error результата.
    """

    name = ProviderType.OPENAI.value

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        config: Settings | None = None,
        client: AsyncOpenAI | None = None,
    ) -> None:
        """Инициализировать OpenAI Provider.

        Args:
            api_key: OpenAI API ключ (если None, используется из settings)
            base_url: Base URL API (опционально, для прокси или Azure)
            config: Настройки приложения
            client: Готовый клиент (для тестов)

        Raises:
            ValueError: Если API ключ не задан

        """
        config = config or default_settings
        self.api_key = api_key or config.openai_api_key
        self.base_url = base_url or config.openai_base_url
        self.image_model = config.openai_image_model
        self.image_size = config.openai_image_size
        self.image_quality = config.openai_image_quality
        self.chat_model = config.openai_chat_model

        if client is None and not self.api_key:
            msg = "OpenAI API key не установлен (OPENAI_API_KEY)"
            raise ValueError(msg)

        self.client = client or AsyncOpenAI(
            api_key=self.api_key,
            base_url=self.base_url,
            timeout=config.http_timeout_seconds,
            max_retries=config.http_max_retries,
        )

        logger.info(
            "OpenAIProvider инициализирован",
            image_model=self.image_model,
            chat_model=self.chat_model,
            base_url=self.base_url,
        )

    async def generate_image(self, prompt: str) -> ImageResult:
        """Сгенерировать изображение.

        Args:
            prompt: Промпт для генерации

        Returns:
            ImageResult с PNG байтами или ошибкой

        """
        logger.debug("OpenAI: генерация изображения", model=self.image_model, prompt_length=len(prompt))

        try:
            response = await self.client.images.generate(
                model=self.image_model,
                prompt=prompt,
                size=self.image_size,  # type: ignore[arg-type]
                quality=self.image_quality,  # type: ignore[arg-type]
                n=1,
            )
        except OpenAIError as e:
            logger.warning("OpenAI: ошибка генерации изображения", error=str(e))
            return ImageResult(error=str(e))

        if not response.data:
            return ImageResult(error="No image generated")

        image = response.data[0]
        if not image.b64_json:
            return ImageResult(error="No image data")

        logger.info("OpenAI: изображение сгенерировано", model=self.image_model)

        return ImageResult(
            image_buffer=base64.b64decode(image.b64_json),
            text=image.revised_prompt or prompt,
        )

    async def generate_text(self, prompt: str, history: list[ChatMessage] | None = None) -> TextResult:
        """Сгенерировать ответ чата.

        Args:
            prompt: Сообщение пользователя
            history: Предыдущие сообщения диалога

        Returns:
            TextResult с ответом или ошибкой

        """
        messages = [{"role": "system", "content": SYSTEM_PROMPT}]
        messages += [message.model_dump() for message in history or []]
        messages.append({"role": "user", "content": prompt})

        logger.debug("OpenAI: генерация ответа", model=self.chat_model, history_length=len(history or []))

        try:
            response = await self.client.chat.completions.create(
                model=self.chat_model,
                messages=messages,  # type: ignore[arg-type]
            )
        except OpenAIError as e:
            logger.warning("OpenAI: ошибка генерации ответа", error=str(e))
            return TextResult(error=str(e))

        text = response.choices[0].message.content if response.choices else None
        if not text:
            return TextResult(error="Empty response")

        logger.info(
            "OpenAI: ответ сгенерирован",
            model=self.chat_model,
            completion_tokens=response.usage.completion_tokens if response.usage else 0,
        )

        return TextResult(text=text.strip())

    async def cleanup(self) -> None:
        """Закрыть HTTP клиент SDK."""
        await self.client.close()
