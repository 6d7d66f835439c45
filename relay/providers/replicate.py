"""Replicate Provider - генерация видео через Replicate predictions API.

Провайдер видео по умолчанию. Создаёт prediction для официальной модели
и опрашивает его до succeeded/failed/canceled.
"""

import asyncio
from typing import Any

import httpx

from relay.config import Settings, settings as default_settings
from relay.core.enums import ProviderType
from relay.providers.base import VideoResult
from relay.utils.logging import get_logger

logger = get_logger()

TERMINAL_STATUSES = frozenset({"succeeded", "failed", "canceled"})
# Эти коды повторным опросом не исправить
FATAL_POLL_STATUS_CODES = frozenset({401, 402, 429})


def extract_video_url(output: Any) -> str | None:
    """Достать URL видео из output prediction (строка, список или словарь)."""
    if isinstance(output, list):
        return str(output[0]) if output else None
    if isinstance(output, dict):
        value = output.get("video") or output.get("output")
        return str(value) if value else None
    return str(output) if output else None


class ReplicateProvider:
    """Provider для Replicate (text-to-video)."""

    name = ProviderType.REPLICATE.value

    def __init__(
        self,
        api_token: str | None = None,
        config: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Инициализировать Replicate Provider.

        Args:
            api_token: API токен Replicate (если None, используется из settings)
            config: Настройки приложения
            client: Готовый httpx клиент (для тестов)

        Raises:
            ValueError: Если токен не задан

        """
        config = config or default_settings
        self.api_token = api_token or config.replicate_api_token
        self.model = config.replicate_video_model
        self.poll_interval = config.replicate_poll_interval_seconds
        self.max_poll_attempts = config.replicate_max_poll_attempts
        self.video_cost = config.replicate_video_cost

        if not self.api_token:
            msg = "Replicate API token не установлен (REPLICATE_API_TOKEN)"
            raise ValueError(msg)

        self.client = client or httpx.AsyncClient(
            base_url=config.replicate_base_url,
            timeout=config.http_timeout_seconds,
            headers={"Authorization": f"Bearer {self.api_token}"},
        )

        logger.info("ReplicateProvider инициализирован", model=self.model)

    async def generate_video(self, prompt: str) -> VideoResult:
        """Сгенерировать видео.

        Args:
            prompt: Промпт для генерации

        Returns:
            VideoResult с URL видео или ошибкой

        """
        input_params = {"prompt": prompt, "aspect_ratio": "9:16", "duration": 5, "negative_prompt": ""}

        try:
            response = await self.client.post(
                f"/models/{self.model}/predictions",
                json={"input": input_params},
                headers={"Prefer": "wait"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning("Replicate: не удалось создать prediction", status_code=e.response.status_code)
            return VideoResult(error=_extract_error(e.response))
        except httpx.HTTPError as e:
            return VideoResult(error=f"Replicate request failed: {e}")

        prediction = response.json()
        prediction_id = prediction.get("id")
        if not prediction_id:
            return VideoResult(error="No prediction ID received from Replicate")

        logger.info("Replicate: prediction создан", prediction_id=prediction_id, model=self.model)

        if prediction.get("status") not in TERMINAL_STATUSES:
            prediction = await self._poll(prediction_id)
            if isinstance(prediction, str):
                return VideoResult(error=prediction)

        if prediction.get("status") != "succeeded":
            return VideoResult(error=prediction.get("error") or f"Task {prediction.get('status')}")

        video_url = extract_video_url(prediction.get("output"))
        if not video_url:
            return VideoResult(error="No video URL in Replicate output")

        logger.info("Replicate: видео готово", prediction_id=prediction_id)
        return VideoResult(video_url=video_url, text=prompt, cost=self.video_cost)

    async def _poll(self, prediction_id: str) -> dict[str, Any] | str:
        """Опрашивать prediction до терминального статуса.

        Returns:
            Финальный prediction или строка с ошибкой

        """
        for attempt in range(1, self.max_poll_attempts + 1):
            await asyncio.sleep(self.poll_interval)

            try:
                response = await self.client.get(f"/predictions/{prediction_id}")
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                if e.response.status_code in FATAL_POLL_STATUS_CODES:
                    return _extract_error(e.response)
                logger.warning("Replicate: ошибка опроса", attempt=attempt, status_code=e.response.status_code)
                continue
            except httpx.HTTPError as e:
                logger.warning("Replicate: ошибка опроса", attempt=attempt, error=str(e))
                continue

            prediction = response.json()
            if prediction.get("status") in TERMINAL_STATUSES:
                return prediction

            logger.debug("Replicate: prediction в работе", attempt=attempt, status=prediction.get("status"))

        return f"text-to-video generation timed out after {self.max_poll_attempts} attempts"

    async def cleanup(self) -> None:
        """Закрыть HTTP клиент."""
        await self.client.aclose()


def _extract_error(response: httpx.Response) -> str:
    try:
        detail = response.json().get("detail")
    except ValueError:
        detail = None
    return f"Replicate HTTP {response.status_code}: {detail}" if detail else f"Replicate HTTP {response.status_code}"
