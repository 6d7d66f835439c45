"""Тесты HTTP API задач: /start-task и /task-status/{taskId}."""

import asyncio
from pathlib import Path

import pytest
from fastapi import FastAPI
from httpx import AsyncClient

from relay.providers.base import ImageResult
from relay.tests.unit.conftest import PNG_BYTES, StubImageProvider


class TestStartTaskEndpoint:
    """Тесты POST /start-task."""

    @pytest.mark.asyncio
    async def test_returns_task_id(self, client: AsyncClient, app: FastAPI) -> None:
        """Успешный запуск возвращает 200 и taskId."""
        response = await client.post("/start-task", json={"type": "text-to-image", "prompt": "a red fox"})

        assert response.status_code == 200
        data = response.json()
        assert set(data) == {"taskId"}
        assert data["taskId"] in app.state.task_store

    @pytest.mark.asyncio
    async def test_missing_prompt_returns_400(self, client: AsyncClient, app: FastAPI) -> None:
        """Без prompt -> 400, задача не создаётся."""
        response = await client.post("/start-task", json={"type": "text-to-image"})

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"
        assert len(app.state.task_store) == 0

    @pytest.mark.asyncio
    async def test_missing_type_returns_400(self, client: AsyncClient, app: FastAPI) -> None:
        """Без type -> 400."""
        response = await client.post("/start-task", json={"prompt": "a red fox"})

        assert response.status_code == 400
        assert len(app.state.task_store) == 0

    @pytest.mark.asyncio
    async def test_whitespace_prompt_returns_400(self, client: AsyncClient, app: FastAPI) -> None:
        """Промпт из пробелов пуст после очистки -> 400."""
        response = await client.post("/start-task", json={"type": "text-to-image", "prompt": "   \n\t "})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "EMPTY_PROMPT"
        assert data["details"]["field"] == "prompt"
        assert len(app.state.task_store) == 0

    @pytest.mark.asyncio
    async def test_trace_id_header(self, client: AsyncClient) -> None:
        """Каждый ответ несёт X-Trace-Id, входящий trace id сохраняется."""
        response = await client.post(
            "/start-task",
            json={"type": "text-to-video", "prompt": "waves"},
            headers={"X-Trace-Id": "trace-123"},
        )

        assert response.headers["X-Trace-Id"] == "trace-123"


class TestTaskStatusEndpoint:
    """Тесты GET /task-status/{taskId}."""

    @pytest.mark.asyncio
    async def test_unknown_task_returns_404(self, client: AsyncClient) -> None:
        """Неизвестный ID -> 404 {"error": "Task not found"}."""
        response = await client.get("/task-status/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"error": "Task not found"}

    @pytest.mark.asyncio
    async def test_non_utf8_trace_id(self, client: AsyncClient) -> None:
        """Не-UTF-8 X-Trace-Id не ломает запрос и возвращается как есть."""
        response = await client.get("/task-status/nope", headers={"X-Trace-Id": b"\xff\xfe"})

        assert response.status_code == 404
        raw = {name.lower(): value for name, value in response.headers.raw}
        assert raw[b"x-trace-id"] == b"\xff\xfe"

    @pytest.mark.asyncio
    async def test_pending_then_done(
        self,
        client: AsyncClient,
        app: FastAPI,
        image_provider: StubImageProvider,
        static_dir: Path,
    ) -> None:
        """Пока provider работает - pending, потом done со ссылкой на файл."""
        image_provider.gate = asyncio.Event()

        response = await client.post("/start-task", json={"type": "text-to-image", "prompt": "a red fox"})
        task_id = response.json()["taskId"]

        pending = await client.get(f"/task-status/{task_id}")
        assert pending.status_code == 200
        assert pending.json() == {"status": "pending"}

        image_provider.gate.set()
        await app.state.background.drain(timeout=5)

        done = await client.get(f"/task-status/{task_id}")
        data = done.json()
        assert data["status"] == "done"
        assert data["result"] == f"http://test/static/{task_id}.png"
        assert task_id in data["result"]
        assert (static_dir / f"{task_id}.png").read_bytes() == PNG_BYTES

    @pytest.mark.asyncio
    async def test_generated_file_is_served(self, client: AsyncClient, app: FastAPI) -> None:
        """Сохранённое изображение раздаётся по /static/<taskId>.png."""
        response = await client.post("/start-task", json={"type": "text-to-image", "prompt": "a red fox"})
        task_id = response.json()["taskId"]
        await app.state.background.drain(timeout=5)

        image = await client.get(f"/static/{task_id}.png")

        assert image.status_code == 200
        assert image.content == PNG_BYTES

    @pytest.mark.asyncio
    async def test_error_state(self, client: AsyncClient, app: FastAPI, image_provider: StubImageProvider) -> None:
        """Ошибка provider видна клиенту как status=error."""
        image_provider.result = ImageResult(error="safety filter")

        response = await client.post("/start-task", json={"type": "text-to-image", "prompt": "a red fox"})
        task_id = response.json()["taskId"]
        await app.state.background.drain(timeout=5)

        status = await client.get(f"/task-status/{task_id}")
        assert status.json() == {"status": "error", "error": "safety filter"}

    @pytest.mark.asyncio
    async def test_repeated_polls_are_identical(self, client: AsyncClient, app: FastAPI) -> None:
        """После завершения повторные запросы возвращают одно и то же."""
        response = await client.post("/start-task", json={"type": "text-to-video", "prompt": "waves"})
        task_id = response.json()["taskId"]
        await app.state.background.drain(timeout=5)

        first = await client.get(f"/task-status/{task_id}")
        second = await client.get(f"/task-status/{task_id}")

        assert first.json() == second.json()
        assert first.json() == {"status": "done", "result": "https://x/y.mp4", "text": "t", "cost": 0.5}

    @pytest.mark.asyncio
    async def test_unsupported_type_is_error_task(self, client: AsyncClient, app: FastAPI) -> None:
        """Неподдерживаемый type создаёт задачу, которая завершается ошибкой."""
        response = await client.post("/start-task", json={"type": "text-to-audio", "prompt": "a song"})
        assert response.status_code == 200
        task_id = response.json()["taskId"]
        await app.state.background.drain(timeout=5)

        status = await client.get(f"/task-status/{task_id}")
        assert status.json() == {"status": "error", "error": "Unsupported task type"}
