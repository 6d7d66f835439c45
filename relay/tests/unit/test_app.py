"""Тесты сборки приложения и служебных endpoints."""

from pathlib import Path

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from relay.app import create_app
from relay.config import Settings
from relay.core.constants import SERVICE_NAME, SERVICE_VERSION
from relay.providers.registry import ProviderRegistry
from relay.tests.unit.conftest import FakeMessenger


@pytest.mark.unit
class TestAppEndpoints:
    """Тесты для корневых endpoints."""

    @pytest.mark.asyncio
    async def test_root(self, client: AsyncClient) -> None:
        response = await client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "WhatsApp AI Relay"
        assert data["version"] == SERVICE_VERSION
        assert data["status"] == "running"

    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == SERVICE_NAME
        assert data["tasks"] == 0
        assert data["providers"]["replicate"] == ["video"]

    @pytest.mark.asyncio
    async def test_duration_header(self, client: AsyncClient) -> None:
        response = await client.get("/health")

        assert float(response.headers["X-Duration-Ms"]) >= 0
        assert response.headers["X-Trace-Id"]

    def test_components_on_state(self, app: FastAPI, messenger: FakeMessenger) -> None:
        """Компоненты создаются один раз и доступны через app.state."""
        assert app.state.messenger is messenger
        assert app.state.task_service.store is app.state.task_store
        assert app.state.webhook_dispatcher.background is app.state.background


@pytest.mark.unit
class TestCreateApp:
    """Тесты create_app с разными настройками."""

    @pytest.mark.asyncio
    async def test_public_base_url_setting(
        self, settings: Settings, registry: ProviderRegistry, messenger: FakeMessenger
    ) -> None:
        """PUBLIC_BASE_URL используется вместо host запроса."""
        settings.public_base_url = "https://relay.example.com/"
        app = create_app(config=settings, registry=registry, messenger=messenger)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://internal:8000") as client:
            response = await client.post("/start-task", json={"type": "text-to-image", "prompt": "a fox"})
            task_id = response.json()["taskId"]
            await app.state.background.drain(timeout=5)
            status = await client.get(f"/task-status/{task_id}")

        assert status.json()["result"] == f"https://relay.example.com/static/{task_id}.png"

    def test_static_dir_created(self, settings: Settings, registry: ProviderRegistry, static_dir: Path) -> None:
        create_app(config=settings, registry=registry, messenger=FakeMessenger())

        assert static_dir.is_dir()

    @pytest.mark.asyncio
    async def test_metrics_outside_development(
        self, settings: Settings, registry: ProviderRegistry, messenger: FakeMessenger
    ) -> None:
        settings.app_env = "production"
        app = create_app(config=settings, registry=registry, messenger=messenger)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]

    @pytest.mark.asyncio
    async def test_lifespan_drains_background(
        self, settings: Settings, registry: ProviderRegistry, messenger: FakeMessenger
    ) -> None:
        """При остановке фоновые задачи дожидаются."""
        app = create_app(config=settings, registry=registry, messenger=messenger)

        async with app.router.lifespan_context(app):
            await app.state.task_service.start_task("text-to-video", "waves", None, "http://test")

        assert app.state.background.pending == 0
        state = next(iter(app.state.task_store._tasks.values()))
        assert state.status == "done"
