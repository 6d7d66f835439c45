"""Unit тесты для TaskService."""

import asyncio
from pathlib import Path

import pytest

from relay.core.enums import TaskStatus
from relay.providers.base import ImageResult, VideoResult
from relay.providers.registry import ProviderRegistry
from relay.services.task_service import TaskService
from relay.services.task_store import InMemoryTaskStore, TaskState
from relay.shared.errors import EmptyPromptError, PromptTooLongError
from relay.tests.unit.conftest import PNG_BYTES, StubImageProvider, StubVideoProvider, make_registry
from relay.utils.background import BackgroundTasks

BASE_URL = "https://relay.example.com"


def build_service(static_dir: Path, **providers: object) -> tuple[TaskService, InMemoryTaskStore, BackgroundTasks]:
    store = InMemoryTaskStore()
    background = BackgroundTasks()
    service = TaskService(
        store=store,
        registry=make_registry(**providers),
        background=background,
        static_dir=static_dir,
        prompt_max_length=100,
    )
    return service, store, background


class TestStartTask:
    """Тесты запуска задачи."""

    @pytest.mark.asyncio
    async def test_returns_before_provider_resolves(self, static_dir: Path) -> None:
        """start_task возвращает ID, пока provider ещё работает."""
        gate = asyncio.Event()
        provider = StubImageProvider(gate=gate)
        service, store, background = build_service(static_dir, image=provider)

        task_id = await service.start_task("text-to-image", "a fox", None, BASE_URL)

        state = await store.get(task_id)
        assert state == TaskState.pending()

        gate.set()
        await background.drain(timeout=5)

        state = await store.get(task_id)
        assert state is not None
        assert state.status == TaskStatus.DONE

    @pytest.mark.asyncio
    async def test_prompt_is_sanitized(self, static_dir: Path) -> None:
        """Промпт очищается от управляющих символов и лишних пробелов."""
        provider = StubImageProvider()
        service, _, background = build_service(static_dir, image=provider)

        await service.start_task("text-to-image", "  a\x00  red\n\nfox  ", None, BASE_URL)
        await background.drain(timeout=5)

        assert provider.prompts == ["a red fox"]

    @pytest.mark.asyncio
    async def test_empty_prompt_creates_no_task(self, static_dir: Path) -> None:
        """Пустой после очистки промпт -> ошибка валидации, задача не создаётся."""
        service, store, _ = build_service(static_dir)

        with pytest.raises(EmptyPromptError):
            await service.start_task("text-to-image", " \x01 ", None, BASE_URL)

        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_too_long_prompt_creates_no_task(self, static_dir: Path) -> None:
        """Промпт длиннее лимита -> ошибка валидации."""
        service, store, _ = build_service(static_dir)

        with pytest.raises(PromptTooLongError):
            await service.start_task("text-to-image", "x" * 101, None, BASE_URL)

        assert len(store) == 0


class TestImageTasks:
    """Тесты text-to-image."""

    @pytest.mark.asyncio
    async def test_success_writes_file_and_url(self, static_dir: Path) -> None:
        """Файл <taskId>.png содержит байты provider, URL указывает на него."""
        service, store, background = build_service(static_dir)

        task_id = await service.start_task("text-to-image", "a fox", None, BASE_URL)
        await background.drain(timeout=5)

        state = await store.get(task_id)
        assert state is not None
        assert state.status == TaskStatus.DONE
        assert state.result == f"{BASE_URL}/static/{task_id}.png"
        assert state.text == "a fox"
        assert state.cost == 0.04

        path = static_dir / f"{task_id}.png"
        assert path.read_bytes() == PNG_BYTES

    @pytest.mark.asyncio
    async def test_named_provider_is_used(self, static_dir: Path) -> None:
        """provider=openai выбирает OpenAI вместо провайдера по умолчанию."""
        default = StubImageProvider(name="gemini")
        openai_image = StubImageProvider(name="openai")
        service, _, background = build_service(static_dir, image=default, text=openai_image)

        await service.start_task("text-to-image", "a fox", "openai", BASE_URL)
        await background.drain(timeout=5)

        assert openai_image.prompts == ["a fox"]
        assert default.prompts == []

    @pytest.mark.asyncio
    async def test_unknown_provider_falls_back_to_default(self, static_dir: Path) -> None:
        """Неизвестный provider -> провайдер по умолчанию."""
        provider = StubImageProvider()
        service, _, background = build_service(static_dir, image=provider)

        await service.start_task("text-to-image", "a fox", "midjourney", BASE_URL)
        await background.drain(timeout=5)

        assert provider.prompts == ["a fox"]

    @pytest.mark.asyncio
    async def test_provider_error_sets_error_without_file(self, static_dir: Path) -> None:
        """Ошибка provider -> задача error с тем же сообщением, файла нет."""
        provider = StubImageProvider(result=ImageResult(error="quota exceeded"))
        service, store, background = build_service(static_dir, image=provider)

        task_id = await service.start_task("text-to-image", "a fox", None, BASE_URL)
        await background.drain(timeout=5)

        assert await store.get(task_id) == TaskState.failed("quota exceeded")
        assert not (static_dir / f"{task_id}.png").exists()

    @pytest.mark.asyncio
    async def test_missing_buffer_sets_error(self, static_dir: Path) -> None:
        """Provider без ошибки, но без байтов -> error."""
        provider = StubImageProvider(result=ImageResult(text="only text"))
        service, store, background = build_service(static_dir, image=provider)

        task_id = await service.start_task("text-to-image", "a fox", None, BASE_URL)
        await background.drain(timeout=5)

        assert await store.get(task_id) == TaskState.failed("No image data")

    @pytest.mark.asyncio
    async def test_provider_exception_sets_error(self, static_dir: Path) -> None:
        """Исключение provider -> error с текстом исключения."""
        provider = StubImageProvider(exc=RuntimeError("connection reset"))
        service, store, background = build_service(static_dir, image=provider)

        task_id = await service.start_task("text-to-image", "a fox", None, BASE_URL)
        await background.drain(timeout=5)

        assert await store.get(task_id) == TaskState.failed("connection reset")
        assert background.failed == 0

    @pytest.mark.asyncio
    async def test_write_failure_sets_error(self, tmp_path: Path) -> None:
        """Не удалось записать файл -> error "Failed to write file"."""
        blocker = tmp_path / "static"
        blocker.write_text("not a directory")
        service, store, background = build_service(blocker)

        task_id = await service.start_task("text-to-image", "a fox", None, BASE_URL)
        await background.drain(timeout=5)

        assert await store.get(task_id) == TaskState.failed("Failed to write file")


class TestVideoTasks:
    """Тесты text-to-video."""

    @pytest.mark.asyncio
    async def test_success_stores_remote_url(self, static_dir: Path) -> None:
        """URL видео записывается как есть, локальный файл не создаётся."""
        provider = StubVideoProvider(result=VideoResult(video_url="https://x/y.mp4", text="t", cost=0.5))
        service, store, background = build_service(static_dir, video=provider)

        task_id = await service.start_task("text-to-video", "waves", None, BASE_URL)
        await background.drain(timeout=5)

        state = await store.get(task_id)
        assert state is not None
        assert state.model_dump(mode="json", exclude_none=True) == {
            "status": "done",
            "result": "https://x/y.mp4",
            "text": "t",
            "cost": 0.5,
        }
        assert not static_dir.exists() or not any(static_dir.iterdir())

    @pytest.mark.asyncio
    async def test_error_result(self, static_dir: Path) -> None:
        """Ошибка provider видео -> error."""
        provider = StubVideoProvider(result=VideoResult(error="Task failed"))
        service, store, background = build_service(static_dir, video=provider)

        task_id = await service.start_task("text-to-video", "waves", None, BASE_URL)
        await background.drain(timeout=5)

        assert await store.get(task_id) == TaskState.failed("Task failed")


class TestTerminalState:
    """Тесты неизменности терминального состояния."""

    @pytest.mark.asyncio
    async def test_unsupported_type(self, static_dir: Path) -> None:
        """Неизвестный тип задачи -> error "Unsupported task type"."""
        service, store, background = build_service(static_dir)

        task_id = await service.start_task("text-to-audio", "a song", None, BASE_URL)
        await background.drain(timeout=5)

        assert await store.get(task_id) == TaskState.failed("Unsupported task type")

    @pytest.mark.asyncio
    async def test_second_terminal_write_is_ignored(self, static_dir: Path) -> None:
        """Повторная терминальная запись не меняет состояние."""
        service, store, background = build_service(static_dir)

        task_id = await service.start_task("text-to-video", "waves", None, BASE_URL)
        await background.drain(timeout=5)
        first = await store.get(task_id)

        await service._finish(task_id, TaskState.failed("late failure"))

        assert await store.get(task_id) == first
        assert first is not None and first.status == TaskStatus.DONE

    @pytest.mark.asyncio
    async def test_unavailable_provider_sets_error(self, static_dir: Path) -> None:
        """Provider не зарегистрирован -> error, сервис продолжает работать."""
        store = InMemoryTaskStore()
        background = BackgroundTasks()
        service = TaskService(
            store=store,
            registry=ProviderRegistry(),
            background=background,
            static_dir=static_dir,
        )

        task_id = await service.start_task("text-to-video", "waves", None, BASE_URL)
        await background.drain(timeout=5)

        state = await store.get(task_id)
        assert state is not None
        assert state.status == TaskStatus.ERROR
        assert "replicate" in (state.error or "")
