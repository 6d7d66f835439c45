"""Task Service - жизненный цикл задач генерации.

start_task() регистрирует задачу в статусе pending и сразу возвращает ID.
Генерация продолжается в фоновой задаче, которая записывает терминальное
состояние (done или error) ровно один раз.

Example:
    >>> task_id = await service.start_task("text-to-image", "a red fox", None, "https://relay.example.com")
    >>> await store.get(task_id)
    TaskState(status=<TaskStatus.PENDING: 'pending'>, ...)

"""

import asyncio
import uuid
from pathlib import Path

from relay.core.constants import (
    ERROR_FILE_WRITE_FAILED,
    ERROR_NO_IMAGE_DATA,
    ERROR_UNSUPPORTED_TASK_TYPE,
    IMAGE_FILE_EXTENSION,
)
from relay.core.enums import TaskType
from relay.providers.base import ImageResult
from relay.providers.registry import ProviderRegistry
from relay.services.task_store import TaskState, TaskStore
from relay.utils.background import BackgroundTasks
from relay.utils.logging import get_logger
from relay.utils.text import sanitize_prompt

logger = get_logger()


class TaskService:
    """Оркестрация задач text-to-image и text-to-video.

    Attributes:
        store: Хранилище состояний задач
        registry: Реестр AI providers
        background: Runner фоновых задач
        static_dir: Директория для сохранения изображений
        static_url_path: URL префикс, под которым static_dir раздаётся

    """

    def __init__(
        self,
        store: TaskStore,
        registry: ProviderRegistry,
        background: BackgroundTasks,
        static_dir: str | Path,
        static_url_path: str = "/static",
        prompt_max_length: int = 4000,
    ) -> None:
        self.store = store
        self.registry = registry
        self.background = background
        self.static_dir = Path(static_dir)
        self.static_url_path = "/" + static_url_path.strip("/")
        self.prompt_max_length = prompt_max_length

        logger.info("TaskService инициализирован", static_dir=str(self.static_dir))

    async def start_task(
        self,
        task_type: str,
        prompt: str,
        provider: str | None,
        base_url: str,
    ) -> str:
        """Создать задачу и запустить генерацию в фоне.

        Args:
            task_type: Тип задачи ("text-to-image" или "text-to-video")
            prompt: Промпт пользователя
            provider: Имя provider (None = по умолчанию)
            base_url: scheme://host запроса, для ссылки на сохранённый файл

        Returns:
            ID задачи (uuid4)

        Raises:
            EmptyPromptError: Промпт пуст после очистки
            PromptTooLongError: Промпт длиннее лимита

        """
        clean_prompt = sanitize_prompt(prompt, self.prompt_max_length)

        task_id = str(uuid.uuid4())
        await self.store.set(task_id, TaskState.pending())

        logger.info("Задача создана", task_id=task_id, task_type=task_type, provider=provider)

        self.background.spawn(
            self._run(task_id, task_type, clean_prompt, provider, base_url.rstrip("/")),
            name=f"task-{task_id}",
        )

        return task_id

    async def _run(self, task_id: str, task_type: str, prompt: str, provider: str | None, base_url: str) -> None:
        """Фоновая обработка задачи. Любое исключение -> состояние error."""
        try:
            state = await self._process(task_id, task_type, prompt, provider, base_url)
        except Exception as e:
            logger.exception("Ошибка обработки задачи", task_id=task_id, task_type=task_type)
            state = TaskState.failed(str(e) or type(e).__name__)

        await self._finish(task_id, state)

    async def _process(
        self,
        task_id: str,
        task_type: str,
        prompt: str,
        provider: str | None,
        base_url: str,
    ) -> TaskState:
        if task_type == TaskType.TEXT_TO_IMAGE.value:
            image_provider = self.registry.get_image_provider(provider)
            logger.info("Генерация изображения", task_id=task_id, provider=image_provider.name)
            result = await image_provider.generate_image(prompt)
            return await self._finalize_image(task_id, result, base_url)

        if task_type == TaskType.TEXT_TO_VIDEO.value:
            video_provider = self.registry.get_video_provider(provider)
            logger.info("Генерация видео", task_id=task_id, provider=video_provider.name)
            result = await video_provider.generate_video(prompt)
            if result.error:
                return TaskState.failed(result.error)
            if not result.video_url:
                return TaskState.failed("No video URL")
            return TaskState.done(result.video_url, text=result.text, cost=result.cost)

        logger.warning("Неподдерживаемый тип задачи", task_id=task_id, task_type=task_type)
        return TaskState.failed(ERROR_UNSUPPORTED_TASK_TYPE)

    async def _finalize_image(self, task_id: str, result: ImageResult, base_url: str) -> TaskState:
        """Сохранить изображение в static директорию и собрать публичный URL."""
        if result.error:
            return TaskState.failed(result.error)
        if not result.image_buffer:
            return TaskState.failed(ERROR_NO_IMAGE_DATA)

        filename = f"{task_id}{IMAGE_FILE_EXTENSION}"
        path = self.static_dir / filename

        try:
            await asyncio.to_thread(_write_file, path, result.image_buffer)
        except OSError:
            logger.exception("Не удалось сохранить изображение", task_id=task_id, path=str(path))
            return TaskState.failed(ERROR_FILE_WRITE_FAILED)

        url = f"{base_url}{self.static_url_path}/{filename}"
        logger.info("Изображение сохранено", task_id=task_id, path=str(path), size=len(result.image_buffer))

        return TaskState.done(url, text=result.text, cost=result.cost)

    async def _finish(self, task_id: str, state: TaskState) -> None:
        """Записать терминальное состояние, если задача ещё pending."""
        current = await self.store.get(task_id)
        if current is not None and current.is_terminal:
            logger.error(
                "Повторная запись терминального состояния проигнорирована",
                task_id=task_id,
                current=current.status.value,
                attempted=state.status.value,
            )
            return

        await self.store.set(task_id, state)

        if state.error:
            logger.warning("Задача завершена с ошибкой", task_id=task_id, error=state.error)
        else:
            logger.info("Задача выполнена", task_id=task_id, result=state.result)


def _write_file(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
