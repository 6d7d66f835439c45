"""Tasks API Routes для WhatsApp AI Relay.

Endpoints запуска задачи генерации и опроса её статуса.
"""

from fastapi import APIRouter, status

from relay.api.schemas.requests import StartTaskRequest
from relay.api.schemas.responses import StartTaskResponse
from relay.core.dependencies import PublicBaseUrlDep, TaskServiceDep, TaskStoreDep
from relay.services.task_store import TaskState
from relay.shared.errors import ErrorResponse, TaskNotFoundError
from relay.utils.logging import get_logger

logger = get_logger()

router = APIRouter(tags=["tasks"])


@router.post(
    "/start-task",
    status_code=status.HTTP_200_OK,
    response_model=StartTaskResponse,
    summary="Запустить задачу генерации",
    description=(
        "Регистрирует задачу в статусе pending и сразу возвращает её ID. "
        "Генерация продолжается в фоне, результат доступен через /task-status/{taskId}"
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Невалидный запрос"},
    },
)
async def start_task(
    request: StartTaskRequest,
    service: TaskServiceDep,
    base_url: PublicBaseUrlDep,
) -> StartTaskResponse:
    """Запустить задачу генерации.

    Args:
        request: Тип задачи, промпт и опциональный provider
        service: Сервис задач
        base_url: Base URL для ссылки на результат

    Returns:
        StartTaskResponse с taskId

    Raises:
        EmptyPromptError: Промпт пуст после очистки (400)
        PromptTooLongError: Промпт длиннее лимита (400)

    """
    task_id = await service.start_task(request.type, request.prompt, request.provider, base_url)
    return StartTaskResponse(task_id=task_id)


@router.get(
    "/task-status/{task_id}",
    response_model=TaskState,
    response_model_exclude_none=True,
    summary="Получить статус задачи",
    description="Возвращает текущее состояние задачи (pending, done или error)",
    responses={
        404: TaskNotFoundError.openapi_response(),
    },
)
async def get_task_status(task_id: str, store: TaskStoreDep) -> TaskState:
    """Получить состояние задачи.

    Args:
        task_id: ID задачи
        store: Хранилище задач

    Returns:
        Текущее состояние задачи

    Raises:
        TaskNotFoundError: Задача не найдена (404)

    """
    state = await store.get(task_id)
    if state is None:
        raise TaskNotFoundError(task_id)
    return state
