"""Task Store - хранилище состояний задач генерации.

Хранит только последнее состояние задачи по её ID. Частичных обновлений нет:
каждая запись целиком заменяет предыдущую.

Хранилище in-memory и живёт ровно столько, сколько процесс. Задачи не
удаляются, объём растёт с количеством запусков.
"""

from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field, model_validator

from relay.core.enums import TaskStatus
from relay.utils.logging import get_logger

logger = get_logger()


class TaskState(BaseModel):
    """Состояние задачи генерации.

    Отдаётся клиенту как есть через GET /task-status/{taskId}
    (поля со значением None опускаются).
    """

    status: TaskStatus = Field(..., description="Статус задачи")
    result: str | None = Field(default=None, description="URL результата (только для done)")
    text: str | None = Field(default=None, description="Текст от провайдера")
    cost: float | None = Field(default=None, description="Стоимость генерации")
    error: str | None = Field(default=None, description="Описание ошибки (только для error)")

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {"status": "pending"},
                {
                    "status": "done",
                    "result": "https://relay.example.com/static/5f0c.png",
                    "text": "A red fox in the snow",
                    "cost": 0.04,
                },
                {"status": "error", "error": "Failed to write file"},
            ]
        },
    }

    @model_validator(mode="after")
    def check_consistency(self) -> "TaskState":
        """Проверить, что result и error соответствуют статусу."""
        if self.result is not None and self.status != TaskStatus.DONE:
            msg = "result допустим только для статуса done"
            raise ValueError(msg)
        if self.error is not None and self.status != TaskStatus.ERROR:
            msg = "error допустим только для статуса error"
            raise ValueError(msg)
        if self.status == TaskStatus.ERROR and not self.error:
            msg = "для статуса error нужно описание ошибки"
            raise ValueError(msg)
        return self

    @property
    def is_terminal(self) -> bool:
        """Задача завершена (done или error)."""
        return self.status != TaskStatus.PENDING

    @classmethod
    def pending(cls) -> "TaskState":
        return cls(status=TaskStatus.PENDING)

    @classmethod
    def done(cls, result: str | None, text: str | None = None, cost: float | None = None) -> "TaskState":
        return cls(status=TaskStatus.DONE, result=result, text=text, cost=cost)

    @classmethod
    def failed(cls, error: str) -> "TaskState":
        return cls(status=TaskStatus.ERROR, error=error)


@runtime_checkable
class TaskStore(Protocol):
    """Контракт хранилища задач.

    set() перезаписывает состояние целиком, get() возвращает текущее
    состояние или None, если задача не создавалась.
    """

    async def get(self, task_id: str) -> TaskState | None:
        """Получить состояние задачи."""
        ...

    async def set(self, task_id: str, state: TaskState) -> None:
        """Записать состояние задачи."""
        ...

    def __len__(self) -> int:
        """Количество задач в хранилище."""
        ...


class InMemoryTaskStore:
    """Хранилище задач в памяти процесса.

    Единственный владелец записей. Создаётся при старте приложения и
    передаётся через app.state, глобального словаря нет.
    """

    def __init__(self) -> None:
        """Инициализировать пустое хранилище."""
        self._tasks: dict[str, TaskState] = {}

    async def get(self, task_id: str) -> TaskState | None:
        """Получить состояние задачи по ID.

        Args:
            task_id: ID задачи

        Returns:
            Состояние задачи или None

        """
        return self._tasks.get(task_id)

    async def set(self, task_id: str, state: TaskState) -> None:
        """Сохранить состояние задачи (полная замена записи).

        Args:
            task_id: ID задачи
            state: Новое состояние

        """
        self._tasks[task_id] = state
        logger.debug("Состояние задачи записано", task_id=task_id, status=state.status.value)

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks
