"""Domain errors.

Доменные исключения приложения.
"""

from relay.core.constants import ERROR_TASK_NOT_FOUND
from relay.shared.errors.base import AppException


class ValidationError(AppException):
    """Ошибка валидации входных данных."""

    status_code = 400
    code = "VALIDATION_ERROR"


class UnauthorizedError(AppException):
    """Неверный или отсутствующий токен."""

    status_code = 401
    public_error = "Unauthorized"


class NotFoundError(AppException):
    """Ресурс не найден."""

    status_code = 404
    code = "NOT_FOUND"


class ConfigurationError(AppException):
    """Сервис не сконфигурирован."""

    status_code = 500


class ServiceUnavailableError(AppException):
    """Сервис недоступен."""

    status_code = 503
    code = "SERVICE_UNAVAILABLE"


class TaskNotFoundError(NotFoundError):
    """Задача не найдена."""

    code = "TASK_NOT_FOUND"
    public_error = ERROR_TASK_NOT_FOUND

    def __init__(self, task_id: str) -> None:
        """Инициализация исключения.

        Args:
            task_id: Идентификатор задачи.

        """
        super().__init__(
            message=f"Задача с ID '{task_id}' не найдена",
            details={"field": "taskId", "context": {"task_id": task_id}},
        )


class WebhookNotConfiguredError(ConfigurationError):
    """Секрет webhook не настроен."""

    public_error = "Webhook token not configured"

    def __init__(self) -> None:
        super().__init__(
            message="GREEN_API_WEBHOOK_TOKEN не установлен",
            details={"field": "green_api_webhook_token"},
        )


class EmptyPromptError(ValidationError):
    """Промпт пуст после очистки."""

    def __init__(self) -> None:
        super().__init__(
            message="Промпт не содержит текста после очистки",
            details={"field": "prompt", "code": "empty"},
        )


class PromptTooLongError(ValidationError):
    """Промпт превышает допустимую длину."""

    def __init__(self, length: int, max_length: int) -> None:
        super().__init__(
            message=f"Длина промпта {length} превышает лимит {max_length}",
            details={"field": "prompt", "code": "too_long", "context": {"max_length": max_length}},
        )


class ProviderUnavailableError(ServiceUnavailableError):
    """Провайдер недоступен."""

    code = "PROVIDER_UNAVAILABLE"

    def __init__(self, provider_name: str, reason: str | None = None) -> None:
        """Инициализация исключения.

        Args:
            provider_name: Название провайдера.
            reason: Причина недоступности.

        """
        message = f"Провайдер '{provider_name}' недоступен"
        if reason:
            message += f": {reason}"

        super().__init__(
            message=message,
            details={"context": {"provider": provider_name, "reason": reason}},
        )


class MessagingError(ServiceUnavailableError):
    """Ошибка отправки сообщения через Green API."""

    code = "MESSAGING_ERROR"

    def __init__(self, chat_id: str, reason: str) -> None:
        """Инициализация исключения.

        Args:
            chat_id: ID чата получателя.
            reason: Описание ошибки.

        """
        super().__init__(
            message=f"Не удалось отправить сообщение в чат '{chat_id}': {reason}",
            details={"context": {"chat_id": chat_id, "reason": reason}},
        )
