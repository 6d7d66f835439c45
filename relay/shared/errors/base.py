"""Base exception class for application errors.

Базовая логика исключений с автогенерацией кодов и сообщений.
"""

import re
from typing import Any

from loguru import logger
from pydantic import ValidationError

from relay.shared.errors.schemas import ErrorDetail, ErrorResponse, SimpleErrorResponse
from relay.shared.tracing import get_trace_id


class AppException(Exception):
    """Базовый класс для всех бизнес-ошибок.

    Автоматика:
    - Генерация code из имени класса (TaskNotFound -> TASK_NOT_FOUND)
    - Генерация default_message из docstring
    - Валидация details через Pydantic

    Если у класса задан public_error, клиент получает короткое тело
    {"error": public_error} вместо полного ErrorResponse. Так отвечают
    публичные endpoints задач и webhook, у которых фиксированный формат.
    """

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    default_message: str = "Внутренняя ошибка сервера"
    public_error: str | None = None

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | ErrorDetail | None = None,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        """Инициализация исключения.

        Args:
            message: Сообщение об ошибке (для логов и полного ответа).
            details: Поля ErrorDetail (field, message, code, context).
            status_code: HTTP статус код.
            code: Код ошибки.

        Raises:
            ValueError: Если details не соответствуют ErrorDetail.

        """
        self.message = message or self.default_message

        if isinstance(details, ErrorDetail):
            self.details = details.model_dump(exclude_none=True)
        elif details is not None:
            try:
                self.details = ErrorDetail(**details).model_dump(exclude_none=True)
            except ValidationError as e:
                logger.exception("Некорректные details", exception_class=type(self).__name__)
                msg = "Invalid details format"
                raise ValueError(msg) from e
        else:
            self.details = {}

        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code

        super().__init__(self.message)

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)

        if "code" not in cls.__dict__:
            name = cls.__name__
            for suffix in ("Exception", "Error"):
                if name.endswith(suffix):
                    name = name[: -len(suffix)]
                    break
            cls.code = re.sub(r"(?<!^)(?=[A-Z])", "_", name).upper()

        if "default_message" not in cls.__dict__ and cls.__doc__:
            cls.default_message = cls.__doc__.strip().split("\n")[0]

    def to_response(self) -> ErrorResponse | SimpleErrorResponse:
        """Сериализация в Pydantic модель ответа.

        Returns:
            SimpleErrorResponse для ошибок с public_error, иначе ErrorResponse.

        """
        if self.public_error is not None:
            return SimpleErrorResponse(error=self.public_error)

        return ErrorResponse(
            error=self.code,
            message=self.message,
            details=self.details,
            trace_id=get_trace_id(),
        )

    @classmethod
    def openapi_response(cls) -> dict[str, Any]:
        """Генерация OpenAPI описания ответа для `responses=` в роутерах.

        Returns:
            Словарь с OpenAPI схемой ответа.

        """
        if cls.public_error is not None:
            return {
                "model": SimpleErrorResponse,
                "description": cls.default_message,
                "content": {"application/json": {"example": {"error": cls.public_error}}},
            }

        return {
            "model": ErrorResponse,
            "description": cls.default_message,
            "content": {
                "application/json": {
                    "example": {
                        "error": cls.code,
                        "message": cls.default_message,
                        "details": {},
                        "trace_id": "example-trace-id",
                    }
                }
            },
        }
