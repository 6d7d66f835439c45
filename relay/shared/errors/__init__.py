"""Shared errors module.

Система обработки ошибок приложения.
"""

from relay.shared.errors.base import AppException
from relay.shared.errors.domain_errors import (
    ConfigurationError,
    EmptyPromptError,
    MessagingError,
    NotFoundError,
    PromptTooLongError,
    ProviderUnavailableError,
    ServiceUnavailableError,
    TaskNotFoundError,
    UnauthorizedError,
    ValidationError,
    WebhookNotConfiguredError,
)
from relay.shared.errors.handlers import setup_exception_handlers
from relay.shared.errors.schemas import ErrorDetail, ErrorResponse, SimpleErrorResponse

__all__ = [
    # Base
    "AppException",
    # Domain errors
    "ValidationError",
    "EmptyPromptError",
    "PromptTooLongError",
    "UnauthorizedError",
    "NotFoundError",
    "TaskNotFoundError",
    "ConfigurationError",
    "WebhookNotConfiguredError",
    "ServiceUnavailableError",
    "ProviderUnavailableError",
    "MessagingError",
    # Handlers
    "setup_exception_handlers",
    # Schemas
    "ErrorDetail",
    "ErrorResponse",
    "SimpleErrorResponse",
]
