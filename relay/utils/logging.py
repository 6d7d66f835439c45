"""WhatsApp AI Relay - Logging Configuration.

Настройка Loguru для структурированного логирования.

Этот модуль настраивает единый логгер для всего приложения:
- Loguru для собственных логов (формат, цвета, структурированность)
- Перехват логов сторонних библиотек (uvicorn, fastapi, httpx, openai) в Loguru
- trace_id HTTP запроса в каждой записи
"""

import json
import logging
import sys
from typing import TYPE_CHECKING, Any

from loguru import logger

from relay.config import Settings, settings as default_settings
from relay.shared.tracing import trace_id_var

if TYPE_CHECKING:
    from loguru import Logger

# Ключи extra, значения которых не должны попадать в логи
SENSITIVE_KEYS = frozenset({"password", "token", "secret", "api_key", "access_token", "api_token"})


class InterceptHandler(logging.Handler):
    """Handler для перехвата логов стандартного logging и перенаправления в Loguru.

    uvicorn, httpx и openai пишут через стандартный logging. Чтобы все логи
    были в едином формате, перехватываем их через этот handler.
    """

    def emit(self, record: logging.LogRecord) -> None:
        """Перенаправить одну запись стандартного logging в Loguru.

        Args:
            record: Запись лога из стандартного logging
        """
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = str(record.levelno)

        frame = logging.currentframe()
        depth = 2

        if frame:
            while frame.f_code.co_filename == logging.__file__:
                if frame.f_back:
                    frame = frame.f_back
                    depth += 1
                else:
                    break

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def trace_patcher(record: dict[str, Any]) -> None:
    """Добавить trace_id текущего запроса в record["extra"]."""
    trace_id = trace_id_var.get()
    if trace_id and "trace_id" not in record["extra"]:
        record["extra"]["trace_id"] = trace_id


def json_formatter(record: dict[str, Any]) -> str:
    """JSON formatter для production логирования.

    Args:
        record: Record от Loguru

    Returns:
        Шаблон формата, ссылающийся на сериализованную запись
    """
    log_entry = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "module": record["name"],
        "function": record["function"],
        "line": record["line"],
    }

    for key, value in record["extra"].items():
        if key == "serialized":
            continue
        log_entry[key] = "***REDACTED***" if key in SENSITIVE_KEYS else value

    if record.get("exception"):
        exc_type, exc_value, _ = record["exception"]
        log_entry["exception"] = {
            "type": exc_type.__name__ if exc_type else None,
            "value": str(exc_value) if exc_value else None,
        }

    # Loguru трактует результат форматтера как шаблон, поэтому JSON кладём в extra
    record["extra"]["serialized"] = json.dumps(log_entry, ensure_ascii=False, default=str)
    return "{extra[serialized]}\n"


def setup_logging(config: Settings | None = None) -> None:
    """Настроить Loguru для всего приложения.

    Конфигурация:
    - development: human-readable в stdout с цветами
    - остальные окружения: JSON для structured logging
    - debug: дополнительно ротируемый файл в logs/
    """
    config = config or default_settings

    logger.remove()
    logger.configure(patcher=trace_patcher)

    dev_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level> | {extra}"
    )

    if config.app_env == "development":
        logger.add(
            sys.stdout,
            format=dev_format,
            level=config.log_level,
            colorize=True,
            backtrace=True,
            diagnose=True,
        )
    else:
        logger.add(
            sys.stdout,
            format=json_formatter,
            level=config.log_level,
            backtrace=True,
            diagnose=False,
            enqueue=True,
        )

    if config.debug:
        logger.add(
            "logs/relay_{time:YYYY-MM-DD}.log",
            format=json_formatter,
            level="DEBUG",
            rotation="50 MB",
            retention="7 days",
            compression="zip",
            backtrace=True,
            diagnose=True,
        )

    configure_third_party_loggers(config)

    logger.info("Логгер настроен", level=config.log_level, env=config.app_env)


def configure_third_party_loggers(config: Settings | None = None) -> None:
    """Перехватить логи сторонних библиотек и выставить их уровни.

    access-логи uvicorn и httpx в production понижаются до WARNING,
    иначе каждый webhook от Green API даёт по две строки INFO.
    """
    config = config or default_settings

    logging.root.handlers = []
    logging.root.setLevel(logging.INFO)

    loggers_to_configure = [
        "",
        "uvicorn",
        "uvicorn.access",
        "uvicorn.error",
        "fastapi",
        "httpx",
        "openai",
    ]

    for logger_name in loggers_to_configure:
        logging_logger = logging.getLogger(logger_name)
        logging_logger.handlers.clear()
        logging_logger.addHandler(InterceptHandler())
        logging_logger.propagate = False

        if logger_name in {"uvicorn.access", "httpx", "openai"}:
            logging_logger.setLevel(logging.WARNING if config.app_env == "production" else logging.INFO)
        else:
            logging_logger.setLevel(logging.INFO)

    logger.debug("Сторонние логгеры настроены")


def get_logger(name: str | None = None) -> "Logger":
    """Получить настроенный logger instance.

    Args:
        name: Имя компонента (попадает в extra)

    Returns:
        Loguru logger
    """
    if name:
        return logger.bind(name=name)
    return logger
