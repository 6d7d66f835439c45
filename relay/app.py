"""WhatsApp AI Relay - FastAPI Application.

Главное приложение с инициализацией всех компонентов.
"""

import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from prometheus_fastapi_instrumentator import Instrumentator

from relay.api.routes import health, tasks, webhook
from relay.config import Settings, settings as default_settings
from relay.core.constants import SERVICE_VERSION
from relay.providers.registry import ProviderRegistry, create_provider_registry
from relay.services.conversation_store import ConversationStore
from relay.services.dedup_cache import DedupCache
from relay.services.green_api import GreenApiClient, Messenger
from relay.services.task_service import TaskService
from relay.services.task_store import InMemoryTaskStore, TaskStore
from relay.shared.errors import setup_exception_handlers
from relay.shared.tracing import TraceContextMiddleware
from relay.utils.background import BackgroundTasks
from relay.utils.logging import get_logger, setup_logging
from relay.whatsapp.dispatcher import WebhookDispatcher
from relay.whatsapp.handlers import MessageHandlers

logger = get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan context manager для startup/shutdown.

    Компоненты создаются в create_app(), здесь только логирование и
    аккуратная остановка: дождаться фоновых задач и закрыть HTTP клиенты.
    """
    # =================================================================
    # Startup
    # =================================================================
    config: Settings = app.state.settings
    logger.info(
        "WhatsApp AI Relay запускается",
        env=config.app_env,
        debug=config.debug,
        log_level=config.log_level,
        static_dir=config.static_dir,
        webhook_configured=bool(config.green_api_webhook_token),
    )

    yield

    # =================================================================
    # Shutdown
    # =================================================================
    logger.info("WhatsApp AI Relay останавливается", pending=app.state.background.pending)

    await app.state.background.drain(timeout=config.shutdown_drain_timeout_seconds)
    logger.info("Фоновые задачи завершены")

    await app.state.provider_registry.cleanup_all()
    logger.info("Providers cleanup выполнен")

    if isinstance(app.state.messenger, GreenApiClient):
        await app.state.messenger.close()

    logger.info("WhatsApp AI Relay остановлен")


def create_app(
    config: Settings | None = None,
    registry: ProviderRegistry | None = None,
    messenger: Messenger | None = None,
    task_store: TaskStore | None = None,
) -> FastAPI:
    """Создание и настройка FastAPI приложения.

    Args:
        config: Настройки (по умолчанию из окружения)
        registry: Реестр providers (по умолчанию OpenAI, Gemini, Replicate)
        messenger: Отправка сообщений (по умолчанию Green API)
        task_store: Хранилище задач (по умолчанию in-memory)

    Returns:
        Настроенный экземпляр FastAPI приложения

    """
    config = config or default_settings

    # =================================================================
    # Компоненты
    # =================================================================
    background = BackgroundTasks()
    store = task_store or InMemoryTaskStore()
    registry = registry or create_provider_registry(config)
    dedup = DedupCache(ttl_seconds=config.dedup_ttl_seconds, max_size=config.dedup_max_size)
    # Собственные исходящие сообщения помечаются обработанными, их эхо-webhook пропускается
    messenger = messenger or GreenApiClient(config=config, on_sent=dedup.mark)
    conversations = ConversationStore(
        max_messages=config.conversation_max_messages,
        conversation_ttl=config.conversation_ttl_seconds,
        max_conversations=config.conversation_max_chats,
    )

    task_service = TaskService(
        store=store,
        registry=registry,
        background=background,
        static_dir=config.static_dir,
        static_url_path=config.static_url_path,
        prompt_max_length=config.prompt_max_length,
    )
    handlers = MessageHandlers(
        messenger=messenger,
        registry=registry,
        conversations=conversations,
        ack_message=config.chat_ack_message,
        error_message=config.chat_error_message,
        cleared_message=config.chat_cleared_message,
    )
    dispatcher = WebhookDispatcher(handlers=handlers, dedup=dedup, background=background)

    # =================================================================
    # FastAPI Application
    # =================================================================
    app = FastAPI(
        title=config.app_name,
        description="Асинхронный relay между WhatsApp (Green API) и AI провайдерами генерации",
        version=SERVICE_VERSION,
        lifespan=lifespan,
        debug=config.debug,
        docs_url="/docs" if config.debug else None,
        redoc_url="/redoc" if config.debug else None,
    )

    app.state.settings = config
    app.state.background = background
    app.state.task_store = store
    app.state.provider_registry = registry
    app.state.dedup_cache = dedup
    app.state.messenger = messenger
    app.state.conversations = conversations
    app.state.task_service = task_service
    app.state.webhook_dispatcher = dispatcher

    # =================================================================
    # Middleware
    # =================================================================
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def timing_middleware(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        """Логирование запроса и времени его выполнения."""
        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)

        response.headers["X-Duration-Ms"] = str(duration_ms)
        logger.debug(
            f"{request.method} {request.url.path} - {response.status_code}",
            duration_ms=duration_ms,
        )
        return response

    # Последним, чтобы trace_id был выставлен до остальных middleware
    app.add_middleware(TraceContextMiddleware)

    setup_exception_handlers(app)

    if config.app_env != "development":
        Instrumentator().instrument(app).expose(app)
        logger.info("Prometheus metrics enabled на /metrics")

    # =================================================================
    # Routes
    # =================================================================
    app.include_router(tasks.router)
    app.include_router(webhook.router)
    app.include_router(health.router)

    static_dir = Path(config.static_dir)
    static_dir.mkdir(parents=True, exist_ok=True)
    app.mount(config.static_url_path, StaticFiles(directory=static_dir), name="static")

    @app.get("/", tags=["root"])
    async def root() -> dict[str, str]:
        """Информация о сервисе."""
        return {
            "service": config.app_name,
            "version": SERVICE_VERSION,
            "status": "running",
            "docs": "/docs" if config.debug else "disabled",
        }

    return app


setup_logging()
app = create_app()
