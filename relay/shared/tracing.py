"""Trace context.

trace_id живёт в ContextVar и проставляется middleware на каждый HTTP запрос.
Фоновые задачи (asyncio.create_task) копируют контекст при создании,
поэтому логи генерации несут trace_id запроса, который их запустил.
"""

from contextvars import ContextVar
from typing import Any
from uuid import uuid4

TRACE_HEADER = "X-Trace-Id"

trace_id_var: ContextVar[str] = ContextVar("trace_id", default="")


def get_trace_id() -> str:
    """Получить текущий trace_id или сгенерировать новый.

    Returns:
        Строка trace_id.

    """
    trace_id = trace_id_var.get()
    if not trace_id:
        trace_id = str(uuid4())
        trace_id_var.set(trace_id)
    return trace_id


def set_trace_id(trace_id: str) -> None:
    """Установить trace_id в контекст."""
    trace_id_var.set(trace_id)


class TraceContextMiddleware:
    """ASGI middleware: берёт X-Trace-Id из запроса (или создаёт) и возвращает его в ответе."""

    def __init__(self, app: Any) -> None:
        self.app = app

    async def __call__(self, scope: dict, receive: Any, send: Any) -> None:
        """Обработка запроса с установкой trace_id.

        Args:
            scope: ASGI scope.
            receive: ASGI receive callable.
            send: ASGI send callable.

        """
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        trace_id = headers.get(TRACE_HEADER.lower().encode(), b"").decode("latin-1") or str(uuid4())
        token = trace_id_var.set(trace_id)

        async def send_with_trace(message: dict) -> None:
            if message["type"] == "http.response.start":
                response_headers = list(message.get("headers", []))
                names = {name.lower() for name, _ in response_headers}
                if TRACE_HEADER.lower().encode() not in names:
                    response_headers.append((TRACE_HEADER.encode(), trace_id.encode("latin-1")))
                message["headers"] = response_headers
            await send(message)

        try:
            await self.app(scope, receive, send_with_trace)
        finally:
            trace_id_var.reset(token)
