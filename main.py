"""WhatsApp AI Relay - Entry Point.

Запускает FastAPI приложение через uvicorn.
"""

import uvicorn

from relay.config import settings


def main() -> None:
    """Запустить WhatsApp AI Relay."""
    uvicorn.run(
        "relay.app:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=settings.debug,
        # Задачи и кеш дедупликации живут в памяти процесса
        workers=1,
    )


if __name__ == "__main__":
    main()
