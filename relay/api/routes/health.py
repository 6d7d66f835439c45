"""Health check endpoint."""

from fastapi import APIRouter, Request

from relay.api.schemas.responses import HealthCheckResponse
from relay.core.constants import SERVICE_NAME, SERVICE_VERSION

router = APIRouter(tags=["monitoring"])


@router.get("/health", summary="Health check")
async def health(request: Request) -> HealthCheckResponse:
    """Состояние процесса: задачи в памяти, фоновые задачи, providers."""
    state = request.app.state
    return HealthCheckResponse(
        status="ok",
        service=SERVICE_NAME,
        version=SERVICE_VERSION,
        tasks=len(state.task_store),
        background_tasks=state.background.pending,
        providers=state.provider_registry.list_providers(),
    )
