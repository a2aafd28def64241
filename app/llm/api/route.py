# app/llm/api/route.py

from fastapi import APIRouter, Depends, Request

from app.llm.api.dto import HealthResponse, ModelsResponse, StatsResponse
from app.llm.api.handler import SystemHandler


def get_system_handler(request: Request) -> SystemHandler:
    state = request.app.state
    return SystemHandler(
        registry=state.registry,
        usage=state.usage,
        chat_repository=state.chat_repository,
        started_at=state.started_at,
    )


system_router = APIRouter(prefix="/api", tags=["System"])


@system_router.get("/health", response_model=HealthResponse)
async def health(handler: SystemHandler = Depends(get_system_handler)):
    """Liveness plus provider configuration status."""
    return await handler.health()


@system_router.get("/models", response_model=ModelsResponse)
async def get_models(handler: SystemHandler = Depends(get_system_handler)):
    """Providers, their models and whether a credential is configured."""
    return handler.models()


@system_router.get("/stats", response_model=StatsResponse)
async def get_stats(handler: SystemHandler = Depends(get_system_handler)):
    return await handler.stats()
