import time
from datetime import datetime, timezone

from fastapi import HTTPException

from app.chat.service.service import IChatRepository
from app.core.logger import get_logger
from app.llm.api.dto import (
    DatabaseStats,
    HealthResponse,
    ModelsResponse,
    ProviderInfo,
    RecentChatDTO,
    StatsResponse,
    UsageStatDTO,
)
from app.llm.service.registry import ProviderRegistry
from app.llm.service.usage_tracker import UsageTracker

logger = get_logger("SystemHandler")


class SystemHandler:
    """Handler for health, capability and usage endpoints."""

    def __init__(
        self,
        registry: ProviderRegistry,
        usage: UsageTracker,
        chat_repository: IChatRepository,
        started_at: float,
    ):
        self.registry = registry
        self.usage = usage
        self.chat_repository = chat_repository
        self.started_at = started_at

    async def health(self) -> HealthResponse:
        try:
            connected = await self.chat_repository.ping()
        except Exception as e:
            logger.warning(f"Database ping failed: {e}")
            connected = False
        return HealthResponse(
            status="ok",
            timestamp=datetime.now(timezone.utc),
            supported_providers=self.registry.names(),
            provider_status=self.registry.status_map(),
            api_keys=self.registry.api_key_map(),
            database="connected" if connected else "disconnected",
        )

    def models(self) -> ModelsResponse:
        return ModelsResponse(providers=[ProviderInfo(**entry) for entry in self.registry.describe()])

    async def stats(self) -> StatsResponse:
        try:
            aggregates = await self.chat_repository.usage_aggregates(recent=10)
        except Exception as e:
            logger.error(f"Error fetching statistics: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch statistics")

        snapshot = self.usage.snapshot()
        return StatsResponse(
            total_requests=snapshot["totalRequests"],
            model_usage=snapshot["modelUsage"],
            provider_usage=snapshot["providerUsage"],
            errors=snapshot["errors"],
            request_history=snapshot["requestHistory"],
            database=DatabaseStats(
                total_chats=aggregates.total_chats,
                model_stats=[UsageStatDTO.from_entity(s) for s in aggregates.model_stats],
                provider_stats=[UsageStatDTO.from_entity(s) for s in aggregates.provider_stats],
                recent_chats=[RecentChatDTO.from_entity(t) for t in aggregates.recent_chats],
            ),
            uptime=round(time.monotonic() - self.started_at, 3),
            timestamp=datetime.now(timezone.utc),
        )
