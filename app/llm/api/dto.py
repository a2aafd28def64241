# app/llm/api/dto.py
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from app.chat.entity.chat import ChatTurn, UsageStat
from app.core.dto import CamelModel


class HealthResponse(CamelModel):
    status: str
    timestamp: datetime
    supported_providers: List[str]
    provider_status: Dict[str, str]
    api_keys: Dict[str, bool]
    database: str


class ProviderInfo(CamelModel):
    name: str
    models: List[str]
    status: str
    has_api_key: bool


class ModelsResponse(CamelModel):
    providers: List[ProviderInfo]


class UsageStatDTO(CamelModel):
    key: str = Field(alias="_id")
    count: int
    avg_response_time: float

    @classmethod
    def from_entity(cls, stat: UsageStat) -> "UsageStatDTO":
        return cls(key=stat.key, count=stat.count, avg_response_time=stat.avg_response_time)


class RecentChatDTO(CamelModel):
    id: str = Field(alias="_id")
    model: str
    provider: str
    status: str
    response_time: int
    timestamp: datetime

    @classmethod
    def from_entity(cls, turn: ChatTurn) -> "RecentChatDTO":
        return cls(
            id=turn.id,
            model=turn.model,
            provider=turn.provider,
            status=turn.status.value,
            response_time=turn.response_time,
            timestamp=turn.created_at,
        )


class DatabaseStats(CamelModel):
    total_chats: int
    model_stats: List[UsageStatDTO]
    provider_stats: List[UsageStatDTO]
    recent_chats: List[RecentChatDTO]


class StatsResponse(CamelModel):
    total_requests: int
    model_usage: Dict[str, int]
    provider_usage: Dict[str, int]
    errors: Dict[str, int]
    request_history: List[Dict[str, Optional[Any]]]
    database: DatabaseStats
    uptime: float
    timestamp: datetime
