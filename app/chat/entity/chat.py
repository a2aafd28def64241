# app/chat/entity/chat.py
"""
Entities for stored chat exchanges.
A ChatTurn is written once per dispatch attempt and never updated.
Sessions are not stored; SessionSummary is computed from turns on read.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.llm.entity.result import ResultStatus


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


class ChatTurn(BaseModel):
    """One user message and the assistant's reply."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    session_id: str
    user_message: str
    ai_response: str
    model: str
    provider: str
    response_time: int = Field(ge=0)
    status: ResultStatus
    created_at: datetime = Field(default_factory=utc_now)
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None


class SessionSummary(BaseModel):
    session_id: str
    last_message: datetime
    message_count: int
    models: List[str] = Field(default_factory=list)
    providers: List[str] = Field(default_factory=list)


class UsageStat(BaseModel):
    """Count and mean latency for one model or provider."""
    key: str
    count: int
    avg_response_time: float


class UsageAggregates(BaseModel):
    total_chats: int = 0
    model_stats: List[UsageStat] = Field(default_factory=list)
    provider_stats: List[UsageStat] = Field(default_factory=list)
    recent_chats: List[ChatTurn] = Field(default_factory=list)
