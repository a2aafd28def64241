from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.chat.entity.chat import ChatTurn, SessionSummary
from app.core.dto import CamelModel, Pagination


class ChatRequest(CamelModel):
    # optional at the schema level so missing fields get the API's own 400 messages
    message: Optional[str] = None
    model: Optional[str] = None
    provider: Optional[str] = None
    session_id: Optional[str] = None


class ContextUsed(CamelModel):
    conversation_history: bool
    uploaded_files: bool
    history_count: int
    files_count: int


class ChatResponse(CamelModel):
    response: str
    model: str
    provider: str
    status: str
    session_id: str
    timestamp: datetime
    context_used: ContextUsed


class ChatTurnDTO(CamelModel):
    id: str
    user_message: str
    ai_response: str
    model: str
    provider: str
    status: str
    response_time: int
    timestamp: datetime

    @classmethod
    def from_entity(cls, turn: ChatTurn) -> "ChatTurnDTO":
        return cls(
            id=turn.id,
            user_message=turn.user_message,
            ai_response=turn.ai_response,
            model=turn.model,
            provider=turn.provider,
            status=turn.status.value,
            response_time=turn.response_time,
            timestamp=turn.created_at,
        )


class HistoryResponse(CamelModel):
    session_id: str
    chats: List[ChatTurnDTO]
    pagination: Pagination


class SessionDTO(CamelModel):
    session_id: str = Field(alias="_id")
    last_message: datetime
    message_count: int
    models: List[str]
    providers: List[str]

    @classmethod
    def from_entity(cls, summary: SessionSummary) -> "SessionDTO":
        return cls(
            session_id=summary.session_id,
            last_message=summary.last_message,
            message_count=summary.message_count,
            models=summary.models,
            providers=summary.providers,
        )


class SessionsResponse(CamelModel):
    sessions: List[SessionDTO]
    pagination: Pagination


class DeleteHistoryResponse(CamelModel):
    message: str
    deleted_count: int
    session_id: str
