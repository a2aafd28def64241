from datetime import datetime, timezone

from fastapi import HTTPException, Request

from app.chat.api.dto import (
    ChatRequest,
    ChatResponse,
    ChatTurnDTO,
    ContextUsed,
    DeleteHistoryResponse,
    HistoryResponse,
    SessionDTO,
    SessionsResponse,
)
from app.chat.service.chat_service import ChatService, ClientInfo
from app.core.dto import Pagination
from app.core.logger import get_logger
from app.llm.entity.result import parse_provider_name

logger = get_logger("ChatHandler")


def client_info(request: Request) -> ClientInfo:
    return ClientInfo(
        user_agent=request.headers.get("user-agent"),
        ip_address=request.client.host if request.client else None,
    )


async def handle_chat(body: ChatRequest, chat_service: ChatService, client: ClientInfo) -> ChatResponse:
    """Validate, then run one exchange. Provider failures come back as status=error with HTTP 200."""
    if not body.message or not body.message.strip():
        logger.warning("Validation Error: Message is required")
        raise HTTPException(status_code=400, detail="Message is required")

    if not body.model or not body.provider:
        logger.warning("Validation Error: Model and provider are required")
        raise HTTPException(status_code=400, detail="Model and provider are required")

    provider = parse_provider_name(body.provider)
    if provider is None:
        logger.warning(f"Validation Error: Unsupported provider: {body.provider}")
        raise HTTPException(status_code=400, detail=f"Unsupported provider: {body.provider}")

    outcome = await chat_service.send(
        message=body.message,
        provider=provider,
        model=body.model,
        session_id=body.session_id,
        client=client,
    )
    result, context = outcome.result, outcome.context
    return ChatResponse(
        response=result.response,
        model=result.model,
        provider=result.provider.value,
        status=result.status.value,
        session_id=outcome.session_id,
        timestamp=datetime.now(timezone.utc),
        context_used=ContextUsed(
            conversation_history=context.history_count > 0,
            uploaded_files=context.files_count > 0,
            history_count=context.history_count,
            files_count=context.files_count,
        ),
    )


async def handle_history(session_id: str, limit: int, page: int, chat_service: ChatService) -> HistoryResponse:
    chats, total = await chat_service.history(session_id, limit=limit, page=page)
    return HistoryResponse(
        session_id=session_id,
        chats=[ChatTurnDTO.from_entity(c) for c in chats],
        pagination=Pagination.build(page=page, limit=limit, total=total),
    )


async def handle_sessions(limit: int, page: int, chat_service: ChatService) -> SessionsResponse:
    sessions, total = await chat_service.sessions(limit=limit, page=page)
    return SessionsResponse(
        sessions=[SessionDTO.from_entity(s) for s in sessions],
        pagination=Pagination.build(page=page, limit=limit, total=total),
    )


async def handle_delete_history(session_id: str, chat_service: ChatService) -> DeleteHistoryResponse:
    deleted = await chat_service.delete_history(session_id)
    return DeleteHistoryResponse(
        message="Chat history deleted successfully",
        deleted_count=deleted,
        session_id=session_id,
    )
