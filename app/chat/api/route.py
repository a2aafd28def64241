from fastapi import APIRouter, Depends, Query, Request

from app.chat.api.dto import ChatRequest, ChatResponse, DeleteHistoryResponse, HistoryResponse, SessionsResponse
from app.chat.api.handler import (
    client_info,
    handle_chat,
    handle_delete_history,
    handle_history,
    handle_sessions,
)
from app.chat.service.chat_service import ChatService

chat_router = APIRouter(prefix="/api", tags=["Chat"])


def get_chat_service(request: Request) -> ChatService:
    """Dependency to get chat service from app.state."""
    return request.app.state.chat_service


@chat_router.post("/chat", response_model=ChatResponse)
async def chat_api(
    body: ChatRequest,
    request: Request,
    chat_service: ChatService = Depends(get_chat_service),
):
    """Send a message to the chosen provider with session context attached."""
    return await handle_chat(body, chat_service, client_info(request))


@chat_router.get("/history/{session_id}", response_model=HistoryResponse)
async def get_history(
    session_id: str,
    limit: int = Query(default=50, ge=1, le=500),
    page: int = Query(default=1, ge=1),
    chat_service: ChatService = Depends(get_chat_service),
):
    """Paginated turns for a session, oldest first."""
    return await handle_history(session_id, limit, page, chat_service)


@chat_router.get("/sessions", response_model=SessionsResponse)
async def list_sessions(
    limit: int = Query(default=20, ge=1, le=200),
    page: int = Query(default=1, ge=1),
    chat_service: ChatService = Depends(get_chat_service),
):
    """Session summaries, most recently active first."""
    return await handle_sessions(limit, page, chat_service)


@chat_router.delete("/history/{session_id}", response_model=DeleteHistoryResponse)
async def delete_history(
    session_id: str,
    chat_service: ChatService = Depends(get_chat_service),
):
    return await handle_delete_history(session_id, chat_service)
