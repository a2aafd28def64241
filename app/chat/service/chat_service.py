# app/chat/service/chat_service.py
import asyncio
import random
import string
import time
from dataclasses import dataclass
from typing import List, Optional, Tuple

from app.chat.entity.chat import ChatTurn, SessionSummary
from app.chat.service.context_service import AssembledContext, ContextAssembler
from app.chat.service.service import IChatRepository
from app.core.logger import get_logger
from app.llm.entity.result import ProviderName, ProviderResult
from app.llm.service.dispatcher import ProviderDispatcher

logger = get_logger("ChatService")

_SESSION_ALPHABET = string.ascii_lowercase + string.digits


def generate_session_id() -> str:
    """session_<epoch ms>_<9 base36 chars>"""
    suffix = "".join(random.choices(_SESSION_ALPHABET, k=9))
    return f"session_{int(time.time() * 1000)}_{suffix}"


@dataclass
class ClientInfo:
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None


@dataclass
class ChatOutcome:
    result: ProviderResult
    session_id: str
    context: AssembledContext


class ChatService:
    """Runs a chat exchange end to end and serves the stored history."""

    def __init__(
        self,
        chat_repository: IChatRepository,
        assembler: ContextAssembler,
        dispatcher: ProviderDispatcher,
    ):
        self.chat_repository = chat_repository
        self.assembler = assembler
        self.dispatcher = dispatcher

    async def send(
        self,
        message: str,
        provider: ProviderName,
        model: str,
        session_id: Optional[str] = None,
        client: Optional[ClientInfo] = None,
    ) -> ChatOutcome:
        session_id = session_id or generate_session_id()
        logger.info(
            f"New chat request | session={session_id} provider={provider.value} model={model} "
            f"message=\"{message[:50]}{'...' if len(message) > 50 else ''}\""
        )
        # A client disconnect cancels the request task; the exchange itself
        # still runs to completion so the dispatched turn is recorded.
        return await asyncio.shield(self._exchange(message, provider, model, session_id, client or ClientInfo()))

    async def _exchange(
        self, message: str, provider: ProviderName, model: str, session_id: str, client: ClientInfo
    ) -> ChatOutcome:
        started = time.perf_counter()
        context = await self.assembler.build_chat_context(session_id, message)
        result = await self.dispatcher.dispatch(provider, context.prompt, model)
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        logger.info(
            f"Request completed in {elapsed_ms}ms | model={result.model} provider={result.provider.value} "
            f"status={result.status.value}"
        )

        # the raw message is stored, not the assembled prompt
        await self.record_turn(session_id, message, result, elapsed_ms, client)
        return ChatOutcome(result=result, session_id=session_id, context=context)

    async def record_turn(
        self,
        session_id: str,
        user_message: str,
        result: ProviderResult,
        elapsed_ms: int,
        client: Optional[ClientInfo] = None,
    ) -> Optional[ChatTurn]:
        """Best-effort history write: a store failure is logged and the reply still goes out."""
        client = client or ClientInfo()
        turn = ChatTurn(
            session_id=session_id,
            user_message=user_message,
            ai_response=result.response,
            model=result.model,
            provider=result.provider.value,
            response_time=max(elapsed_ms, 0),
            status=result.status,
            user_agent=client.user_agent,
            ip_address=client.ip_address,
        )
        try:
            saved = await self.chat_repository.save_turn(turn)
        except Exception as e:
            logger.error(f"Error saving chat history for session {session_id}: {e}")
            return None
        logger.info(f"Chat saved | session={session_id} model={turn.model}")
        return saved

    async def history(self, session_id: str, limit: int, page: int) -> Tuple[List[ChatTurn], int]:
        chats = await self.chat_repository.list_turns(session_id, limit=limit, skip=(page - 1) * limit)
        total = await self.chat_repository.count_turns(session_id)
        logger.info(f"Retrieved {len(chats)} chat records for session: {session_id}")
        return chats, total

    async def sessions(self, limit: int, page: int) -> Tuple[List[SessionSummary], int]:
        items = await self.chat_repository.list_sessions(limit=limit, skip=(page - 1) * limit)
        total = await self.chat_repository.count_sessions()
        logger.info(f"Retrieved {len(items)} sessions")
        return items, total

    async def delete_history(self, session_id: str) -> int:
        deleted = await self.chat_repository.delete_session(session_id)
        logger.info(f"Deleted {deleted} chat records for session: {session_id}")
        return deleted
