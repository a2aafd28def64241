# app/chat/repository/chat_repository.py

from datetime import datetime, timezone
from typing import Dict, List, Set, Tuple

from sqlalchemy import delete, desc, distinct, func, select

from app.chat.entity.chat import ChatTurn, SessionSummary, UsageAggregates, UsageStat
from app.chat.repository.sql_schema.conversation import ChatTurnModel
from app.chat.service.service import IChatRepository
from pkg.db_util.db_conn import DatabaseConnection
from pkg.log.logger import get_logger

logger = get_logger(__name__)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_entity(row: ChatTurnModel) -> ChatTurn:
    return ChatTurn(
        id=row.id,
        session_id=row.session_id,
        user_message=row.user_message,
        ai_response=row.ai_response,
        model=row.model,
        provider=row.provider,
        response_time=row.response_time,
        status=row.status,
        created_at=as_utc(row.created_at),
        user_agent=row.user_agent,
        ip_address=row.ip_address,
    )


class ChatRepository(IChatRepository):
    """Handles all database interactions for chat turns."""

    def __init__(self, db: DatabaseConnection):
        self.db = db
        self.logger = logger

    async def save_turn(self, turn: ChatTurn) -> ChatTurn:
        async with self.db.get_session() as session:
            session.add(
                ChatTurnModel(
                    id=turn.id,
                    session_id=turn.session_id,
                    user_message=turn.user_message,
                    ai_response=turn.ai_response,
                    model=turn.model,
                    provider=turn.provider,
                    response_time=turn.response_time,
                    status=turn.status.value,
                    created_at=turn.created_at,
                    user_agent=turn.user_agent,
                    ip_address=turn.ip_address,
                )
            )
            await session.commit()
        self.logger.debug(f"Chat turn saved | session={turn.session_id} model={turn.model}")
        return turn

    async def recent_turns(self, session_id: str, limit: int) -> List[ChatTurn]:
        async with self.db.get_session() as session:
            result = await session.execute(
                select(ChatTurnModel)
                .where(ChatTurnModel.session_id == session_id)
                .order_by(ChatTurnModel.created_at.desc(), ChatTurnModel.seq.desc())
                .limit(limit)
            )
            return [_to_entity(r) for r in result.scalars().all()]

    async def list_turns(self, session_id: str, limit: int, skip: int = 0) -> List[ChatTurn]:
        async with self.db.get_session() as session:
            result = await session.execute(
                select(ChatTurnModel)
                .where(ChatTurnModel.session_id == session_id)
                .order_by(ChatTurnModel.created_at.asc(), ChatTurnModel.seq.asc())
                .offset(skip)
                .limit(limit)
            )
            return [_to_entity(r) for r in result.scalars().all()]

    async def count_turns(self, session_id: str) -> int:
        async with self.db.get_session() as session:
            result = await session.execute(
                select(func.count()).select_from(ChatTurnModel).where(ChatTurnModel.session_id == session_id)
            )
            return int(result.scalar_one())

    async def list_sessions(self, limit: int, skip: int = 0) -> List[SessionSummary]:
        last_message = func.max(ChatTurnModel.created_at).label("last_message")
        async with self.db.get_session() as session:
            result = await session.execute(
                select(ChatTurnModel.session_id, last_message, func.count().label("message_count"))
                .group_by(ChatTurnModel.session_id)
                .order_by(desc("last_message"))
                .offset(skip)
                .limit(limit)
            )
            groups: List[Tuple[str, datetime, int]] = result.all()
            if not groups:
                return []

            session_ids = [g[0] for g in groups]
            pairs = await session.execute(
                select(ChatTurnModel.session_id, ChatTurnModel.model, ChatTurnModel.provider)
                .where(ChatTurnModel.session_id.in_(session_ids))
                .distinct()
            )
            models: Dict[str, Set[str]] = {sid: set() for sid in session_ids}
            providers: Dict[str, Set[str]] = {sid: set() for sid in session_ids}
            for sid, model, provider in pairs.all():
                models[sid].add(model)
                providers[sid].add(provider)

        return [
            SessionSummary(
                session_id=sid,
                last_message=as_utc(last),
                message_count=count,
                models=sorted(models[sid]),
                providers=sorted(providers[sid]),
            )
            for sid, last, count in groups
        ]

    async def count_sessions(self) -> int:
        async with self.db.get_session() as session:
            result = await session.execute(select(func.count(distinct(ChatTurnModel.session_id))))
            return int(result.scalar_one())

    async def delete_session(self, session_id: str) -> int:
        async with self.db.get_session() as session:
            result = await session.execute(delete(ChatTurnModel).where(ChatTurnModel.session_id == session_id))
            await session.commit()
            deleted = result.rowcount or 0
        self.logger.info(f"Deleted {deleted} chat turns for session {session_id}")
        return deleted

    async def usage_aggregates(self, recent: int = 10) -> UsageAggregates:
        async with self.db.get_session() as session:
            total = await session.execute(select(func.count()).select_from(ChatTurnModel))
            model_stats = await self._grouped_stats(session, ChatTurnModel.model)
            provider_stats = await self._grouped_stats(session, ChatTurnModel.provider)
            latest = await session.execute(
                select(ChatTurnModel)
                .order_by(ChatTurnModel.created_at.desc(), ChatTurnModel.seq.desc())
                .limit(recent)
            )
            return UsageAggregates(
                total_chats=int(total.scalar_one()),
                model_stats=model_stats,
                provider_stats=provider_stats,
                recent_chats=[_to_entity(r) for r in latest.scalars().all()],
            )

    @staticmethod
    async def _grouped_stats(session, column) -> List[UsageStat]:
        count = func.count().label("count")
        result = await session.execute(
            select(column, count, func.avg(ChatTurnModel.response_time))
            .group_by(column)
            .order_by(desc("count"))
        )
        return [
            UsageStat(key=key, count=n, avg_response_time=float(avg or 0))
            for key, n, avg in result.all()
        ]

    async def ping(self) -> bool:
        return await self.db.ping()
