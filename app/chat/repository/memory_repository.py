# app/chat/repository/memory_repository.py
from collections import defaultdict
from typing import Dict, List

from app.chat.entity.chat import ChatTurn, SessionSummary, UsageAggregates, UsageStat
from app.chat.service.service import IChatRepository


class InMemoryChatRepository(IChatRepository):
    """Process-local turn store, used by tests and DATABASE_URL=memory://."""

    def __init__(self) -> None:
        # insertion order doubles as the tiebreak for equal timestamps
        self._turns: List[ChatTurn] = []

    def _ordered(self, session_id: str) -> List[ChatTurn]:
        turns = [t for t in self._turns if t.session_id == session_id]
        return sorted(turns, key=lambda t: t.created_at)

    async def save_turn(self, turn: ChatTurn) -> ChatTurn:
        self._turns.append(turn)
        return turn

    async def recent_turns(self, session_id: str, limit: int) -> List[ChatTurn]:
        return list(reversed(self._ordered(session_id)))[:limit]

    async def list_turns(self, session_id: str, limit: int, skip: int = 0) -> List[ChatTurn]:
        return self._ordered(session_id)[skip:skip + limit]

    async def count_turns(self, session_id: str) -> int:
        return sum(1 for t in self._turns if t.session_id == session_id)

    async def list_sessions(self, limit: int, skip: int = 0) -> List[SessionSummary]:
        grouped: Dict[str, List[ChatTurn]] = defaultdict(list)
        for turn in self._turns:
            grouped[turn.session_id].append(turn)
        summaries = [
            SessionSummary(
                session_id=sid,
                last_message=max(t.created_at for t in turns),
                message_count=len(turns),
                models=sorted({t.model for t in turns}),
                providers=sorted({t.provider for t in turns}),
            )
            for sid, turns in grouped.items()
        ]
        summaries.sort(key=lambda s: s.last_message, reverse=True)
        return summaries[skip:skip + limit]

    async def count_sessions(self) -> int:
        return len({t.session_id for t in self._turns})

    async def delete_session(self, session_id: str) -> int:
        before = len(self._turns)
        self._turns = [t for t in self._turns if t.session_id != session_id]
        return before - len(self._turns)

    async def usage_aggregates(self, recent: int = 10) -> UsageAggregates:
        return UsageAggregates(
            total_chats=len(self._turns),
            model_stats=self._grouped("model"),
            provider_stats=self._grouped("provider"),
            recent_chats=sorted(self._turns, key=lambda t: t.created_at, reverse=True)[:recent],
        )

    def _grouped(self, attr: str) -> List[UsageStat]:
        buckets: Dict[str, List[int]] = defaultdict(list)
        for turn in self._turns:
            buckets[getattr(turn, attr)].append(turn.response_time)
        stats = [
            UsageStat(key=key, count=len(times), avg_response_time=sum(times) / len(times))
            for key, times in buckets.items()
        ]
        return sorted(stats, key=lambda s: s.count, reverse=True)

    async def ping(self) -> bool:
        return True
