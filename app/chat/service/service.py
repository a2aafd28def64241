from abc import ABC, abstractmethod
from typing import List

from app.chat.entity.chat import ChatTurn, SessionSummary, UsageAggregates


class IChatRepository(ABC):
    @abstractmethod
    async def save_turn(self, turn: ChatTurn) -> ChatTurn:
        pass

    @abstractmethod
    async def recent_turns(self, session_id: str, limit: int) -> List[ChatTurn]:
        """Newest first."""
        pass

    @abstractmethod
    async def list_turns(self, session_id: str, limit: int, skip: int = 0) -> List[ChatTurn]:
        """Oldest first, for paginated history."""
        pass

    @abstractmethod
    async def count_turns(self, session_id: str) -> int:
        pass

    @abstractmethod
    async def list_sessions(self, limit: int, skip: int = 0) -> List[SessionSummary]:
        """Most recently active first."""
        pass

    @abstractmethod
    async def count_sessions(self) -> int:
        pass

    @abstractmethod
    async def delete_session(self, session_id: str) -> int:
        pass

    @abstractmethod
    async def usage_aggregates(self, recent: int = 10) -> UsageAggregates:
        pass

    @abstractmethod
    async def ping(self) -> bool:
        pass
