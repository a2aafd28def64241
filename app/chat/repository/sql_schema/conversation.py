from sqlalchemy import Column, String, DateTime, Integer, Text
from sqlalchemy.sql import func

from pkg.db_util.sql_alchemy.declarative_base import Base


# Chat turn table (append-only)
class ChatTurnModel(Base):
    __tablename__ = "chat_turns"

    # autoincrement seq keeps insertion order stable when timestamps collide
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(32), unique=True, nullable=False, index=True)
    session_id = Column(String, nullable=False, index=True)
    user_message = Column(Text, nullable=False)
    ai_response = Column(Text, nullable=False)
    model = Column(String, nullable=False)
    provider = Column(String, nullable=False)
    response_time = Column(Integer, nullable=False)
    status = Column(String(16), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    user_agent = Column(String, nullable=True)
    ip_address = Column(String, nullable=True)


