from sqlalchemy import Column, String, DateTime, Integer, Text, JSON
from sqlalchemy.sql import func

from pkg.db_util.sql_alchemy.declarative_base import Base


# Uploaded file table; analyses are embedded as a JSON list
class UploadedFileModel(Base):
    __tablename__ = "uploaded_files"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(32), unique=True, nullable=False, index=True)
    session_id = Column(String, nullable=False, index=True)
    original_name = Column(String, nullable=False)
    filename = Column(String, nullable=False)
    mimetype = Column(String, nullable=False)
    size = Column(Integer, nullable=False)
    content = Column(Text, nullable=False)
    analysis_prompts = Column(JSON, nullable=False, default=list)
    uploaded_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
