# app/file/entity/file.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.chat.entity.chat import new_id, utc_now


class AnalysisRecord(BaseModel):
    """A prompt run against a stored file, embedded in the file record."""
    id: str = Field(default_factory=new_id)
    prompt: str
    response: str
    model: str
    provider: str
    timestamp: datetime = Field(default_factory=utc_now)


class UploadedFile(BaseModel):
    """Session-scoped document. content is never null; failed extraction stores a placeholder."""
    id: str = Field(default_factory=new_id)
    session_id: str
    original_name: str
    filename: str
    mimetype: str
    size: int = Field(ge=0)
    content: str
    analysis_prompts: List[AnalysisRecord] = Field(default_factory=list)
    uploaded_at: datetime = Field(default_factory=utc_now)

    @property
    def last_analysis(self) -> Optional[AnalysisRecord]:
        return self.analysis_prompts[-1] if self.analysis_prompts else None
