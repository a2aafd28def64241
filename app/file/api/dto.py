from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.core.dto import CamelModel
from app.file.entity.file import AnalysisRecord, UploadedFile


class UploadResponse(CamelModel):
    message: str
    file_id: str
    original_name: str
    size: int
    mimetype: str
    session_id: str
    uploaded_at: datetime


class AnalysisDTO(CamelModel):
    id: str = Field(alias="_id")
    prompt: str
    response: str
    model: str
    provider: str
    timestamp: datetime

    @classmethod
    def from_entity(cls, record: AnalysisRecord) -> "AnalysisDTO":
        return cls(
            id=record.id,
            prompt=record.prompt,
            response=record.response,
            model=record.model,
            provider=record.provider,
            timestamp=record.timestamp,
        )


class FileSummaryDTO(CamelModel):
    """Listing view; extracted content is left out."""
    id: str = Field(alias="_id")
    original_name: str
    filename: str
    mimetype: str
    size: int
    uploaded_at: datetime
    analysis_prompts: List[AnalysisDTO]

    @classmethod
    def from_entity(cls, file: UploadedFile) -> "FileSummaryDTO":
        return cls(
            id=file.id,
            original_name=file.original_name,
            filename=file.filename,
            mimetype=file.mimetype,
            size=file.size,
            uploaded_at=file.uploaded_at,
            analysis_prompts=[AnalysisDTO.from_entity(a) for a in file.analysis_prompts],
        )


class FilesResponse(CamelModel):
    session_id: str
    files: List[FileSummaryDTO]


class AnalyzeFileRequest(CamelModel):
    file_id: Optional[str] = None
    prompt: Optional[str] = None
    model: Optional[str] = None
    provider: Optional[str] = None


class AnalysisContextUsed(CamelModel):
    conversation_history: bool
    other_files: bool
    history_count: int
    other_files_count: int


class AnalyzeFileResponse(CamelModel):
    response: str
    model: str
    provider: str
    status: str
    file_id: str
    file_name: str
    analysis_id: str
    timestamp: datetime
    context_used: AnalysisContextUsed


class FileAnalysisResponse(CamelModel):
    file_id: str
    file_name: str
    uploaded_at: datetime
    analyses: List[AnalysisDTO]


class DeleteFileResponse(CamelModel):
    message: str
    file_name: str
    file_id: str
