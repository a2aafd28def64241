from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException, UploadFile
from fastapi.responses import JSONResponse

from app.chat.service.chat_service import ClientInfo
from app.core.logger import get_logger
from app.file.api.dto import (
    AnalysisContextUsed,
    AnalysisDTO,
    AnalyzeFileRequest,
    AnalyzeFileResponse,
    DeleteFileResponse,
    FileAnalysisResponse,
    FilesResponse,
    FileSummaryDTO,
    UploadResponse,
)
from app.file.service.file_reader import ExtractionError
from app.file.service.file_service import FileService, FileTooLargeError, UnsupportedFileTypeError
from app.llm.entity.result import parse_provider_name

logger = get_logger("FileHandler")


async def handle_upload(file: Optional[UploadFile], session_id: Optional[str], file_service: FileService):
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")
    if not session_id:
        raise HTTPException(status_code=400, detail="Session ID is required")

    try:
        saved = await file_service.upload(file, session_id)
    except UnsupportedFileTypeError as e:
        logger.warning(f"Rejected upload {file.filename}: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except FileTooLargeError as e:
        logger.warning(f"Rejected upload {file.filename}: {e}")
        raise HTTPException(status_code=413, detail=str(e))
    except ExtractionError as e:
        logger.error(f"Error reading file content for {file.filename}: {e}")
        return JSONResponse(
            status_code=422,
            content={"error": "Failed to process file content", "message": str(e)},
        )

    return UploadResponse(
        message="File uploaded successfully",
        file_id=saved.id,
        original_name=saved.original_name,
        size=saved.size,
        mimetype=saved.mimetype,
        session_id=saved.session_id,
        uploaded_at=saved.uploaded_at,
    )


async def handle_list_files(session_id: str, file_service: FileService) -> FilesResponse:
    files = await file_service.list_files(session_id)
    return FilesResponse(session_id=session_id, files=[FileSummaryDTO.from_entity(f) for f in files])


async def handle_analyze(body: AnalyzeFileRequest, file_service: FileService, client: ClientInfo) -> AnalyzeFileResponse:
    if not body.file_id or not body.prompt or not body.model or not body.provider:
        raise HTTPException(status_code=400, detail="File ID, prompt, model, and provider are required")

    provider = parse_provider_name(body.provider)
    if provider is None:
        raise HTTPException(status_code=400, detail=f"Unsupported provider: {body.provider}")

    file = await file_service.get_file(body.file_id)
    if file is None:
        raise HTTPException(status_code=404, detail="File not found")

    outcome = await file_service.analyze(file, body.prompt, provider, body.model, client)
    result, context = outcome.result, outcome.context
    return AnalyzeFileResponse(
        response=result.response,
        model=result.model,
        provider=result.provider.value,
        status=result.status.value,
        file_id=file.id,
        file_name=file.original_name,
        analysis_id=outcome.record.id,
        timestamp=datetime.now(timezone.utc),
        context_used=AnalysisContextUsed(
            conversation_history=context.history_count > 0,
            other_files=context.files_count > 0,
            history_count=context.history_count,
            other_files_count=context.files_count,
        ),
    )


async def handle_file_analysis(file_id: str, file_service: FileService) -> FileAnalysisResponse:
    file = await file_service.get_file(file_id)
    if file is None:
        raise HTTPException(status_code=404, detail="File not found")
    return FileAnalysisResponse(
        file_id=file.id,
        file_name=file.original_name,
        uploaded_at=file.uploaded_at,
        analyses=[AnalysisDTO.from_entity(a) for a in file.analysis_prompts],
    )


async def handle_delete_file(file_id: str, file_service: FileService) -> DeleteFileResponse:
    deleted = await file_service.delete_file(file_id)
    if deleted is None:
        raise HTTPException(status_code=404, detail="File not found")
    return DeleteFileResponse(message="File deleted successfully", file_name=deleted.original_name, file_id=file_id)
