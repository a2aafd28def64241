from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile

from app.chat.api.handler import client_info
from app.file.api.dto import (
    AnalyzeFileRequest,
    AnalyzeFileResponse,
    DeleteFileResponse,
    FileAnalysisResponse,
    FilesResponse,
    UploadResponse,
)
from app.file.api.handler import (
    handle_analyze,
    handle_delete_file,
    handle_file_analysis,
    handle_list_files,
    handle_upload,
)
from app.file.service.file_service import FileService

file_router = APIRouter(prefix="/api", tags=["Files"])


def get_file_service(request: Request) -> FileService:
    return request.app.state.file_service


@file_router.post("/upload", response_model=UploadResponse)
async def upload_file(
    file: Optional[UploadFile] = File(default=None),
    session_id: Optional[str] = Form(default=None, alias="sessionId"),
    file_service: FileService = Depends(get_file_service),
):
    """Store a document for a session and extract its text."""
    return await handle_upload(file, session_id, file_service)


@file_router.get("/files/{session_id}", response_model=FilesResponse)
async def list_files(session_id: str, file_service: FileService = Depends(get_file_service)):
    return await handle_list_files(session_id, file_service)


@file_router.post("/analyze-file", response_model=AnalyzeFileResponse)
async def analyze_file(
    body: AnalyzeFileRequest,
    request: Request,
    file_service: FileService = Depends(get_file_service),
):
    """Run a prompt against a stored file with its session context."""
    return await handle_analyze(body, file_service, client_info(request))


@file_router.get("/file-analysis/{file_id}", response_model=FileAnalysisResponse)
async def get_file_analysis(file_id: str, file_service: FileService = Depends(get_file_service)):
    return await handle_file_analysis(file_id, file_service)


@file_router.delete("/files/{file_id}", response_model=DeleteFileResponse)
async def delete_file(file_id: str, file_service: FileService = Depends(get_file_service)):
    return await handle_delete_file(file_id, file_service)
