# app/file/service/file_service.py
import asyncio
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from fastapi import UploadFile

from app.chat.service.chat_service import ChatService, ClientInfo
from app.chat.service.context_service import AssembledContext, ContextAssembler
from app.core.logger import get_logger
from app.file.entity.file import AnalysisRecord, UploadedFile
from app.file.service.file_reader import is_allowed_mimetype, normalize_mimetype, read_file_content
from app.file.service.service import IFileRepository
from app.llm.entity.result import ProviderName, ProviderResult
from app.llm.service.dispatcher import ProviderDispatcher

logger = get_logger("FileService")

CHUNK_SIZE = 64 * 1024


class FileTooLargeError(Exception):
    pass


class UnsupportedFileTypeError(Exception):
    pass


@dataclass
class AnalysisOutcome:
    result: ProviderResult
    file: UploadedFile
    record: AnalysisRecord
    context: AssembledContext


class FileService:
    """Upload, extraction and analysis of session files."""

    def __init__(
        self,
        file_repository: IFileRepository,
        chat_service: ChatService,
        assembler: ContextAssembler,
        dispatcher: ProviderDispatcher,
        upload_dir: str,
        max_bytes: int,
    ):
        self.file_repository = file_repository
        self.chat_service = chat_service
        self.assembler = assembler
        self.dispatcher = dispatcher
        self.upload_dir = Path(upload_dir)
        self.max_bytes = max_bytes

    def _stored_name(self, original_name: str) -> str:
        suffix = Path(original_name).suffix
        return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:12]}{suffix}"

    async def _spool(self, upload: UploadFile, target: Path) -> int:
        """Copy the upload to disk, enforcing the size limit. Returns bytes written."""
        size = 0
        with target.open("wb") as out:
            while True:
                chunk = await upload.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > self.max_bytes:
                    raise FileTooLargeError(f"File exceeds the {self.max_bytes // (1024 * 1024)} MB limit")
                out.write(chunk)
        return size

    async def upload(self, upload: UploadFile, session_id: str) -> UploadedFile:
        mimetype = normalize_mimetype(upload.content_type) or "application/octet-stream"
        original_name = upload.filename or "upload"
        if not is_allowed_mimetype(mimetype):
            raise UnsupportedFileTypeError(f"File type {mimetype} is not supported")

        self.upload_dir.mkdir(parents=True, exist_ok=True)
        stored_name = self._stored_name(original_name)
        path = self.upload_dir / stored_name
        logger.info(f"Processing file upload: {original_name} | mimetype={mimetype} | session={session_id}")

        try:
            size = await self._spool(upload, path)
            content = await asyncio.to_thread(read_file_content, path, mimetype)
            logger.info(f"File content read successfully, length: {len(content)} characters")
        finally:
            # content lives in the store; the spooled copy never outlives the request
            path.unlink(missing_ok=True)

        record = UploadedFile(
            session_id=session_id,
            original_name=original_name,
            filename=stored_name,
            mimetype=mimetype,
            size=size,
            content=content,
        )
        saved = await self.file_repository.save_file(record)
        logger.info(f"File uploaded successfully: {original_name} | session={session_id} | size={size} bytes")
        return saved

    async def list_files(self, session_id: str) -> List[UploadedFile]:
        return await self.file_repository.list_files(session_id)

    async def get_file(self, file_id: str) -> Optional[UploadedFile]:
        return await self.file_repository.get_file(file_id)

    async def delete_file(self, file_id: str) -> Optional[UploadedFile]:
        deleted = await self.file_repository.delete_file(file_id)
        if deleted:
            logger.info(f"Deleted file: {deleted.original_name} | id={file_id}")
        return deleted

    async def analyze(
        self,
        file: UploadedFile,
        prompt: str,
        provider: ProviderName,
        model: str,
        client: Optional[ClientInfo] = None,
    ) -> AnalysisOutcome:
        logger.info(f"Starting analysis of {file.original_name} with {provider.value}/{model}")
        return await asyncio.shield(self._analyze(file, prompt, provider, model, client))

    async def _analyze(
        self,
        file: UploadedFile,
        prompt: str,
        provider: ProviderName,
        model: str,
        client: Optional[ClientInfo],
    ) -> AnalysisOutcome:
        context = await self.assembler.build_analysis_context(file, prompt)
        started = time.perf_counter()
        result = await self.dispatcher.dispatch(provider, context.prompt, model)
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        logger.info(f"Analysis completed in {elapsed_ms}ms")

        record = AnalysisRecord(
            prompt=prompt,
            response=result.response,
            model=result.model,
            provider=result.provider.value,
        )
        # two separate writes, not one transaction
        updated = await self.file_repository.append_analysis(file.id, record)
        await self.chat_service.record_turn(
            file.session_id,
            f'Analyze "{file.original_name}": {prompt}',
            result,
            elapsed_ms,
            client,
        )
        return AnalysisOutcome(result=result, file=updated or file, record=record, context=context)
