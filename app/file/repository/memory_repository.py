# app/file/repository/memory_repository.py
from typing import Dict, List, Optional

from app.file.entity.file import AnalysisRecord, UploadedFile
from app.file.service.service import IFileRepository


class InMemoryFileRepository(IFileRepository):
    def __init__(self) -> None:
        self._files: Dict[str, UploadedFile] = {}

    async def save_file(self, file: UploadedFile) -> UploadedFile:
        self._files[file.id] = file
        return file

    async def get_file(self, file_id: str) -> Optional[UploadedFile]:
        return self._files.get(file_id)

    async def list_files(
        self, session_id: str, limit: Optional[int] = None, exclude_id: Optional[str] = None
    ) -> List[UploadedFile]:
        files = [f for f in self._files.values() if f.session_id == session_id and f.id != exclude_id]
        # dicts keep insertion order, so reversing first makes later uploads win ties
        files = sorted(reversed(files), key=lambda f: f.uploaded_at, reverse=True)
        return files if limit is None else files[:limit]

    async def append_analysis(self, file_id: str, record: AnalysisRecord) -> Optional[UploadedFile]:
        file = self._files.get(file_id)
        if file is None:
            return None
        updated = file.model_copy(update={"analysis_prompts": [*file.analysis_prompts, record]})
        self._files[file_id] = updated
        return updated

    async def delete_file(self, file_id: str) -> Optional[UploadedFile]:
        return self._files.pop(file_id, None)
