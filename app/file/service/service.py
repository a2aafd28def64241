from abc import ABC, abstractmethod
from typing import List, Optional

from app.file.entity.file import AnalysisRecord, UploadedFile


class IFileRepository(ABC):
    @abstractmethod
    async def save_file(self, file: UploadedFile) -> UploadedFile:
        pass

    @abstractmethod
    async def get_file(self, file_id: str) -> Optional[UploadedFile]:
        pass

    @abstractmethod
    async def list_files(
        self, session_id: str, limit: Optional[int] = None, exclude_id: Optional[str] = None
    ) -> List[UploadedFile]:
        """Newest upload first."""
        pass

    @abstractmethod
    async def append_analysis(self, file_id: str, record: AnalysisRecord) -> Optional[UploadedFile]:
        pass

    @abstractmethod
    async def delete_file(self, file_id: str) -> Optional[UploadedFile]:
        """Returns the deleted record, or None when nothing matched."""
        pass
