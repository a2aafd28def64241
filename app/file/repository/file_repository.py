# app/file/repository/file_repository.py

from typing import List, Optional

from sqlalchemy import select

from app.chat.repository.chat_repository import as_utc
from app.file.entity.file import AnalysisRecord, UploadedFile
from app.file.repository.sql_schema.file import UploadedFileModel
from app.file.service.service import IFileRepository
from pkg.db_util.db_conn import DatabaseConnection
from pkg.log.logger import get_logger

logger = get_logger(__name__)


def _to_entity(row: UploadedFileModel) -> UploadedFile:
    return UploadedFile(
        id=row.id,
        session_id=row.session_id,
        original_name=row.original_name,
        filename=row.filename,
        mimetype=row.mimetype,
        size=row.size,
        content=row.content,
        analysis_prompts=[AnalysisRecord.model_validate(a) for a in (row.analysis_prompts or [])],
        uploaded_at=as_utc(row.uploaded_at),
    )


async def _get_row(session, file_id: str) -> Optional[UploadedFileModel]:
    result = await session.execute(select(UploadedFileModel).where(UploadedFileModel.id == file_id))
    return result.scalar_one_or_none()


class FileRepository(IFileRepository):
    """Stores uploaded file records with their embedded analyses."""

    def __init__(self, db: DatabaseConnection):
        self.db = db
        self.logger = logger

    async def save_file(self, file: UploadedFile) -> UploadedFile:
        async with self.db.get_session() as session:
            session.add(
                UploadedFileModel(
                    id=file.id,
                    session_id=file.session_id,
                    original_name=file.original_name,
                    filename=file.filename,
                    mimetype=file.mimetype,
                    size=file.size,
                    content=file.content,
                    analysis_prompts=[a.model_dump(mode="json") for a in file.analysis_prompts],
                    uploaded_at=file.uploaded_at,
                )
            )
            await session.commit()
        self.logger.info(f"File saved: {file.id} ({file.original_name})")
        return file

    async def get_file(self, file_id: str) -> Optional[UploadedFile]:
        async with self.db.get_session() as session:
            row = await _get_row(session, file_id)
            return _to_entity(row) if row else None

    async def list_files(
        self, session_id: str, limit: Optional[int] = None, exclude_id: Optional[str] = None
    ) -> List[UploadedFile]:
        stmt = (
            select(UploadedFileModel)
            .where(UploadedFileModel.session_id == session_id)
            .order_by(UploadedFileModel.uploaded_at.desc(), UploadedFileModel.seq.desc())
        )
        if exclude_id:
            stmt = stmt.where(UploadedFileModel.id != exclude_id)
        if limit is not None:
            stmt = stmt.limit(limit)
        async with self.db.get_session() as session:
            result = await session.execute(stmt)
            return [_to_entity(r) for r in result.scalars().all()]

    async def append_analysis(self, file_id: str, record: AnalysisRecord) -> Optional[UploadedFile]:
        async with self.db.get_session() as session:
            row = await _get_row(session, file_id)
            if row is None:
                return None
            # reassign so SQLAlchemy sees the JSON column change
            row.analysis_prompts = [*(row.analysis_prompts or []), record.model_dump(mode="json")]
            await session.commit()
            return _to_entity(row)

    async def delete_file(self, file_id: str) -> Optional[UploadedFile]:
        async with self.db.get_session() as session:
            row = await _get_row(session, file_id)
            if row is None:
                return None
            deleted = _to_entity(row)
            await session.delete(row)
            await session.commit()
        self.logger.info(f"Deleted file {file_id} ({deleted.original_name})")
        return deleted
