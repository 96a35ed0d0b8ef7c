"""
Repository: File index
CRUD operations for FileRecord (tl_files).
"""

from typing import Dict, Iterable, List
from sqlalchemy.orm import Session
from sqlalchemy import select, delete

from models.orm_file import FileRecord


class FileRepository:
    """Repository for FileRecord CRUD operations."""

    def __init__(self, session: Session):
        self.session = session

    def get_uuids_by_paths(self, paths: Iterable[str]) -> Dict[str, str]:
        """
        Resolve storage paths to file uuids.

        Args:
            paths: Paths relative to the project directory

        Returns:
            Dict of path -> uuid for all paths found in the index
        """
        paths = list(paths)
        if not paths:
            return {}
        stmt = select(FileRecord.path, FileRecord.uuid).where(FileRecord.path.in_(paths))
        return {path: uuid for path, uuid in self.session.execute(stmt)}

    def get_by_directory(self, directory: str) -> List[FileRecord]:
        """Get all index entries below a directory (recursive)."""
        prefix = directory.rstrip('/') + '/'
        stmt = select(FileRecord).where(
            FileRecord.path.startswith(prefix, autoescape=True)
        ).order_by(FileRecord.path)
        return self.session.execute(stmt).scalars().all()

    def create(self, path: str, name: str, extension: str, file_hash: str, tstamp: int) -> FileRecord:
        """
        Add a file to the index under a new uuid.

        Returns:
            Created FileRecord instance
        """
        record = FileRecord(
            uuid=FileRecord.generate_uuid(),
            type='file',
            path=path,
            name=name,
            extension=extension,
            hash=file_hash,
            tstamp=tstamp
        )
        self.session.add(record)
        self.session.flush()
        return record

    def delete_by_ids(self, record_ids: Iterable[int]) -> int:
        """Remove index entries; returns the number of deleted rows."""
        record_ids = list(record_ids)
        if not record_ids:
            return 0
        result = self.session.execute(delete(FileRecord).where(FileRecord.id.in_(record_ids)))
        return result.rowcount
