"""
File storage
Filesystem access below the project directory plus the tl_files index that
maps every stored file to a stable uuid.
"""

import hashlib
import logging
import os
import shutil
import time
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Dict

from sqlalchemy.orm import Session

from database.repositories.file_repository import FileRepository

logger = logging.getLogger(__name__)


@dataclass
class IndexSyncResult:
    """Changes applied to the file index by a sync."""
    added: int = 0
    updated: int = 0
    removed: int = 0


def file_hash(path: Path) -> str:
    digest = hashlib.md5()
    with open(path, 'rb') as handle:
        for chunk in iter(lambda: handle.read(65536), b''):
            digest.update(chunk)
    return digest.hexdigest()


class FileStorage:
    """
    Files below a project directory.

    Paths may be given absolute or relative to the project directory; the
    index always stores them relative, with forward slashes.
    """

    def __init__(self, project_dir: str, session: Session):
        self.project_dir = Path(os.path.abspath(project_dir))
        self.session = session
        self.files = FileRepository(session)

    def _absolute(self, path: str) -> Path:
        path = Path(path)
        return Path(os.path.abspath(path)) if path.is_absolute() else self.project_dir / path

    def _relative(self, path: str) -> str:
        return self._absolute(path).relative_to(self.project_dir).as_posix()

    def exists(self, path: str) -> bool:
        return self._absolute(path).exists()

    def mkdir(self, path: str) -> None:
        self._absolute(path).mkdir(parents=True, exist_ok=True)

    def delete_directory(self, path: str) -> None:
        """Remove a directory and everything below it; missing is fine."""
        directory = self._absolute(path)
        if directory.is_dir():
            shutil.rmtree(directory)
            logger.debug(f"Deleted directory {directory}")

    def sync(self, directory: str) -> IndexSyncResult:
        """
        Bring the file index for a directory in line with the filesystem.

        New files get a fresh uuid, files that vanished are removed from the
        index and unchanged paths keep their uuid (a changed file only gets
        its hash refreshed). The index is committed right away.

        Args:
            directory: Directory to index (absolute or project relative)

        Returns:
            IndexSyncResult
        """
        relative_dir = self._relative(directory)
        absolute_dir = self._absolute(directory)
        now = int(time.time())
        result = IndexSyncResult()

        on_disk: Dict[str, Path] = {}
        if absolute_dir.is_dir():
            for root, _, names in os.walk(absolute_dir):
                for name in names:
                    file_path = Path(root) / name
                    on_disk[self._relative(str(file_path))] = file_path

        indexed = {record.path: record for record in self.files.get_by_directory(relative_dir)}

        for path in sorted(on_disk):
            current_hash = file_hash(on_disk[path])
            record = indexed.get(path)
            if record is None:
                posix_path = PurePosixPath(path)
                self.files.create(
                    path=path,
                    name=posix_path.name,
                    extension=posix_path.suffix.lstrip('.').lower(),
                    file_hash=current_hash,
                    tstamp=now
                )
                result.added += 1
            elif record.hash != current_hash:
                record.hash = current_hash
                record.tstamp = now
                result.updated += 1

        vanished = [record.id for path, record in indexed.items() if path not in on_disk]
        result.removed = self.files.delete_by_ids(vanished)

        self.session.commit()

        logger.debug(
            f"Synchronized file index for {relative_dir}: {result.added} added, "
            f"{result.updated} updated, {result.removed} removed"
        )
        return result
