"""
OpenImmo Importer
Drives the import of one archive: per recognized provider it normalizes the
listing entries, stages their resource files and merges them into the
database.
"""

import logging
import time
from typing import Dict, List, Optional, Set

from sqlalchemy.orm import Session

from database.repositories.provider_repository import ProviderRepository
from importer.database_synchronizer import DatabaseSynchronizer, SyncStats
from importer.exceptions import NormalizationError
from importer.file_storage import FileStorage
from importer.normalizer import Normalizer
from importer.object_data import ObjectData
from importer.openimmo_archive import OpenImmoArchive
from importer.openimmo_tree import Provider
from importer.resource_util import ResourceUtil
from utils.config import OPENIMMO_IMMO_DIR, OPENIMMO_PROJECT_DIR, OPENIMMO_UPLOAD_PATH
from utils.logger import (
    log_import_complete,
    log_import_error,
    log_import_start,
    log_provider_synchronized,
    log_record_skipped,
)

logger = logging.getLogger(__name__)


class Importer:
    """Imports the contents of an OpenImmo archive."""

    def __init__(
        self,
        session: Session,
        normalizer: Normalizer,
        synchronizer: DatabaseSynchronizer,
        resource_util: ResourceUtil,
        storage: FileStorage
    ):
        self.session = session
        self.normalizer = normalizer
        self.synchronizer = synchronizer
        self.resource_util = resource_util
        self.storage = storage

    @classmethod
    def create(
        cls,
        session: Session,
        project_dir: Optional[str] = None,
        upload_path: Optional[str] = None,
        immo_dir: Optional[str] = None
    ) -> "Importer":
        """
        Build an importer with its collaborators wired to one session.

        Unset paths fall back to the OPENIMMO_* settings.
        """
        project_dir = project_dir or OPENIMMO_PROJECT_DIR
        storage = FileStorage(project_dir, session)
        resource_util = ResourceUtil(
            project_dir,
            upload_path or OPENIMMO_UPLOAD_PATH,
            immo_dir or OPENIMMO_IMMO_DIR,
            storage,
            session
        )
        return cls(
            session=session,
            normalizer=Normalizer(),
            synchronizer=DatabaseSynchronizer(session, resource_util),
            resource_util=resource_util,
            storage=storage
        )

    def run(self, archive: OpenImmoArchive) -> Dict[str, SyncStats]:
        """
        Import all recognized providers of an archive.

        Args:
            archive: Opened archive

        Returns:
            Dict of provider key -> SyncStats

        Raises:
            ArchiveError: If the archive cannot be read or extracted
            SchemaMismatchError: If a merge does not fit the listing table
        """
        data = archive.parsed_data
        mode = archive.import_mode
        sender_software = archive.sender_software
        available = set(archive.resource_files)

        recognized = ProviderRepository(self.session).get_recognized_providers()
        results: Dict[str, SyncStats] = {}

        for provider in data.providers:
            provider_id = recognized.get(provider.anbieternr)
            if provider_id is None:
                logger.info(f'OpenImmo: provider "{provider.anbieternr}" is not known, skipping.')
                continue

            objects = self.normalize_provider(provider)
            for obj in objects:
                self.stage_resources(archive, obj, available)

            stats = self.synchronizer.synchronize(provider_id, objects, mode, sender_software)
            log_provider_synchronized(provider.anbieternr, stats.created, stats.updated, stats.deleted)

            if provider.anbieternr in results:
                stats = results[provider.anbieternr] + stats
            results[provider.anbieternr] = stats

        return results

    def normalize_provider(self, provider: Provider) -> List[ObjectData]:
        """Normalize all listing entries of a provider, dropping the ones that fail."""
        objects = []
        for immobilie in provider.listings:
            try:
                objects.append(self.normalizer.normalize(provider.anbieternr, immobilie))
            except NormalizationError as e:
                title = immobilie.text('freitexte/objekttitel') or immobilie.text('verwaltung_techn/objektnr_extern')
                log_record_skipped(provider.anbieternr, title, str(e))
        return objects

    def stage_resources(self, archive: OpenImmoArchive, obj: ObjectData, available: Set[str]) -> None:
        """Extract a record's resource files and index its resource directory."""
        base_path = self.resource_util.resource_base_path(obj.provider_key, obj.object_key)
        if not self.storage.exists(base_path):
            self.storage.mkdir(base_path)

        names = []
        for name in self.resource_util.resource_path_map(obj):
            if name in available:
                names.append(name)
            else:
                logger.debug(f"Resource {name} of object {obj.object_key} is not part of the archive")

        if names:
            archive.extract(base_path, *names)

        self.resource_util.synchronize_resources(obj)


def import_file(
    file_path: str,
    session: Session,
    project_dir: Optional[str] = None,
    upload_path: Optional[str] = None,
    immo_dir: Optional[str] = None
) -> Dict[str, SyncStats]:
    """
    Import a single OpenImmo archive.

    Args:
        file_path: Path to the zip file
        session: Database session
        project_dir: Project directory; defaults to OPENIMMO_PROJECT_DIR
        upload_path: Upload directory below the project directory
        immo_dir: OpenImmo directory below the upload directory

    Returns:
        Dict of provider key -> SyncStats

    Raises:
        OpenImmoImportError: On archive level failures
    """
    start = time.time()
    log_import_start(str(file_path))

    importer = Importer.create(session, project_dir, upload_path, immo_dir)
    try:
        with OpenImmoArchive(file_path) as archive:
            results = importer.run(archive)
    except Exception as e:
        log_import_error(e, str(file_path))
        raise

    log_import_complete(str(file_path), round(time.time() - start, 2), len(results))
    return results
