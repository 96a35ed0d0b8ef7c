"""
OpenImmo Sync - Importer Module
Imports OpenImmo zip archives into the listing tables.
"""

from importer.exceptions import (
    OpenImmoImportError,
    ArchiveError,
    ArchiveOpenError,
    MissingDataFileError,
    ArchiveParseError,
    ImportModeError,
    ExtractionError,
    NormalizationError,
    SchemaMismatchError,
)
from importer.import_mode import ImportMode
from importer.openimmo_archive import OpenImmoArchive
from importer.object_data import ObjectData, ResourceType
from importer.normalizer import Normalizer
from importer.database_synchronizer import DatabaseSynchronizer, MergePlan, SyncStats, compute_merge_plan
from importer.resource_util import ResourceUtil
from importer.file_storage import FileStorage
from importer.openimmo_importer import Importer, import_file

__all__ = [
    # Errors
    "OpenImmoImportError",
    "ArchiveError",
    "ArchiveOpenError",
    "MissingDataFileError",
    "ArchiveParseError",
    "ImportModeError",
    "ExtractionError",
    "NormalizationError",
    "SchemaMismatchError",
    # Archive
    "ImportMode",
    "OpenImmoArchive",
    # Records
    "ObjectData",
    "ResourceType",
    "Normalizer",
    # Merge
    "DatabaseSynchronizer",
    "MergePlan",
    "SyncStats",
    "compute_merge_plan",
    # Resources
    "ResourceUtil",
    "FileStorage",
    # Orchestration
    "Importer",
    "import_file",
]
