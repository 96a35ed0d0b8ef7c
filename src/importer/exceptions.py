"""
OpenImmo Sync - Importer Exceptions
"""


class OpenImmoImportError(Exception):
    """Base class for all import errors."""
    pass


class ArchiveError(OpenImmoImportError):
    """Raised when an archive cannot be used; fatal for the whole archive."""
    pass


class ArchiveOpenError(ArchiveError):
    """Raised when the file is missing or not a readable zip container."""
    pass


class MissingDataFileError(ArchiveError):
    """Raised when the archive does not contain a .xml file."""
    pass


class ArchiveParseError(ArchiveError):
    """Raised when the OpenImmo XML document cannot be parsed."""
    pass


class ImportModeError(ArchiveError):
    """Raised when the transfer mode is missing or contradictory."""
    pass


class ExtractionError(ArchiveError):
    """Raised when resource files cannot be extracted."""
    pass


class NormalizationError(OpenImmoImportError):
    """Raised when a single listing entry cannot be normalized."""
    pass


class SchemaMismatchError(OpenImmoImportError):
    """Raised when a normalized column does not exist in the listing table."""
    pass
