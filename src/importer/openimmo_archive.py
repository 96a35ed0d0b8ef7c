"""
OpenImmo Archive Reader
Opens an OpenImmo zip delivery, locates its XML document and resource files
and parses the document on first access.
"""

import logging
import shutil
import xml.etree.ElementTree as ET
import zipfile
from pathlib import Path, PurePosixPath
from typing import List, Optional

from importer.exceptions import (
    ArchiveOpenError,
    ArchiveParseError,
    ExtractionError,
    MissingDataFileError,
)
from importer.import_mode import ImportMode, derive_import_mode
from importer.openimmo_tree import OpenImmoData

logger = logging.getLogger(__name__)

DATA_FILE_EXTENSION = '.xml'


class OpenImmoArchive:
    """
    A single OpenImmo delivery.

    Use as a context manager so the zip handle is released on every path:

        with OpenImmoArchive("export.zip") as archive:
            data = archive.parsed_data
    """

    def __init__(self, file_path: str):
        """
        Open and index an archive.

        Args:
            file_path: Path to the zip file

        Raises:
            ArchiveOpenError: If the file is missing or not a zip archive
            MissingDataFileError: If the archive contains no .xml file
        """
        self.file_path = str(file_path)
        self._data: Optional[OpenImmoData] = None
        self._data_file: Optional[str] = None
        self._resource_files: List[str] = []

        try:
            self._archive = zipfile.ZipFile(self.file_path, 'r')
        except FileNotFoundError:
            raise ArchiveOpenError(f'Archive file not found: "{self.file_path}".')
        except (zipfile.BadZipFile, OSError) as e:
            raise ArchiveOpenError(f'Could not open archive in "{self.file_path}": {e}')

        try:
            self._index()
        except Exception:
            self._archive.close()
            raise

    def _index(self) -> None:
        seen = set()
        for info in self._archive.infolist():
            if info.is_dir():
                continue

            name = info.filename
            if PurePosixPath(name).suffix.lower() == DATA_FILE_EXTENSION:
                # If there are several, the last one wins
                self._data_file = name
                continue

            if name not in seen:
                seen.add(name)
                self._resource_files.append(name)

        if self._data_file is None:
            raise MissingDataFileError(f'Archive "{self.file_path}" does not contain a .xml file.')

        logger.debug(
            f"Indexed archive {self.file_path}: data file {self._data_file}, "
            f"{len(self._resource_files)} resource files"
        )

    def __enter__(self) -> "OpenImmoArchive":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def close(self) -> None:
        """Release the underlying zip handle."""
        self._archive.close()

    @property
    def data_file(self) -> str:
        return self._data_file

    @property
    def parsed_data(self) -> OpenImmoData:
        """
        The parsed OpenImmo document, deserialized once per archive.

        Raises:
            ArchiveParseError: If the document cannot be read or parsed
        """
        if self._data is not None:
            return self._data

        try:
            content = self._archive.read(self._data_file)
            self._data = OpenImmoData.from_bytes(content)
        except (ET.ParseError, ValueError) as e:
            raise ArchiveParseError(f'Could not parse "{self._data_file}" in "{self.file_path}": {e}')
        except (zipfile.BadZipFile, OSError) as e:
            raise ArchiveParseError(f'Could not read "{self._data_file}" from "{self.file_path}": {e}')

        return self._data

    @property
    def resource_files(self) -> List[str]:
        """Resource files in archive order, without duplicates."""
        return list(self._resource_files)

    @property
    def import_mode(self) -> ImportMode:
        """
        Raises:
            ImportModeError: If the mode cannot be determined
        """
        data = self.parsed_data
        envelope = data.envelope
        return derive_import_mode(
            envelope.scope if envelope else None,
            envelope.modus if envelope else None,
            data.record_actions(),
        )

    @property
    def sender_software(self) -> Optional[str]:
        envelope = self.parsed_data.envelope
        return envelope.sender_software if envelope else None

    def extract(self, destination: str, *names: str) -> None:
        """
        Copy named resource files into a directory.

        Args:
            destination: Target directory, created if missing
            names: Archive entry names

        Raises:
            ExtractionError: If any file cannot be extracted
        """
        target_dir = Path(destination)
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            for name in names:
                target = target_dir / name
                # Entries are written relative to the destination only
                if not target.resolve().is_relative_to(target_dir.resolve()):
                    raise ExtractionError(f'Refusing to extract "{name}" outside of "{destination}".')
                target.parent.mkdir(parents=True, exist_ok=True)
                with self._archive.open(name) as source, open(target, 'wb') as sink:
                    shutil.copyfileobj(source, sink)
        except KeyError as e:
            raise ExtractionError(f'File {e} not found in archive "{self.file_path}".')
        except (zipfile.BadZipFile, OSError) as e:
            raise ExtractionError(f'Could not extract files from "{self.file_path}": {e}')
