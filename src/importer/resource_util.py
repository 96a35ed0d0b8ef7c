"""
Resource Linker
Maps the attachments of a normalized record to storage paths and resolves
them to the file uuids that listing rows reference.
"""

import logging
import os
from pathlib import PurePosixPath
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from database.repositories.file_repository import FileRepository
from importer.file_storage import FileStorage, IndexSyncResult
from importer.object_data import ObjectData
from importer.php_serialize import serialize_list

logger = logging.getLogger(__name__)


class ResourceUtil:
    """Storage layout and file references of listing resources."""

    def __init__(
        self,
        project_dir: str,
        upload_path: str,
        immo_dir: str,
        storage: FileStorage,
        session: Session
    ):
        self.project_dir = os.path.abspath(project_dir)
        self.upload_path = upload_path.strip('/')
        self.immo_dir = immo_dir.strip('/')
        self.storage = storage
        self.files = FileRepository(session)

    def resource_directory(self, provider_key: str, object_key: str) -> str:
        """Directory of an object's resources relative to the project directory."""
        return str(PurePosixPath(self.upload_path, self.immo_dir, provider_key, object_key))

    def resource_base_path(self, provider_key: str, object_key: str) -> str:
        """Absolute directory of an object's resources."""
        return os.path.join(self.project_dir, *self.resource_directory(provider_key, object_key).split('/'))

    def resource_path_map(self, obj: ObjectData) -> Dict[str, str]:
        """
        Map archive file names to storage paths.

        Names with a directory part are skipped, resources are stored flat.

        Returns:
            Dict of archive name -> storage path relative to the project directory
        """
        directory = self.resource_directory(obj.provider_key, obj.object_key)
        path_map = {}
        for name in obj.resource_files:
            if '/' in name.replace('\\', '/'):
                logger.debug(f"Skipping resource with directory part: {name}")
                continue
            path_map[name] = f"{directory}/{name}"
        return path_map

    def resource_references(self, obj: ObjectData) -> Dict[str, Optional[str]]:
        """
        Resource reference columns for a listing row.

        Files missing from the index are left out.

        Returns:
            Dict of column name -> value
        """
        path_map = self.resource_path_map(obj)
        uuids = self.files.get_uuids_by_paths(path_map.values())

        def resolve(names: List[str]) -> List[str]:
            return [
                uuids[path_map[name]]
                for name in names
                if name in path_map and path_map[name] in uuids
            ]

        title_image = resolve([obj.title_image] if obj.title_image else [])
        gallery = serialize_list(resolve(obj.gallery_images))
        documents = serialize_list(resolve(obj.documents))
        others = serialize_list(resolve(obj.other_attachments))

        return {
            'image': title_image[0] if title_image else None,
            'gallery': gallery,
            'orderSRC_gallery': gallery,
            'gallery_fullsize': '1',
            'expose': documents,
            'ordersrc_expose': documents,
            'dokuments': others,
            'ordersrc_dokuments': others,
        }

    def synchronize_resources(self, obj: ObjectData) -> IndexSyncResult:
        """Index the object's resource directory."""
        return self.storage.sync(self.resource_directory(obj.provider_key, obj.object_key))
