"""
Normalized listing record.
"""

import enum
import re
import unicodedata
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

PropertyValue = Optional[Union[int, str]]

_TRANSLITERATIONS = {
    'ä': 'ae', 'ö': 'oe', 'ü': 'ue', 'ß': 'ss',
    'Ä': 'Ae', 'Ö': 'Oe', 'Ü': 'Ue',
}


class ResourceType(enum.Enum):
    """Classification of an attachment (<anhang gruppe="...">)."""
    TITLE_IMAGE = "titleImage"
    GALLERY_IMAGE = "galleryImage"
    DOCUMENT = "document"  # e.g. a PDF expose
    OTHER = "other"


def generate_alias(value: str) -> str:
    """
    Create a URL-safe slug.

    >>> generate_alias("Schöne Immobilie in Aachen")
    'schoene-immobilie-in-aachen'
    """
    for char, replacement in _TRANSLITERATIONS.items():
        value = value.replace(char, replacement)
    value = unicodedata.normalize('NFKD', value).encode('ascii', 'ignore').decode('ascii')
    value = re.sub(r'[^a-z0-9]+', '-', value.lower())
    return value.strip('-')


@dataclass(frozen=True)
class ObjectData:
    """One listing entry in normalized, comparable form."""
    provider_key: str
    object_key: str
    properties: Dict[str, PropertyValue] = field(default_factory=dict)
    agent: Dict[str, PropertyValue] = field(default_factory=dict)
    resources: Dict[str, ResourceType] = field(default_factory=dict)

    @property
    def alias(self) -> str:
        """Slug of the title, falling back to the object key."""
        title = self.properties.get('objekttitel') or ''
        return generate_alias(title) or generate_alias(self.object_key)

    @property
    def resource_files(self) -> List[str]:
        return list(self.resources)

    @property
    def title_image(self) -> Optional[str]:
        images = self._resources_of_type(ResourceType.TITLE_IMAGE)
        return images[0] if images else None

    @property
    def gallery_images(self) -> List[str]:
        return self._resources_of_type(ResourceType.GALLERY_IMAGE)

    @property
    def documents(self) -> List[str]:
        return self._resources_of_type(ResourceType.DOCUMENT)

    @property
    def other_attachments(self) -> List[str]:
        return self._resources_of_type(ResourceType.OTHER)

    def _resources_of_type(self, resource_type: ResourceType) -> List[str]:
        return [name for name, kind in self.resources.items() if kind is resource_type]
