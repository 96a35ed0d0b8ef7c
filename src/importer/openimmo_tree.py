"""
Typed access to a parsed OpenImmo document.

OpenImmo data is deeply optional: almost every element and attribute may be
missing. XmlNode wraps an ElementTree element and returns an empty node for
anything that does not exist, so lookups can be chained and fall back to a
default at the end of the chain:

    immobilie.find('preise/stp_garage').attr_float('stellplatzmiete')
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

logger = logging.getLogger(__name__)

_TRUE_VALUES = ('true', '1')


def _local_name(tag: str) -> str:
    """Strip a '{namespace}' prefix from a tag."""
    return tag.rsplit('}', 1)[-1] if '}' in tag else tag


def parse_decimal(value: Optional[str]) -> Optional[float]:
    """Parse a decimal as written in OpenImmo files ('1234.50', '1234,50')."""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if ',' in value and '.' not in value:
        value = value.replace(',', '.')
    try:
        return float(value)
    except ValueError:
        return None


class XmlNode:
    """Null-safe view on an XML element."""

    __slots__ = ('_element',)

    def __init__(self, element: Optional[ET.Element] = None):
        self._element = element

    def __bool__(self) -> bool:
        return self._element is not None

    def __repr__(self) -> str:
        if self._element is None:
            return "<XmlNode(missing)>"
        return f"<XmlNode({_local_name(self._element.tag)})>"

    @property
    def tag(self) -> Optional[str]:
        return _local_name(self._element.tag) if self._element is not None else None

    def _children(self, name: str) -> Iterator[ET.Element]:
        if self._element is None:
            return
        for child in self._element:
            if isinstance(child.tag, str) and _local_name(child.tag) == name:
                yield child

    def find(self, path: str) -> "XmlNode":
        """
        Return the first element matching a slash separated path of tag names.

        Missing elements yield an empty node.
        """
        node = self
        for name in path.split('/'):
            node = XmlNode(next(node._children(name), None))
            if not node:
                break
        return node

    def findall(self, path: str) -> List["XmlNode"]:
        """Return all elements matching the last segment of a path."""
        parent_path, _, name = path.rpartition('/')
        parent = self.find(parent_path) if parent_path else self
        return [XmlNode(child) for child in parent._children(name)]

    def text(self, path: Optional[str] = None, default: Optional[str] = '') -> Optional[str]:
        """Stripped text content, or default if the element is missing."""
        node = self.find(path) if path else self
        if node._element is None:
            return default
        return (node._element.text or '').strip()

    def attr(self, name: str, default: Optional[str] = None) -> Optional[str]:
        if self._element is None:
            return default
        value = self._element.get(name)
        if value is None:
            # Attribute casing differs between exporters (EBK vs ebk)
            for key, candidate in self._element.attrib.items():
                if _local_name(key).lower() == name.lower():
                    return candidate
            return default
        return value

    def as_bool(self, path: Optional[str] = None) -> Optional[bool]:
        """Element text as boolean; None if the element is missing."""
        value = self.text(path, default=None)
        if value is None:
            return None
        return value.lower() in _TRUE_VALUES

    def as_int(self, path: Optional[str] = None, default: int = 0) -> int:
        value = parse_decimal(self.text(path, default=None))
        return int(value) if value is not None else default

    def as_float(self, path: Optional[str] = None) -> Optional[float]:
        return parse_decimal(self.text(path, default=None))

    def attr_bool(self, name: str) -> bool:
        value = self.attr(name)
        return value is not None and value.strip().lower() in _TRUE_VALUES

    def attr_float(self, name: str) -> Optional[float]:
        return parse_decimal(self.attr(name))


@dataclass
class TransferEnvelope:
    """<uebertragung> element."""
    scope: Optional[str] = None
    modus: Optional[str] = None
    sender_software: Optional[str] = None
    version: Optional[str] = None

    @classmethod
    def from_node(cls, node: XmlNode) -> Optional["TransferEnvelope"]:
        if not node:
            return None
        scope = node.attr('umfang')
        modus = node.attr('modus')
        return cls(
            scope=scope.upper() if scope else None,
            modus=modus.upper() if modus else None,
            sender_software=node.attr('sendersoftware'),
            version=node.attr('version'),
        )


@dataclass
class Provider:
    """<anbieter> element with its listing entries."""
    anbieternr: str
    firma: str = ''
    listings: List[XmlNode] = field(default_factory=list)

    @classmethod
    def from_node(cls, node: XmlNode) -> "Provider":
        return cls(
            anbieternr=node.text('anbieternr'),
            firma=node.text('firma'),
            listings=node.findall('immobilie'),
        )


@dataclass
class OpenImmoData:
    """Root of a parsed <openimmo> document."""
    envelope: Optional[TransferEnvelope]
    providers: List[Provider] = field(default_factory=list)

    @classmethod
    def from_bytes(cls, data: bytes) -> "OpenImmoData":
        """
        Parse an OpenImmo XML document.

        Raises:
            ET.ParseError: If the document is not well-formed XML
            ValueError: If the root element is not <openimmo>
        """
        root = XmlNode(ET.fromstring(data))
        if root.tag != 'openimmo':
            raise ValueError(f"Unexpected root element <{root.tag}>")

        providers = [Provider.from_node(node) for node in root.findall('anbieter')]
        logger.debug(f"Parsed OpenImmo document with {len(providers)} providers")

        return cls(
            envelope=TransferEnvelope.from_node(root.find('uebertragung')),
            providers=providers,
        )

    def record_actions(self) -> List[Optional[str]]:
        """The aktionart of every listing entry, None where not given."""
        actions = []
        for provider in self.providers:
            for listing in provider.listings:
                action = listing.find('verwaltung_techn/aktion').attr('aktionart')
                actions.append(action.upper() if action else None)
        return actions
