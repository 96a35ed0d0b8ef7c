"""
Import modes and their derivation from the transfer envelope.
"""

import enum
from typing import Iterable, Optional

from importer.exceptions import ImportModeError

SCOPE_FULL = 'VOLL'

MODUS_NEW = 'NEW'
MODUS_CHANGE = 'CHANGE'
MODUS_DELETE = 'DELETE'


class ImportMode(enum.Enum):
    """How a delivery is merged into the listing table."""
    # Full diff: create, update and delete items accordingly
    SYNCHRONIZE = "Synchronize"
    # Only create/update items
    PATCH = "Patch"
    # Delete the referenced items instead of merging them
    DELETE = "Delete"


def homogeneous_value(values: Iterable[Optional[str]]) -> Optional[str]:
    """
    Return the single distinct value of a collection, or None.

    Missing values take part in the comparison, so a mix of "CHANGE" and
    None is not homogeneous.
    """
    distinct = set(values)
    if len(distinct) == 1:
        return distinct.pop()
    return None


def derive_import_mode(
    scope: Optional[str],
    modus: Optional[str],
    record_actions: Iterable[Optional[str]]
) -> ImportMode:
    """
    Derive the import mode of an archive.

    Args:
        scope: <uebertragung umfang="...">
        modus: <uebertragung modus="...">
        record_actions: <aktion aktionart="..."> of every listing entry

    Returns:
        ImportMode

    Raises:
        ImportModeError: If no unambiguous mode can be determined
    """
    if scope == SCOPE_FULL:
        return ImportMode.SYNCHRONIZE

    # Some exporters (e.g. Flowfact) only flag each entry. That can be mapped
    # to a global mode as long as all entries agree.
    if modus is None:
        modus = homogeneous_value(record_actions)

    if modus in (MODUS_NEW, MODUS_CHANGE):
        return ImportMode.PATCH
    if modus == MODUS_DELETE:
        return ImportMode.DELETE

    raise ImportModeError(f'Could not parse transmit mode, got "{modus}".')
