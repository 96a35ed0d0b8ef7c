"""
Database Synchronizer
Diffs the normalized records of one provider against its published listings
and applies the resulting creates, updates and soft deletes in a single
transaction.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import Column
from sqlalchemy.orm import Session

from database.repositories.listing_repository import ListingRepository, PUBLISHED
from database.repositories.provider_repository import ProviderRepository
from importer.exceptions import SchemaMismatchError
from importer.import_mode import ImportMode
from importer.object_data import ObjectData
from importer.resource_util import ResourceUtil

logger = logging.getLogger(__name__)

PARENT_TABLE = 'cc_fiba_anbieter'

# Static values for newly created rows
INSERT_DEFAULTS = {
    'published': PUBLISHED,
    'top_object': '',
    'notelist': '1',
    'protection_usergroup': 2,
}


@dataclass
class SyncStats:
    """Outcome of one provider merge."""
    created: int = 0
    updated: int = 0
    deleted: int = 0

    def __add__(self, other: "SyncStats") -> "SyncStats":
        return SyncStats(
            created=self.created + other.created,
            updated=self.updated + other.updated,
            deleted=self.deleted + other.deleted
        )

    def to_dict(self) -> Dict[str, int]:
        return {'created': self.created, 'updated': self.updated, 'deleted': self.deleted}


@dataclass
class MergePlan:
    """Which records to create, which rows to update and which to unpublish."""
    to_create: List[ObjectData] = field(default_factory=list)
    to_update: Dict[int, ObjectData] = field(default_factory=dict)
    to_delete: List[int] = field(default_factory=list)


def index_objects(objects: Iterable[ObjectData]) -> Dict[str, ObjectData]:
    """Index records by object key; a later duplicate replaces an earlier one."""
    return {obj.object_key: obj for obj in objects}


def compute_merge_plan(
    mode: ImportMode,
    remote: Dict[str, ObjectData],
    local: Dict[str, int]
) -> MergePlan:
    """
    Compute what to do with each record.

    Args:
        mode: Import mode of the archive
        remote: Normalized records by object key
        local: Published row ids by object key

    Returns:
        MergePlan
    """
    if mode is ImportMode.DELETE:
        return MergePlan(to_delete=[row_id for key, row_id in local.items() if key in remote])

    plan = MergePlan(
        to_create=[obj for key, obj in remote.items() if key not in local],
        to_update={local[key]: obj for key, obj in remote.items() if key in local},
    )
    if mode is ImportMode.SYNCHRONIZE:
        plan.to_delete = [row_id for key, row_id in local.items() if key not in remote]
    return plan


def _differs(current: Any, new: Any) -> bool:
    if current is None or new is None:
        return current is not new
    return str(current) != str(new)


class DatabaseSynchronizer:
    """Merges normalized records into cc_fiba_objekte."""

    def __init__(self, session: Session, resource_util: ResourceUtil):
        self.session = session
        self.resource_util = resource_util
        self.listings = ListingRepository(session)
        self.providers = ProviderRepository(session)

    def synchronize(
        self,
        provider_id: int,
        objects: Iterable[ObjectData],
        mode: ImportMode,
        sender_software: Optional[str] = None
    ) -> SyncStats:
        """
        Merge one provider's records.

        Args:
            provider_id: Local provider id
            objects: Normalized records of the provider
            mode: Import mode of the archive
            sender_software: <uebertragung sendersoftware="...">

        Returns:
            SyncStats

        Raises:
            SchemaMismatchError: If a record column does not exist in the table
            SQLAlchemyError: On database errors; the merge is rolled back
        """
        remote = index_objects(objects)
        local = self.listings.get_published_ids(provider_id)
        plan = compute_merge_plan(mode, remote, local)

        logger.debug(
            f"Merge plan for provider {provider_id} ({mode.value}): "
            f"{len(plan.to_create)} to create, {len(plan.to_update)} to update, "
            f"{len(plan.to_delete)} to delete"
        )

        try:
            stats = self._apply(provider_id, plan, sender_software)
            self.session.commit()
        except Exception:
            self.session.rollback()
            logger.error(f"Merge for provider {provider_id} failed, rolled back")
            raise

        return stats

    def _apply(self, provider_id: int, plan: MergePlan, sender_software: Optional[str]) -> SyncStats:
        now = int(time.time())
        columns = self.listings.column_map()
        stats = SyncStats()

        self.listings.soft_delete(plan.to_delete, now)
        stats.deleted = len(plan.to_delete)

        to_create: List[ObjectData] = []
        to_update = dict(plan.to_update)
        for obj in plan.to_create:
            # Previously unpublished rows are revived instead of duplicated
            existing_id = self.listings.find_existing_id(provider_id, obj.object_key)
            if existing_id is not None:
                to_update[existing_id] = obj
            else:
                to_create.append(obj)

        for obj in to_create:
            self._insert(provider_id, obj, columns, now, sender_software)
            stats.created += 1

        for row_id, obj in to_update.items():
            if self._update(row_id, obj, columns, now):
                stats.updated += 1

        return stats

    def _record_values(self, obj: ObjectData) -> Dict[str, Any]:
        values = dict(obj.properties)
        values.update(self.resource_util.resource_references(obj))
        return values

    def _resolve_columns(self, values: Dict[str, Any], columns: Dict[str, Column]) -> Dict[Column, Any]:
        resolved = {}
        for name, value in values.items():
            column = columns.get(name.lower())
            if column is None:
                raise SchemaMismatchError(f'Column "{name}" does not exist in table "{self.listings.table.name}".')
            resolved[column] = value
        return resolved

    def _insert(
        self,
        provider_id: int,
        obj: ObjectData,
        columns: Dict[str, Column],
        now: int,
        sender_software: Optional[str]
    ) -> int:
        agent_id = self.providers.find_agent_id(provider_id, obj.agent.get('external_id'))

        values = self._record_values(obj)
        values.update({
            'pid': provider_id,
            'ptable': PARENT_TABLE,
            'tstamp': now,
            'date_create': now,
            'alias': obj.alias,
            'property_number': obj.object_key,
            'betreuer': str(agent_id) if agent_id is not None else '',
            'quelle': sender_software or '',
        })
        values.update(INSERT_DEFAULTS)

        row_id = self.listings.insert(self._resolve_columns(values, columns))
        logger.debug(f"Created listing {row_id} for object {obj.object_key}")
        return row_id

    def _update(self, row_id: int, obj: ObjectData, columns: Dict[str, Column], now: int) -> bool:
        """Write changed columns only; returns False if nothing changed."""
        values = self._record_values(obj)
        values['published'] = PUBLISHED
        resolved = self._resolve_columns(values, columns)

        current = {name.lower(): value for name, value in self.listings.get_current_values(row_id).items()}
        changes = {
            column: value
            for column, value in resolved.items()
            if _differs(current.get(column.name.lower()), value)
        }
        if not changes:
            return False

        changes[columns['tstamp']] = now
        self.listings.update(row_id, changes)
        logger.debug(f"Updated listing {row_id}: {', '.join(sorted(c.name for c in changes))}")
        return True
