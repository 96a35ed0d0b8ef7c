"""
Repository: Listing objects
Column-generic reads and writes on cc_fiba_objekte.

The synchronizer works with normalized column names rather than ORM
attributes, so inserts and updates go through the Core table with Column
objects as keys.
"""

from typing import Any, Dict, Iterable, List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import Column, select, insert, update, and_

from models.orm_listing import ListingObject

PUBLISHED = '1'
UNPUBLISHED = ''


class ListingRepository:
    """Repository for ListingObject rows."""

    def __init__(self, session: Session):
        self.session = session
        self.table = ListingObject.__table__

    def column_map(self) -> Dict[str, Column]:
        """All columns of the listing table keyed by lowercased name."""
        return {column.name.lower(): column for column in self.table.columns}

    def get_by_id(self, row_id: int) -> Optional[ListingObject]:
        """Get listing by ID."""
        return self.session.get(ListingObject, row_id)

    def get_published_ids(self, provider_id: int) -> Dict[str, int]:
        """
        Map object keys to row ids of the provider's published listings.

        Returns:
            Dict of property_number -> row id (lowest id on duplicates)
        """
        stmt = select(ListingObject.property_number, ListingObject.id).where(
            and_(
                ListingObject.pid == provider_id,
                ListingObject.published == PUBLISHED
            )
        ).order_by(ListingObject.id.desc())
        return {key: row_id for key, row_id in self.session.execute(stmt)}

    def find_existing_id(self, provider_id: int, object_key: str) -> Optional[int]:
        """
        Find any row for a provider + object key, published or not.

        Returns:
            Lowest matching row id, or None
        """
        stmt = select(ListingObject.id).where(
            and_(
                ListingObject.pid == provider_id,
                ListingObject.property_number == object_key
            )
        ).order_by(ListingObject.id).limit(1)
        return self.session.execute(stmt).scalar_one_or_none()

    def get_current_values(self, row_id: int) -> Dict[str, Any]:
        """
        Read a row as plain values.

        Returns:
            Dict of column name -> value, empty if the row does not exist
        """
        columns = list(self.table.columns)
        row = self.session.execute(
            select(*columns).where(self.table.c.id == row_id)
        ).first()
        if row is None:
            return {}
        return dict(zip([column.name for column in columns], row))

    def soft_delete(self, row_ids: Iterable[int], tstamp: int) -> int:
        """
        Unpublish rows.

        Returns:
            Number of affected rows
        """
        row_ids = list(row_ids)
        if not row_ids:
            return 0
        result = self.session.execute(
            update(self.table)
            .where(self.table.c.id.in_(row_ids))
            .values({self.table.c.published: UNPUBLISHED, self.table.c.tstamp: tstamp})
        )
        return result.rowcount

    def insert(self, values: Dict[Column, Any]) -> int:
        """Insert a row and return its id."""
        result = self.session.execute(insert(self.table).values(values))
        return result.inserted_primary_key[0]

    def update(self, row_id: int, values: Dict[Column, Any]) -> None:
        """Write the given columns of a single row."""
        if not values:
            return
        self.session.execute(
            update(self.table).where(self.table.c.id == row_id).values(values)
        )

    def get_unpublished_before(self, tstamp: int) -> List[ListingObject]:
        """
        Get unpublished listings last touched before a timestamp.

        Args:
            tstamp: Unix timestamp

        Returns:
            List of ListingObject instances ordered by provider and key
        """
        stmt = select(ListingObject).where(
            and_(
                ListingObject.published == UNPUBLISHED,
                ListingObject.tstamp < tstamp
            )
        ).order_by(ListingObject.pid, ListingObject.property_number)
        return self.session.execute(stmt).scalars().all()
