#!/usr/bin/env python3
"""
OpenImmo Sync - Prune Objects
Deletes the resource directories of listings that have been unpublished for
longer than the retention window (OPENIMMO_PRUNE_DAYS). Meant to run daily
from cron.

Usage:
    python -m scripts.prune_objects
    python -m scripts.prune_objects --days 30 --dry-run
"""

import argparse
import sys
import time
from pathlib import Path
from typing import List, Optional

# Add src to path
backend_src = Path(__file__).parent.parent
sys.path.insert(0, str(backend_src.absolute()))

from sqlalchemy.orm import Session

from utils.config import (
    OPENIMMO_IMMO_DIR,
    OPENIMMO_PROJECT_DIR,
    OPENIMMO_PRUNE_DAYS,
    OPENIMMO_UPLOAD_PATH,
)
from utils.logger import logger
from database.connection import get_db_session
from database.repositories.listing_repository import ListingRepository
from database.repositories.provider_repository import ProviderRepository
from importer.file_storage import FileStorage
from importer.resource_util import ResourceUtil

SECONDS_PER_DAY = 86400


def prune_objects(
    session: Session,
    retention_days: int = OPENIMMO_PRUNE_DAYS,
    project_dir: str = OPENIMMO_PROJECT_DIR,
    upload_path: str = OPENIMMO_UPLOAD_PATH,
    immo_dir: str = OPENIMMO_IMMO_DIR,
    dry_run: bool = False
) -> List[str]:
    """
    Delete resource directories of long unpublished listings.

    Args:
        session: Database session
        retention_days: Days a listing stays unpublished before pruning
        project_dir: Project directory
        upload_path: Upload directory below the project directory
        immo_dir: OpenImmo directory below the upload directory
        dry_run: Only report what would be deleted

    Returns:
        Project relative directories that were (or would be) deleted
    """
    cutoff = int(time.time()) - retention_days * SECONDS_PER_DAY
    storage = FileStorage(project_dir, session)
    resource_util = ResourceUtil(project_dir, upload_path, immo_dir, storage, session)

    listings = ListingRepository(session).get_unpublished_before(cutoff)
    provider_keys = ProviderRepository(session).get_provider_keys({listing.pid for listing in listings})

    pruned = []
    for listing in listings:
        provider_key = provider_keys.get(listing.pid)
        if not provider_key or not listing.property_number:
            continue

        directory = resource_util.resource_directory(provider_key, listing.property_number)
        if directory in pruned or not storage.exists(directory):
            continue

        pruned.append(directory)
        if dry_run:
            continue

        storage.delete_directory(directory)
        storage.sync(directory)
        logger.info(f"Pruned resources of listing {listing.id} in {directory}")

    return pruned


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Delete resource directories of long unpublished OpenImmo listings."
    )
    parser.add_argument(
        '--days',
        type=int,
        default=OPENIMMO_PRUNE_DAYS,
        help=f'Retention window in days (default: {OPENIMMO_PRUNE_DAYS})'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='List directories without deleting them'
    )

    args = parser.parse_args(argv)

    with get_db_session() as session:
        pruned = prune_objects(session, retention_days=args.days, dry_run=args.dry_run)

    action = "Would delete" if args.dry_run else "Deleted"
    for directory in pruned:
        print(f"{action}: {directory}")
    print(f"{action} {len(pruned)} resource directories.")
    return 0


if __name__ == '__main__':
    sys.exit(main())
