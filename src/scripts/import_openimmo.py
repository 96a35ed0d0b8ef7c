#!/usr/bin/env python3
"""
OpenImmo Sync - Import CLI
Synchronizes the database and the file storage from OpenImmo .zip files.

Usage:
    # Import the oldest archive in a directory
    python -m scripts.import_openimmo import/openimmo

    # Import up to 5 archives and keep them in a backup directory
    python -m scripts.import_openimmo import/openimmo --max-files 5 --backup-dir import/backup
"""

import argparse
import sys
import time
from pathlib import Path
from typing import Dict, List, Optional

# Add src to path
backend_src = Path(__file__).parent.parent
sys.path.insert(0, str(backend_src.absolute()))

from utils.config import OPENIMMO_MAX_FILES, OPENIMMO_PROJECT_DIR
from utils.logger import logger
from database.connection import get_db_session
from importer import SyncStats, import_file


def resolve_path(path: str, project_dir: str = OPENIMMO_PROJECT_DIR) -> Path:
    """Resolve a path relative to the project directory."""
    resolved = Path(path)
    return resolved if resolved.is_absolute() else Path(project_dir) / resolved


def find_archives(source_dir: Path, max_files: int) -> List[Path]:
    """Zip files directly inside source_dir, sorted by name."""
    archives = sorted(p for p in source_dir.glob('*.zip') if p.is_file())
    return archives[:max(max_files, 0)]


def backup_target(backup_dir: Path, file_path: Path) -> Path:
    """First free name for file_path in backup_dir (name_1.zip, name_2.zip, ...)."""
    target = backup_dir / file_path.name
    index = 1
    while target.exists():
        target = backup_dir / f"{file_path.stem}_{index}{file_path.suffix}"
        index += 1
    return target


def dispose_file(file_path: Path, backup_dir: Optional[Path]) -> None:
    """Move a processed archive into the backup directory or delete it."""
    if backup_dir is not None:
        file_path.rename(backup_target(backup_dir, file_path))
    else:
        file_path.unlink()


def print_stats(stats: Dict[str, SyncStats]) -> None:
    print(f"{'OpenImmo ID':<20} {'created':>8} {'updated':>8} {'deleted':>8}")
    print("-" * 47)
    for provider_key, provider_stats in stats.items():
        print(
            f"{provider_key:<20} {provider_stats.created:>8} "
            f"{provider_stats.updated:>8} {provider_stats.deleted:>8}"
        )


def import_archive(file_path: Path, session) -> bool:
    """
    Import one archive and print its stats.

    Returns:
        True on success, False if the import failed
    """
    print(f"\nImporting \"{file_path.name}\"")
    print("=" * 60)

    try:
        stats = import_file(str(file_path), session)
    except Exception as e:
        logger.exception(f"Import of {file_path} failed")
        print(f"Import failed with an {type(e).__name__}.\n\n{e}")
        return False

    print_stats(stats)
    return True


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Synchronize the database/filesystem from OpenImmo .zip files."
    )
    parser.add_argument(
        'source_dir',
        help='Directory to search for sources'
    )
    parser.add_argument(
        '--backup-dir', '-b',
        type=str,
        help='Move processed files into this directory instead of deleting them'
    )
    parser.add_argument(
        '--max-files', '-m',
        type=int,
        default=OPENIMMO_MAX_FILES,
        help=f'Maximum number of files to be processed (default: {OPENIMMO_MAX_FILES})'
    )

    args = parser.parse_args(argv)

    backup_dir = None
    if args.backup_dir:
        backup_dir = resolve_path(args.backup_dir)
        if not backup_dir.is_dir():
            parser.error('The backup directory does not exist.')

    archives = find_archives(resolve_path(args.source_dir), args.max_files)

    print("Starting the OpenImmo import...")
    start = time.time()
    success = True

    with get_db_session() as session:
        for file_path in archives:
            success = import_archive(file_path, session) and success
            dispose_file(file_path, backup_dir)

    duration = round(time.time() - start, 2)
    if success:
        print(f"\nImport of {len(archives)} file(s) completed in {duration}s.")
        return 0

    print(f"\nImport of {len(archives)} file(s) completed in {duration}s. There were unresolvable errors.")
    return 1


if __name__ == '__main__':
    sys.exit(main())
