"""
OpenImmo Sync - Structured Logging
Provides JSON-formatted logging so import runs can be queried by event type.
"""

import logging
import sys
from pythonjsonlogger import jsonlogger

from .config import LOG_LEVEL, config


def setup_logger(name: str = __name__) -> logging.Logger:
    """
    Configure structured JSON logger.

    Args:
        name: Logger name (typically __name__ from calling module)

    Returns:
        Configured logger instance

    Example:
        >>> logger = setup_logger(__name__)
        >>> logger.info("Import completed", extra={
        ...     "archive": "export_2024.zip",
        ...     "providers": 2,
        ...     "duration_seconds": 4.2
        ... })
    """
    logger = logging.getLogger(name)

    # Prevent duplicate handlers
    if logger.hasHandlers():
        return logger

    level = getattr(logging, LOG_LEVEL.upper(), logging.INFO)
    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    formatter = jsonlogger.JsonFormatter(
        '%(asctime)s %(name)s %(levelname)s %(message)s',
        datefmt='%Y-%m-%dT%H:%M:%S'
    )
    handler.setFormatter(formatter)

    logger.addHandler(handler)

    # Don't propagate to root logger
    logger.propagate = False

    return logger


# Global logger instance
logger = setup_logger('openimmo_sync')


def log_import_start(archive: str):
    """Log the start of an archive import."""
    logger.info("OpenImmo import started", extra={
        "event_type": "import_start",
        "archive": archive,
        "environment": config.environment
    })


def log_import_complete(archive: str, duration_seconds: float, providers: int):
    """Log successful archive import."""
    logger.info("OpenImmo import completed", extra={
        "event_type": "import_complete",
        "archive": archive,
        "duration_seconds": duration_seconds,
        "providers": providers
    })


def log_provider_synchronized(provider_key: str, created: int, updated: int, deleted: int):
    """Log the merge result of a single provider."""
    logger.info(
        f'OpenImmo: import for provider "{provider_key}" finished '
        f'({created} created | {updated} updated | {deleted} removed).',
        extra={
            "event_type": "provider_synchronized",
            "provider_key": provider_key,
            "created_count": created,
            "updated_count": updated,
            "deleted_count": deleted
        }
    )


def log_record_skipped(provider_key: str, title: str, reason: str):
    """Log a listing entry that could not be normalized."""
    logger.warning(
        f'OpenImmo: listing "{title}" could not be imported. {reason}',
        extra={
            "event_type": "record_skipped",
            "provider_key": provider_key,
            "title": title,
            "reason": reason
        }
    )


def log_import_error(error: Exception, archive: str):
    """Log an archive-level import failure with context."""
    logger.error("OpenImmo import failed", extra={
        "event_type": "import_error",
        "archive": archive,
        "error_type": type(error).__name__,
        "error_message": str(error)
    }, exc_info=True)


def log_database_error(error: Exception, query_context: str = None):
    """Log database error with context."""
    logger.error("Database error", extra={
        "event_type": "database_error",
        "error_type": type(error).__name__,
        "error_message": str(error),
        "query_context": query_context
    }, exc_info=True)
