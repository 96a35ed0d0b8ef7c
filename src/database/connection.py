"""
OpenImmo Sync - Database Connection
Pooled SQLAlchemy engine for the Contao database (cc_fiba_* listing tables and
the tl_files index) plus the session helpers used by the scripts.
"""

from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, URL
from sqlalchemy.orm import Session
from sqlalchemy.pool import QueuePool

from utils.config import (
    DB_HOST, DB_PORT, DB_NAME, DB_USER, DB_PASSWORD,
    DB_POOL_SIZE, DB_POOL_MAX_OVERFLOW, DB_POOL_RECYCLE, DB_POOL_PRE_PING,
    config
)
from utils.logger import logger, log_database_error


class DatabaseConnectionError(Exception):
    """Raised when the engine cannot be created."""
    pass


class DatabaseConnection:
    """Holds the process wide engine; created on first use."""

    def __init__(self):
        self._engine: Optional[Engine] = None

    def get_engine(self) -> Engine:
        """
        Return the engine, creating it on the first call.

        Raises:
            DatabaseConnectionError: If the engine cannot be created
        """
        if self._engine is not None:
            return self._engine

        try:
            url = URL.create(
                drivername="mysql+pymysql",
                username=DB_USER,
                password=DB_PASSWORD,
                host=DB_HOST,
                port=DB_PORT,
                database=DB_NAME,
                # Listing texts carry umlauts and the odd emoji
                query={"charset": "utf8mb4"},
            )
            self._engine = create_engine(
                url,
                poolclass=QueuePool,
                pool_size=DB_POOL_SIZE,
                max_overflow=DB_POOL_MAX_OVERFLOW,
                pool_recycle=DB_POOL_RECYCLE,
                pool_pre_ping=DB_POOL_PRE_PING,
                hide_parameters=True,
            )
        except Exception as e:
            log_database_error(e, "Could not create database engine")
            raise DatabaseConnectionError(f"Could not create database engine: {e}")

        logger.info("Database engine created", extra={
            "host": DB_HOST,
            "database": DB_NAME,
            "environment": config.environment
        })
        return self._engine

    def close(self) -> None:
        """Dispose the pool; the next get_engine() starts a new one."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None


db = DatabaseConnection()


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """
    Session scope for one script run.

    Commits on success and rolls back on error. The synchronizer already
    commits every provider merge, so the final commit only covers work the
    caller did on its own.

    Example:
        >>> with get_db_session() as session:
        ...     stats = import_file("export.zip", session)
    """
    from models.base import create_session

    session = create_session()
    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        log_database_error(e, "Session rolled back")
        raise
    finally:
        session.close()


def create_db_session() -> Session:
    """Unmanaged session; the caller commits and closes it."""
    from models.base import create_session
    return create_session()
