"""
Declarative base and session factory for the ORM models.
"""

from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


class Base(DeclarativeBase):
    pass


# Unbound until create_session(); importing the models never opens a connection
SessionLocal = sessionmaker(expire_on_commit=False, autoflush=True)


def create_session() -> Session:
    """New session bound to the shared engine of database.connection."""
    from database.connection import db
    return SessionLocal(bind=db.get_engine())
