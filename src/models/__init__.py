# OpenImmo Sync - Models Package

# Import all ORM models to register them with SQLAlchemy's declarative base
# This ensures string-based relationship() forward references can be resolved
# IMPORTANT: Use relative imports to avoid duplicate module loading issues
from .base import Base, SessionLocal, create_session
from .orm_provider import Provider, Agent
from .orm_listing import ListingObject
from .orm_file import FileRecord

__all__ = [
    'Base',
    'SessionLocal',
    'create_session',
    'Provider',
    'Agent',
    'ListingObject',
    'FileRecord',
]
