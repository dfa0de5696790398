"""
Database package initializer exposing key public interfaces for the
declarative base, URL helpers and the SchoolContext session factory.
"""

from .base import Base
from .config import async_database_url, sync_database_url
from .session import DatabaseContextFactory

# Import models to ensure they are registered with SQLAlchemy metadata
# when the db package is imported.
from . import models as models  # noqa: F401

__all__ = [
    "Base",
    "DatabaseContextFactory",
    "async_database_url",
    "sync_database_url",
    "models",
]
