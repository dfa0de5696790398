from __future__ import annotations

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# Standardized naming convention for alembic-friendly constraints/indexes.
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Declarative base class with metadata naming conventions."""
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class IntPkMixin:
    """Mixin that provides a database-generated integer primary key."""
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
