from __future__ import annotations

import re

# Async drivers used for bare SQLAlchemy URL schemes.
_ASYNC_DRIVERS = {
    "postgresql": "asyncpg",
    "sqlite": "aiosqlite",
}


# PUBLIC_INTERFACE
def async_database_url(url: str) -> str:
    """
    Convert a connection string to an async-driver SQLAlchemy URL, required for AsyncEngine.

    postgresql:// and postgresql+psycopg2:// become postgresql+asyncpg://,
    sqlite:// becomes sqlite+aiosqlite://. URLs already naming an async driver,
    and other dialects, are returned unchanged.
    """
    match = re.match(r"^(\w+)(\+\w+)?://", url)
    if not match:
        return url
    dialect, driver = match.group(1), match.group(2)
    async_driver = _ASYNC_DRIVERS.get(dialect)
    if async_driver is None or driver == f"+{async_driver}":
        return url
    return f"{dialect}+{async_driver}://" + url[match.end():]


# PUBLIC_INTERFACE
def sync_database_url(url: str) -> str:
    """
    Provide a sync URL variant for Alembic offline mode by stripping any async driver tag.
    """
    match = re.match(r"^(\w+)\+(asyncpg|aiosqlite)://", url)
    if not match:
        return url
    return f"{match.group(1)}://" + url[match.end():]
