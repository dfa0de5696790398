from __future__ import annotations

from typing import Any

from sqlalchemy import Executable, Result, ScalarResult
from sqlalchemy.ext.asyncio import AsyncSession


class BaseRepository:
    """
    Query helpers over the SchoolContext session of the current service scope.

    Repositories never open or close the session; the scope owns it.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def execute(self, statement: Executable) -> Result[Any]:
        return await self.session.execute(statement)

    async def scalars(self, statement: Executable) -> ScalarResult[Any]:
        return (await self.execute(statement)).scalars()

    async def scalar_one_or_none(self, statement: Executable) -> Any:
        return (await self.execute(statement)).scalar_one_or_none()

    async def add(self, entity: Any) -> None:
        self.session.add(entity)

    async def delete(self, entity: Any) -> None:
        await self.session.delete(entity)

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        """Discard a failed unit of work so the session can be reused."""
        await self.session.rollback()
