"""Repository base shared by SQL-backed repositories."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from sqlalchemy import Select, delete
from sqlalchemy.ext.asyncio import AsyncSession

ModelT = TypeVar("ModelT")


class AsyncRepository(Generic[ModelT]):
    """Holds the session and the statement helpers repositories share."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @property
    def session(self) -> AsyncSession:
        return self._session

    async def add(self, instance: ModelT) -> ModelT:
        self.session.add(instance)
        await self.session.flush()
        return instance

    async def fetch_first(self, stmt: Select) -> ModelT | None:
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def fetch_all(self, stmt: Select) -> list[ModelT]:
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def delete_where(self, model: type[Any], *criteria: Any) -> int:
        """Bulk delete rows of ``model`` matching ``criteria``; returns the row count."""
        result = await self.session.execute(delete(model).where(*criteria))
        return result.rowcount or 0
