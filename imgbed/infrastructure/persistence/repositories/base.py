"""Base repository: session scoping and generic lookups over a session factory."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from imgbed.infrastructure.persistence.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository holding a session factory and the mapped model.

    Every public method of a subclass is its own unit of work: reads use
    _session(), writes use _transaction() which commits on exit and rolls
    back on exception.
    """

    def __init__(
        self, session_factory: async_sessionmaker[AsyncSession], model: type[ModelType]
    ) -> None:
        self.session_factory = session_factory
        self.model = model

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        async with self.session_factory() as session:
            yield session

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        async with self.session_factory() as session:
            async with session.begin():
                yield session

    async def _get_row(
        self, session: AsyncSession, entity_id: str, *options: Any
    ) -> ModelType | None:
        """Return a single record by primary key within session, or None."""
        model: Any = self.model
        stmt = select(self.model).where(model.id == entity_id)
        if options:
            stmt = stmt.options(*options)
        result = await session.execute(stmt)
        return result.unique().scalar_one_or_none()

    async def _count(self, *criteria: Any) -> int:
        """Return number of rows matching criteria."""
        stmt = select(func.count()).select_from(self.model)
        if criteria:
            stmt = stmt.where(*criteria)
        async with self._session() as session:
            return int((await session.execute(stmt)).scalar_one())
