"""Backend repository. Returns application DTOs."""

from collections.abc import Collection

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from imgbed.application.dtos.backend import BackendCreate, BackendResult, BackendUpdate
from imgbed.domain.exceptions import ConflictException
from imgbed.infrastructure.persistence.models.backend import Backend
from imgbed.infrastructure.persistence.repositories.base import BaseRepository


def backend_to_result(b: Backend) -> BackendResult:
    """Map ORM Backend to BackendResult."""
    return BackendResult(
        id=b.id,
        name=b.name,
        kind=b.kind,
        config=dict(b.config or {}),
        priority=b.priority,
        allow_upload=b.allow_upload,
        allow_redirect=b.allow_redirect,
        created_at=b.created_at,
        updated_at=b.updated_at,
    )


class BackendRepository(BaseRepository[Backend]):
    """Storage backend configuration repository."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        super().__init__(session_factory, Backend)

    async def list_all(self) -> list[BackendResult]:
        async with self._session() as session:
            result = await session.execute(
                select(Backend).order_by(Backend.priority, Backend.name)
            )
            return [backend_to_result(b) for b in result.scalars().all()]

    async def get_by_id(self, backend_id: str) -> BackendResult | None:
        async with self._session() as session:
            row = await self._get_row(session, backend_id)
            return backend_to_result(row) if row else None

    async def list_upload_enabled(
        self, backend_ids: Collection[str] | None = None
    ) -> list[BackendResult]:
        stmt = select(Backend).where(Backend.allow_upload.is_(True))
        if backend_ids is not None:
            if not backend_ids:
                return []
            stmt = stmt.where(Backend.id.in_(list(backend_ids)))
        stmt = stmt.order_by(Backend.priority, Backend.name)
        async with self._session() as session:
            result = await session.execute(stmt)
            return [backend_to_result(b) for b in result.scalars().all()]

    async def create(self, backend: BackendCreate) -> BackendResult:
        row = Backend(
            name=backend.name,
            kind=backend.kind,
            config=dict(backend.config),
            priority=backend.priority,
            allow_upload=backend.allow_upload,
            allow_redirect=backend.allow_redirect,
        )
        try:
            async with self._transaction() as session:
                session.add(row)
                await session.flush()
                await session.refresh(row)
                return backend_to_result(row)
        except IntegrityError as e:
            raise ConflictException(
                f"Backend name already exists: {backend.name}", name=backend.name
            ) from e

    async def update(
        self, backend_id: str, changes: BackendUpdate
    ) -> BackendResult | None:
        try:
            async with self._transaction() as session:
                row = await self._get_row(session, backend_id)
                if row is None:
                    return None
                if changes.name is not None:
                    row.name = changes.name
                if changes.config is not None:
                    row.config = dict(changes.config)
                if changes.priority is not None:
                    row.priority = changes.priority
                if changes.allow_upload is not None:
                    row.allow_upload = changes.allow_upload
                if changes.allow_redirect is not None:
                    row.allow_redirect = changes.allow_redirect
                await session.flush()
                await session.refresh(row)
                return backend_to_result(row)
        except IntegrityError as e:
            raise ConflictException(
                f"Backend name already exists: {changes.name}", name=changes.name
            ) from e

    async def delete(self, backend_id: str) -> bool:
        try:
            async with self._transaction() as session:
                row = await self._get_row(session, backend_id)
                if row is None:
                    return False
                await session.delete(row)
                await session.flush()
                return True
        except IntegrityError as e:
            raise ConflictException(
                "Backend is still referenced by storage locations",
                backend_id=backend_id,
            ) from e

    async def count(self) -> int:
        return await self._count()
