"""StorageLocation repository. Returns application DTOs."""

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import joinedload

from imgbed.application.dtos.storage_location import (
    StorageLocationCreate,
    StorageLocationResult,
)
from imgbed.domain.exceptions import ConflictException
from imgbed.infrastructure.persistence.models.storage_location import StorageLocation
from imgbed.infrastructure.persistence.repositories.backend_repo import (
    backend_to_result,
)
from imgbed.infrastructure.persistence.repositories.base import BaseRepository


def location_to_result(
    loc: StorageLocation, *, with_backend: bool = False
) -> StorageLocationResult:
    """Map ORM StorageLocation to StorageLocationResult.

    with_backend: include the backend (only when it was eagerly loaded).
    """
    return StorageLocationResult(
        id=loc.id,
        image_id=loc.image_id,
        backend_id=loc.backend_id,
        storage_kind=loc.storage_kind,
        url=loc.url,
        delete_identifier=loc.delete_identifier,
        is_active=loc.is_active,
        failure_count=loc.failure_count,
        backend=backend_to_result(loc.backend) if with_backend and loc.backend else None,
        created_at=loc.created_at,
    )


def location_from_create(data: StorageLocationCreate) -> StorageLocation:
    return StorageLocation(
        image_id=data.image_id,
        backend_id=data.backend_id,
        storage_kind=data.storage_kind,
        url=data.url,
        delete_identifier=data.delete_identifier,
        is_active=data.is_active,
        failure_count=0,
    )


class StorageLocationRepository(BaseRepository[StorageLocation]):
    """Storage location repository. Failure counters are updated in place by SQL."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        super().__init__(session_factory, StorageLocation)

    async def create(self, location: StorageLocationCreate) -> StorageLocationResult:
        row = location_from_create(location)
        try:
            async with self._transaction() as session:
                session.add(row)
                await session.flush()
                await session.refresh(row, attribute_names=["created_at"])
                return location_to_result(row)
        except IntegrityError as e:
            raise ConflictException(
                "Storage location already exists for this image and backend",
                image_id=location.image_id,
                backend_id=location.backend_id,
            ) from e

    async def get_by_id(self, location_id: str) -> StorageLocationResult | None:
        async with self._session() as session:
            row = await self._get_row(
                session, location_id, joinedload(StorageLocation.backend)
            )
            return location_to_result(row, with_backend=True) if row else None

    async def increment_failure(self, location_id: str) -> None:
        async with self._transaction() as session:
            await session.execute(
                update(StorageLocation)
                .where(StorageLocation.id == location_id)
                .values(failure_count=StorageLocation.failure_count + 1)
            )

    async def reset_failure(self, location_id: str) -> None:
        async with self._transaction() as session:
            await session.execute(
                update(StorageLocation)
                .where(StorageLocation.id == location_id)
                .values(failure_count=0)
            )

    async def toggle_active(self, location_id: str) -> StorageLocationResult | None:
        async with self._transaction() as session:
            row = await self._get_row(
                session, location_id, joinedload(StorageLocation.backend)
            )
            if row is None:
                return None
            row.is_active = not row.is_active
            await session.flush()
            return location_to_result(row, with_backend=True)

    async def count_by_backend(self, backend_id: str) -> int:
        return await self._count(StorageLocation.backend_id == backend_id)

