"""Image repository. Returns application DTOs with locations (and backends) loaded."""

from collections.abc import Collection
from datetime import datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from imgbed.application.dtos.image import ImageCreate, ImageListPage, ImageResult
from imgbed.application.dtos.storage_location import StorageLocationCreate
from imgbed.domain.exceptions import ConflictException, DuplicateImageException
from imgbed.infrastructure.persistence.models.image import Image
from imgbed.infrastructure.persistence.models.storage_location import StorageLocation
from imgbed.infrastructure.persistence.repositories.base import BaseRepository
from imgbed.infrastructure.persistence.repositories.storage_location_repo import (
    location_from_create,
    location_to_result,
)

# StorageLocation.backend is lazy="joined", so selectin-loading locations brings backends too.
_WITH_LOCATIONS = selectinload(Image.locations)


def _to_result(img: Image, *, with_locations: bool = False) -> ImageResult:
    """Map ORM Image to ImageResult. with_locations only when eagerly loaded."""
    locations = (
        tuple(location_to_result(loc, with_backend=True) for loc in img.locations)
        if with_locations
        else ()
    )
    return ImageResult(
        id=img.id,
        content_hash=img.content_hash,
        original_filename=img.original_filename,
        file_size=img.file_size,
        content_type=img.content_type,
        width=img.width,
        height=img.height,
        owner_id=img.owner_id,
        allow_random=img.allow_random,
        locations=locations,
        created_at=img.created_at,
    )


def _from_create(data: ImageCreate) -> Image:
    return Image(
        id=data.id,
        content_hash=data.content_hash,
        original_filename=data.original_filename,
        file_size=data.file_size,
        content_type=data.content_type,
        width=data.width,
        height=data.height,
        owner_id=data.owner_id,
        allow_random=data.allow_random,
    )


class ImageRepository(BaseRepository[Image]):
    """Image repository. (content_hash, owner_id) uniqueness is a table constraint."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        super().__init__(session_factory, Image)

    async def get_by_id(
        self, image_id: str, owner_id: str | None = None
    ) -> ImageResult | None:
        stmt = select(Image).where(Image.id == image_id).options(_WITH_LOCATIONS)
        if owner_id is not None:
            stmt = stmt.where(Image.owner_id == owner_id)
        async with self._session() as session:
            row = (await session.execute(stmt)).scalar_one_or_none()
            return _to_result(row, with_locations=True) if row else None

    async def get_by_hash_and_owner(
        self, content_hash: str, owner_id: str
    ) -> ImageResult | None:
        async with self._session() as session:
            result = await session.execute(
                select(Image)
                .where(Image.content_hash == content_hash, Image.owner_id == owner_id)
                .options(_WITH_LOCATIONS)
            )
            row = result.scalar_one_or_none()
            return _to_result(row, with_locations=True) if row else None

    async def get_shared_by_hash(
        self, content_hash: str, exclude_owner_id: str
    ) -> ImageResult | None:
        async with self._session() as session:
            result = await session.execute(
                select(Image)
                .where(
                    Image.content_hash == content_hash,
                    Image.owner_id != exclude_owner_id,
                )
                .options(_WITH_LOCATIONS)
                .order_by(Image.created_at)
            )
            candidates = [_to_result(r, with_locations=True) for r in result.scalars()]
        for candidate in candidates:
            if candidate.active_locations:
                return candidate
        return candidates[0] if candidates else None

    async def create(self, image: ImageCreate) -> ImageResult:
        row = _from_create(image)
        try:
            async with self._transaction() as session:
                session.add(row)
                await session.flush()
                await session.refresh(row, attribute_names=["created_at"])
                return _to_result(row)
        except IntegrityError as e:
            raise DuplicateImageException(image.content_hash, image.owner_id) from e

    async def create_with_locations(
        self, image: ImageCreate, locations: list[StorageLocationCreate]
    ) -> ImageResult:
        async with self._transaction() as session:
            session.add(_from_create(image))
            # Image row first so location FKs resolve on flush
            try:
                await session.flush()
            except IntegrityError as e:
                raise DuplicateImageException(image.content_hash, image.owner_id) from e
            session.add_all([location_from_create(loc) for loc in locations])
            try:
                await session.flush()
            except IntegrityError as e:
                raise ConflictException(
                    f"Storage locations for image {image.id} conflict with existing rows",
                    image_id=image.id,
                    backend_ids=[loc.backend_id for loc in locations],
                ) from e
        created = await self.get_by_id(image.id)
        if created is None:
            raise DuplicateImageException(image.content_hash, image.owner_id)
        return created

    async def delete(self, image_id: str) -> None:
        async with self._transaction() as session:
            await session.execute(
                delete(StorageLocation).where(StorageLocation.image_id == image_id)
            )
            await session.execute(delete(Image).where(Image.id == image_id))

    async def count_by_hash(self, content_hash: str, exclude_image_id: str) -> int:
        return await self._count(
            Image.content_hash == content_hash, Image.id != exclude_image_id
        )

    async def list_images(
        self,
        owner_id: str | None,
        keyword: str | None,
        page: int,
        page_size: int,
    ) -> ImageListPage:
        page = max(page, 1)
        page_size = max(page_size, 1)
        criteria = []
        if owner_id is not None:
            criteria.append(Image.owner_id == owner_id)
        if keyword:
            criteria.append(Image.original_filename.ilike(f"%{keyword}%"))
        total = await self._count(*criteria)
        async with self._session() as session:
            result = await session.execute(
                select(Image)
                .where(*criteria)
                .options(_WITH_LOCATIONS)
                .order_by(Image.created_at.desc(), Image.id)
                .offset((page - 1) * page_size)
                .limit(page_size)
            )
            images = [_to_result(r, with_locations=True) for r in result.scalars()]
        return ImageListPage(total=total, page=page, page_size=page_size, images=images)

    async def toggle_allow_random(
        self, image_id: str, owner_id: str | None = None
    ) -> ImageResult | None:
        stmt = select(Image).where(Image.id == image_id)
        if owner_id is not None:
            stmt = stmt.where(Image.owner_id == owner_id)
        async with self._transaction() as session:
            row = (await session.execute(stmt)).scalar_one_or_none()
            if row is None:
                return None
            row.allow_random = not row.allow_random
            await session.flush()
            return _to_result(row)

    async def set_allow_random(self, image_ids: Collection[str], value: bool) -> int:
        if not image_ids:
            return 0
        async with self._transaction() as session:
            result = await session.execute(
                update(Image)
                .where(Image.id.in_(list(image_ids)))
                .values(allow_random=value)
            )
            return result.rowcount or 0

    async def list_random_eligible_ids(self) -> list[str]:
        async with self._session() as session:
            result = await session.execute(
                select(Image.id).where(Image.allow_random.is_(True))
            )
            return list(result.scalars().all())

    async def count_owned(self, image_ids: Collection[str], owner_id: str) -> int:
        if not image_ids:
            return 0
        return await self._count(
            Image.id.in_(list(image_ids)), Image.owner_id == owner_id
        )

    async def summarize(
        self, owner_id: str | None, since: datetime
    ) -> tuple[int, int, int]:
        owner_filter = [Image.owner_id == owner_id] if owner_id is not None else []
        async with self._session() as session:
            count, total_size = (
                await session.execute(
                    select(
                        func.count(Image.id), func.coalesce(func.sum(Image.file_size), 0)
                    ).where(*owner_filter)
                )
            ).one()
            since_count = (
                await session.execute(
                    select(func.count(Image.id)).where(
                        *owner_filter, Image.created_at >= since
                    )
                )
            ).scalar_one()
        return int(count), int(total_size), int(since_count)
