"""Image operations: ingest (write), deletion and query (read) with single responsibilities."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from imgbed.application.dtos.image import (
    ImageCreate,
    ImageListPage,
    ImageResult,
    ImageStats,
)
from imgbed.application.dtos.storage_location import StorageLocationCreate
from imgbed.application.services.image_probe import probe_dimensions
from imgbed.domain.exceptions import (
    DuplicateImageException,
    ImgbedException,
    ResourceNotFoundException,
    StorageUnavailableException,
    ValidationException,
)
from imgbed.shared.utils.datetime import start_of_day_utc
from imgbed.shared.utils.generators import generate_cuid, generate_unique_name

if TYPE_CHECKING:
    from collections.abc import Collection

    from imgbed.application.dtos.backend import BackendResult
    from imgbed.application.dtos.storage_location import StorageLocationResult
    from imgbed.application.interfaces.repositories import (
        IBackendRepository,
        IImageRepository,
    )
    from imgbed.application.interfaces.services import (
        IBackendRegistry,
        IRuntimeSettings,
    )
    from imgbed.application.interfaces.storage import IFileSource
    from imgbed.application.services.distribution_service import DistributionService
    from imgbed.application.services.hash_service import ContentHashService
    from imgbed.application.services.random_image_cache import RandomImageCache

logger = logging.getLogger(__name__)

_BYTES_PER_MB = 1024 * 1024


class ImageUploadService:
    """Ingest coordinator: deduplicate by content hash, then backfill, share, or upload.

    Paths, in order:
    1. Same owner already has this content: upload only to target backends
       missing a location (backfill).
    2. Another owner has it with active locations: new image row pointing at
       the same physical objects, no upload (sharing).
    3. Otherwise a new upload to every target backend; the image row is
       removed again if no backend accepted it.
    """

    def __init__(
        self,
        image_repo: IImageRepository,
        backend_repo: IBackendRepository,
        distributor: DistributionService,
        hasher: ContentHashService,
        runtime_settings: IRuntimeSettings,
    ) -> None:
        self.image_repo = image_repo
        self.backend_repo = backend_repo
        self.distributor = distributor
        self.hasher = hasher
        self.runtime_settings = runtime_settings

    async def upload_image(
        self,
        source: IFileSource,
        owner_id: str,
        target_backend_ids: Collection[str] | None = None,
    ) -> ImageResult:
        """Store source for owner_id and return the image with its locations.

        Raises:
            ValidationException: Payload larger than the configured limit.
            StorageUnavailableException: No target backend, or every upload failed.
        """
        max_bytes = self.runtime_settings.max_upload_mb * _BYTES_PER_MB
        if source.size > max_bytes:
            raise ValidationException(
                f"File exceeds the {self.runtime_settings.max_upload_mb} MB upload limit",
                field="file",
            )

        content_hash = await self.hasher.compute(source)

        existing = await self.image_repo.get_by_hash_and_owner(content_hash, owner_id)
        if existing is not None:
            return await self._backfill(existing, source, target_backend_ids)

        shared = await self.image_repo.get_shared_by_hash(content_hash, owner_id)
        if shared is not None and shared.active_locations:
            return await self._share(shared, source, owner_id, target_backend_ids)

        return await self._upload_new(
            content_hash, source, owner_id, target_backend_ids
        )

    async def _resolve_targets(
        self, target_backend_ids: Collection[str] | None
    ) -> list[BackendResult]:
        return await self.backend_repo.list_upload_enabled(
            set(target_backend_ids) if target_backend_ids is not None else None
        )

    async def _backfill(
        self,
        image: ImageResult,
        source: IFileSource,
        target_backend_ids: Collection[str] | None,
    ) -> ImageResult:
        targets = await self._resolve_targets(target_backend_ids)
        missing = [b for b in targets if b.id not in image.backend_ids]
        if not missing:
            logger.info("Image %s already on every target backend", image.id)
            return image
        await self.distributor.distribute(
            source,
            generate_unique_name(image.id, image.original_filename),
            image.id,
            missing,
        )
        refreshed = await self.image_repo.get_by_id(image.id)
        return refreshed or image

    async def _share(
        self,
        shared: ImageResult,
        source: IFileSource,
        owner_id: str,
        target_backend_ids: Collection[str] | None,
    ) -> ImageResult:
        width, height = await probe_dimensions(source)
        if not (width and height):
            width, height = shared.width, shared.height
        image_id = generate_cuid()
        image = ImageCreate(
            id=image_id,
            content_hash=shared.content_hash,
            original_filename=source.filename,
            file_size=source.size,
            content_type=source.content_type,
            width=width,
            height=height,
            owner_id=owner_id,
        )
        locations = [
            StorageLocationCreate(
                image_id=image_id,
                backend_id=loc.backend_id,
                storage_kind=loc.storage_kind,
                url=loc.url,
                delete_identifier=loc.delete_identifier,
            )
            for loc in shared.active_locations
        ]
        try:
            created = await self.image_repo.create_with_locations(image, locations)
        except DuplicateImageException:
            return await self._after_duplicate(
                shared.content_hash, owner_id, source, target_backend_ids
            )
        logger.info(
            "Image %s for owner %s shares %d location(s) with image %s",
            created.id,
            owner_id,
            len(locations),
            shared.id,
        )
        return created

    async def _upload_new(
        self,
        content_hash: str,
        source: IFileSource,
        owner_id: str,
        target_backend_ids: Collection[str] | None,
    ) -> ImageResult:
        targets = await self._resolve_targets(target_backend_ids)
        if not targets:
            raise StorageUnavailableException(
                "No upload-accepting storage backend is configured or selected"
            )

        width, height = await probe_dimensions(source)
        image_id = generate_cuid()
        try:
            await self.image_repo.create(
                ImageCreate(
                    id=image_id,
                    content_hash=content_hash,
                    original_filename=source.filename,
                    file_size=source.size,
                    content_type=source.content_type,
                    width=width,
                    height=height,
                    owner_id=owner_id,
                )
            )
        except DuplicateImageException:
            return await self._after_duplicate(
                content_hash, owner_id, source, target_backend_ids
            )

        try:
            locations = await self.distributor.distribute(
                source,
                generate_unique_name(image_id, source.filename),
                image_id,
                targets,
            )
        except BaseException:
            logger.exception("Distribution of image %s aborted; removing row", image_id)
            await self.image_repo.delete(image_id)
            raise
        if not locations:
            await self.image_repo.delete(image_id)
            raise StorageUnavailableException(
                "Upload failed on every target backend",
                backend_ids=[b.id for b in targets],
            )

        created = await self.image_repo.get_by_id(image_id)
        if created is None:
            raise ResourceNotFoundException("image", image_id)
        return created

    async def _after_duplicate(
        self,
        content_hash: str,
        owner_id: str,
        source: IFileSource,
        target_backend_ids: Collection[str] | None,
    ) -> ImageResult:
        """A concurrent upload of the same content won the insert; continue as backfill."""
        existing = await self.image_repo.get_by_hash_and_owner(content_hash, owner_id)
        if existing is None:
            raise StorageUnavailableException(
                "Concurrent upload of identical content did not complete",
                content_hash=content_hash,
            )
        logger.info(
            "Concurrent upload of %s for owner %s; continuing as backfill of %s",
            content_hash,
            owner_id,
            existing.id,
        )
        return await self._backfill(existing, source, target_backend_ids)


class ImageDeletionService:
    """Delete an image; physical objects go only with the last image of that content."""

    def __init__(
        self,
        image_repo: IImageRepository,
        registry: IBackendRegistry,
        random_cache: RandomImageCache | None = None,
    ) -> None:
        self.image_repo = image_repo
        self.registry = registry
        self.random_cache = random_cache

    async def delete_image(
        self, image_id: str, requester_id: str, is_admin: bool = False
    ) -> None:
        """Delete image_id. Non-admins may only delete their own images.

        Raises:
            ResourceNotFoundException: Missing, or owned by someone else.
        """
        image = await self.image_repo.get_by_id(
            image_id, owner_id=None if is_admin else requester_id
        )
        if image is None:
            raise ResourceNotFoundException("image", image_id)

        others = await self.image_repo.count_by_hash(image.content_hash, image.id)
        if others == 0:
            await asyncio.gather(
                *(self._delete_physical(loc) for loc in image.locations)
            )
        else:
            logger.info(
                "Skipping physical deletion for hash %s; referenced by %d other image(s)",
                image.content_hash,
                others,
            )

        await self.image_repo.delete(image.id)
        logger.info("Deleted image %s (owner %s)", image.id, image.owner_id)
        if image.allow_random and self.random_cache is not None:
            self.random_cache.schedule_refresh()

    async def _delete_physical(self, location: StorageLocationResult) -> None:
        uploader = self.registry.get(location.backend_id)
        if uploader is None:
            logger.warning(
                "Uploader for backend %s not loaded; cannot delete %s",
                location.backend_id,
                location.url,
            )
            return
        identifier = location.delete_identifier or location.url
        try:
            await uploader.delete(identifier)
        except ImgbedException as e:
            logger.warning(
                "Failed to delete %s from backend %s (kind: %s): %s",
                location.url,
                location.backend_id,
                location.storage_kind,
                e.message,
            )
            return
        except Exception:
            logger.exception(
                "Deleting %s from backend %s (kind: %s) raised unexpectedly",
                location.url,
                location.backend_id,
                location.storage_kind,
            )
            return
        logger.info(
            "Deleted %s from backend %s (kind: %s)",
            location.url,
            location.backend_id,
            location.storage_kind,
        )


class ImageQueryService:
    """Read-side image operations: listing, details, random pool, stats."""

    def __init__(
        self,
        image_repo: IImageRepository,
        backend_repo: IBackendRepository,
        random_cache: RandomImageCache,
    ) -> None:
        self.image_repo = image_repo
        self.backend_repo = backend_repo
        self.random_cache = random_cache

    async def list_images(
        self,
        owner_id: str | None = None,
        keyword: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> ImageListPage:
        """Page through images (owner_id None = all owners)."""
        return await self.image_repo.list_images(owner_id, keyword, page, page_size)

    async def get_image_details(
        self, image_id: str, owner_id: str | None = None
    ) -> ImageResult:
        image = await self.image_repo.get_by_id(image_id, owner_id=owner_id)
        if image is None:
            raise ResourceNotFoundException("image", image_id)
        return image

    async def toggle_random_eligibility(
        self, image_id: str, owner_id: str | None = None
    ) -> ImageResult:
        """Flip allow_random. owner_id restricts to the owner's images."""
        image = await self.image_repo.toggle_allow_random(image_id, owner_id)
        if image is None:
            raise ResourceNotFoundException("image", image_id)
        self.random_cache.schedule_refresh()
        return image

    async def set_random_eligibility(
        self, image_ids: Collection[str], allow_random: bool
    ) -> int:
        """Set allow_random on many images; returns rows updated."""
        updated = await self.image_repo.set_allow_random(image_ids, allow_random)
        self.random_cache.schedule_refresh()
        return updated

    def get_random_eligible_image_id(self) -> str:
        image_id = self.random_cache.pick()
        if image_id is None:
            raise ResourceNotFoundException("random image", "pool is empty")
        return image_id

    async def get_stats(self, owner_id: str | None = None) -> ImageStats:
        """Totals for owner_id (None = all) and uploads since 00:00 UTC today."""
        count, total_size, today = await self.image_repo.summarize(
            owner_id, start_of_day_utc()
        )
        return ImageStats(
            total_images=count,
            total_size=total_size,
            total_backends=await self.backend_repo.count(),
            today_uploads=today,
        )
