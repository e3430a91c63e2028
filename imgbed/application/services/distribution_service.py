"""Distribution engine: concurrent fan-out of one upload to many backends."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from imgbed.application.dtos.storage_location import (
    StorageLocationCreate,
    StorageLocationResult,
)
from imgbed.domain.exceptions import ImgbedException

if TYPE_CHECKING:
    from imgbed.application.dtos.backend import BackendResult
    from imgbed.application.dtos.upload import UploadResult
    from imgbed.application.interfaces.repositories import IStorageLocationRepository
    from imgbed.application.interfaces.services import IBackendRegistry
    from imgbed.application.interfaces.storage import IFileSource, IUploader

logger = logging.getLogger(__name__)


class DistributionService:
    """Uploads to each target backend independently and records one location per success.

    A failed backend is logged and left out of the result; siblings are
    unaffected and nothing already recorded is rolled back. Callers decide
    whether an empty result is an overall failure.
    """

    def __init__(
        self,
        registry: IBackendRegistry,
        location_repo: IStorageLocationRepository,
    ) -> None:
        self.registry = registry
        self.location_repo = location_repo

    async def distribute(
        self,
        source: IFileSource,
        unique_name: str,
        image_id: str,
        backends: list[BackendResult],
    ) -> list[StorageLocationResult]:
        """Upload source to every backend concurrently; return created locations."""
        if not backends:
            return []
        results = await asyncio.gather(
            *(
                self._upload_one(source, unique_name, image_id, backend)
                for backend in backends
            )
        )
        created = [loc for loc in results if loc is not None]
        logger.info(
            "Distributed %s (image %s) to %d/%d backend(s)",
            unique_name,
            image_id,
            len(created),
            len(backends),
        )
        return created

    async def backfill_from_path(
        self,
        path: str | Path,
        unique_name: str,
        image_id: str,
        backend: BackendResult,
    ) -> StorageLocationResult | None:
        """Copy a local file to one backend and record the location (batch backfill)."""
        uploader = self._uploader_for(backend)
        if uploader is None:
            return None
        try:
            result = await uploader.upload_from_path(path, unique_name)
        except (ImgbedException, OSError) as e:
            self._log_failure(backend, image_id, e)
            return None
        except Exception:
            self._log_unexpected(backend, image_id)
            return None
        return await self._record(image_id, backend, uploader, result)

    async def _upload_one(
        self,
        source: IFileSource,
        unique_name: str,
        image_id: str,
        backend: BackendResult,
    ) -> StorageLocationResult | None:
        uploader = self._uploader_for(backend)
        if uploader is None:
            return None
        try:
            # Own stream per backend; a shared reader is consumed by the first upload
            with source.open() as stream:
                result = await uploader.upload(stream, unique_name)
        except (ImgbedException, OSError) as e:
            self._log_failure(backend, image_id, e)
            return None
        except Exception:
            self._log_unexpected(backend, image_id)
            return None
        return await self._record(image_id, backend, uploader, result)

    def _uploader_for(self, backend: BackendResult) -> IUploader | None:
        uploader = self.registry.get(backend.id)
        if uploader is None:
            logger.warning(
                "Uploader for backend %s (ID: %s) not loaded; skipping",
                backend.name,
                backend.id,
            )
        return uploader

    async def _record(
        self,
        image_id: str,
        backend: BackendResult,
        uploader: IUploader,
        result: UploadResult,
    ) -> StorageLocationResult | None:
        try:
            return await self.location_repo.create(
                StorageLocationCreate(
                    image_id=image_id,
                    backend_id=backend.id,
                    storage_kind=uploader.kind,
                    url=result.url,
                    delete_identifier=result.delete_identifier,
                )
            )
        except ImgbedException as e:
            logger.warning(
                "Uploaded image %s to backend %s (ID: %s) but could not record location: %s",
                image_id,
                backend.name,
                backend.id,
                e.message,
            )
            return None
        except Exception:
            logger.exception(
                "Uploaded image %s to backend %s (ID: %s) but recording the location raised",
                image_id,
                backend.name,
                backend.id,
            )
            return None

    @staticmethod
    def _log_unexpected(backend: BackendResult, image_id: str) -> None:
        logger.exception(
            "Upload of image %s to backend %s (ID: %s, kind: %s) raised unexpectedly",
            image_id,
            backend.name,
            backend.id,
            backend.kind,
        )

    @staticmethod
    def _log_failure(backend: BackendResult, image_id: str, error: Exception) -> None:
        logger.warning(
            "Upload of image %s to backend %s (ID: %s, kind: %s) failed: %s",
            image_id,
            backend.name,
            backend.id,
            backend.kind,
            getattr(error, "message", None) or error,
        )
