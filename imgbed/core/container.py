"""Service container: one place that wires repositories, registry and services.

Built once by the lifespan and stored on app.state.container; API
dependencies read from it. Tests build their own with fakes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from imgbed.application.services.distribution_service import DistributionService
from imgbed.application.services.hash_service import ContentHashService
from imgbed.application.services.random_image_cache import RandomImageCache
from imgbed.application.services.resolution_service import ResolutionService
from imgbed.application.use_cases.backends.backend_operations import (
    BackendAdminService,
)
from imgbed.application.use_cases.images.batch_operations import BatchTaskRunner
from imgbed.application.use_cases.images.image_operations import (
    ImageDeletionService,
    ImageQueryService,
    ImageUploadService,
)
from imgbed.core.settings_cache import SettingsCache
from imgbed.core.task_store import TaskStore
from imgbed.infrastructure.external.health_checker import HealthChecker
from imgbed.infrastructure.external.storage.factory import UploaderFactory
from imgbed.infrastructure.external.storage.registry import BackendRegistry
from imgbed.infrastructure.persistence.repositories import (
    BackendRepository,
    ImageRepository,
    SettingRepository,
    StorageLocationRepository,
)

if TYPE_CHECKING:
    import httpx
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from imgbed.application.interfaces.repositories import (
        IBackendRepository,
        IImageRepository,
        ISettingRepository,
        IStorageLocationRepository,
    )
    from imgbed.application.interfaces.services import IHealthChecker
    from imgbed.core.config import Settings


@dataclass
class ServiceContainer:
    """Process-scoped services. Fields are the public surface callers use."""

    settings_cache: SettingsCache
    registry: BackendRegistry
    random_cache: RandomImageCache
    task_store: TaskStore
    resolution: ResolutionService
    uploads: ImageUploadService
    deletion: ImageDeletionService
    queries: ImageQueryService
    batches: BatchTaskRunner
    backends: BackendAdminService

    @classmethod
    def build(
        cls,
        settings: Settings,
        *,
        image_repo: IImageRepository,
        location_repo: IStorageLocationRepository,
        backend_repo: IBackendRepository,
        setting_repo: ISettingRepository | None = None,
        http_client: httpx.AsyncClient | None = None,
        health_checker: IHealthChecker | None = None,
        factory: UploaderFactory | None = None,
    ) -> ServiceContainer:
        """Wire services over the given repositories."""
        factory = factory or UploaderFactory(settings, http_client)
        registry = BackendRegistry(backend_repo, factory)
        settings_cache = SettingsCache(settings, setting_repo)
        random_cache = RandomImageCache(image_repo)
        task_store = TaskStore()
        distributor = DistributionService(registry, location_repo)
        health_checker = health_checker or HealthChecker(
            registry, http_client, timeout=settings.health_probe_timeout_seconds
        )
        deletion = ImageDeletionService(image_repo, registry, random_cache)
        queries = ImageQueryService(image_repo, backend_repo, random_cache)
        return cls(
            settings_cache=settings_cache,
            registry=registry,
            random_cache=random_cache,
            task_store=task_store,
            resolution=ResolutionService(
                image_repo, location_repo, health_checker, settings_cache
            ),
            uploads=ImageUploadService(
                image_repo,
                backend_repo,
                distributor,
                ContentHashService(),
                settings_cache,
            ),
            deletion=deletion,
            queries=queries,
            batches=BatchTaskRunner(
                task_store,
                image_repo,
                backend_repo,
                registry,
                distributor,
                deletion,
                queries,
            ),
            backends=BackendAdminService(
                backend_repo, location_repo, registry, factory
            ),
        )

    @classmethod
    def from_session_factory(
        cls,
        settings: Settings,
        session_factory: async_sessionmaker[AsyncSession],
        http_client: httpx.AsyncClient | None = None,
    ) -> ServiceContainer:
        """Wire services over the SQLAlchemy repositories."""
        return cls.build(
            settings,
            image_repo=ImageRepository(session_factory),
            location_repo=StorageLocationRepository(session_factory),
            backend_repo=BackendRepository(session_factory),
            setting_repo=SettingRepository(session_factory),
            http_client=http_client,
        )

    async def warm_up(self) -> None:
        """Load runtime settings, uploaders and the random pool."""
        await self.settings_cache.reload()
        await self.registry.refresh()
        await self.random_cache.refresh()
