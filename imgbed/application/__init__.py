"""Application layer: interfaces, services, use cases.

Depends only on domain and protocol definitions (DIP).
Infrastructure implements the interfaces (repositories, uploaders, registry).
"""

from imgbed.application.interfaces import (
    IBackendRegistry,
    IBackendRepository,
    IFileSource,
    IHealthChecker,
    IImageRepository,
    IRuntimeSettings,
    IStorageLocationRepository,
    IUploader,
)
from imgbed.application.services import (
    DistributionService,
    RandomImageCache,
    ResolutionService,
)
from imgbed.application.use_cases import (
    BackendAdminService,
    BatchTaskRunner,
    ImageDeletionService,
    ImageQueryService,
    ImageUploadService,
)

__all__ = [
    "BackendAdminService",
    "BatchTaskRunner",
    "DistributionService",
    "IBackendRegistry",
    "IBackendRepository",
    "IFileSource",
    "IHealthChecker",
    "IImageRepository",
    "IRuntimeSettings",
    "IStorageLocationRepository",
    "IUploader",
    "ImageDeletionService",
    "ImageQueryService",
    "ImageUploadService",
    "RandomImageCache",
    "ResolutionService",
]
