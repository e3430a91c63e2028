"""Application interfaces (ports): repository, storage and service protocols.

Define contracts for infrastructure implementations (DIP).
No runtime imports from imgbed.infrastructure.
"""

from imgbed.application.interfaces.repositories import (
    IBackendRepository,
    IImageRepository,
    ISettingRepository,
    IStorageLocationRepository,
)
from imgbed.application.interfaces.services import (
    IBackendRegistry,
    IHealthChecker,
    IRuntimeSettings,
    ITaskStore,
    IUploaderFactory,
)
from imgbed.application.interfaces.storage import IFileSource, IUploader

__all__ = [
    "IBackendRegistry",
    "IBackendRepository",
    "IFileSource",
    "IHealthChecker",
    "IImageRepository",
    "IRuntimeSettings",
    "ISettingRepository",
    "IStorageLocationRepository",
    "ITaskStore",
    "IUploader",
    "IUploaderFactory",
]
