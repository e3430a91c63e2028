"""Persistence repositories. Re-exports for dependency injection."""

from imgbed.infrastructure.persistence.repositories.backend_repo import (
    BackendRepository,
)
from imgbed.infrastructure.persistence.repositories.base import BaseRepository
from imgbed.infrastructure.persistence.repositories.image_repo import ImageRepository
from imgbed.infrastructure.persistence.repositories.setting_repo import (
    SettingRepository,
)
from imgbed.infrastructure.persistence.repositories.storage_location_repo import (
    StorageLocationRepository,
)

__all__ = [
    "BackendRepository",
    "BaseRepository",
    "ImageRepository",
    "SettingRepository",
    "StorageLocationRepository",
]
