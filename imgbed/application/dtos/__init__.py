"""Application DTOs: frozen dataclasses passed between layers (no ORM types)."""

from imgbed.application.dtos.backend import BackendCreate, BackendResult, BackendUpdate
from imgbed.application.dtos.image import (
    ImageCreate,
    ImageListPage,
    ImageResult,
    ImageStats,
)
from imgbed.application.dtos.storage_location import (
    StorageLocationCreate,
    StorageLocationResult,
)
from imgbed.application.dtos.task import TaskResult
from imgbed.application.dtos.upload import UploadResult

__all__ = [
    "BackendCreate",
    "BackendResult",
    "BackendUpdate",
    "ImageCreate",
    "ImageListPage",
    "ImageResult",
    "ImageStats",
    "StorageLocationCreate",
    "StorageLocationResult",
    "TaskResult",
    "UploadResult",
]
