"""Image use cases: ingest, deletion, query, and batch operations."""

from imgbed.application.use_cases.images.batch_operations import BatchTaskRunner
from imgbed.application.use_cases.images.image_operations import (
    ImageDeletionService,
    ImageQueryService,
    ImageUploadService,
)

__all__ = [
    "BatchTaskRunner",
    "ImageDeletionService",
    "ImageQueryService",
    "ImageUploadService",
]
