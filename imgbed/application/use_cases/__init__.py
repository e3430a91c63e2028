"""Application use cases: one entry point per workflow."""

from imgbed.application.use_cases.backends import BackendAdminService
from imgbed.application.use_cases.images import (
    BatchTaskRunner,
    ImageDeletionService,
    ImageQueryService,
    ImageUploadService,
)

__all__ = [
    "BackendAdminService",
    "BatchTaskRunner",
    "ImageDeletionService",
    "ImageQueryService",
    "ImageUploadService",
]
