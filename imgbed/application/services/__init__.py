"""Application services: hashing, probing, distribution, resolution, random pool."""

from imgbed.application.services.distribution_service import DistributionService
from imgbed.application.services.file_source import BytesFileSource, LocalFileSource
from imgbed.application.services.hash_service import (
    ContentHashService,
    HashAlgorithm,
    MD5Algorithm,
    SHA256Algorithm,
)
from imgbed.application.services.image_probe import probe_dimensions
from imgbed.application.services.random_image_cache import RandomImageCache
from imgbed.application.services.resolution_service import ResolutionService

__all__ = [
    "BytesFileSource",
    "ContentHashService",
    "DistributionService",
    "HashAlgorithm",
    "LocalFileSource",
    "MD5Algorithm",
    "RandomImageCache",
    "ResolutionService",
    "SHA256Algorithm",
    "probe_dimensions",
]
