"""DTOs for image use cases (no dependency on ORM)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from imgbed.application.dtos.storage_location import StorageLocationResult


@dataclass(frozen=True)
class ImageCreate:
    """Input for creating an image record (write-model). Id is chosen by the caller."""

    id: str
    content_hash: str
    original_filename: str
    file_size: int
    content_type: str
    width: int
    height: int
    owner_id: str
    allow_random: bool = False


@dataclass(frozen=True)
class ImageResult:
    """Image read-model, optionally with its storage locations."""

    id: str
    content_hash: str
    original_filename: str
    file_size: int
    content_type: str
    width: int
    height: int
    owner_id: str
    allow_random: bool
    locations: tuple[StorageLocationResult, ...] = field(default_factory=tuple)
    created_at: datetime | None = None

    @property
    def backend_ids(self) -> frozenset[str]:
        """Backends that already hold a location for this image."""
        return frozenset(loc.backend_id for loc in self.locations)

    @property
    def active_locations(self) -> tuple[StorageLocationResult, ...]:
        return tuple(loc for loc in self.locations if loc.is_active)


@dataclass(frozen=True)
class ImageListPage:
    """One page of images for list_images."""

    total: int
    page: int
    page_size: int
    images: list[ImageResult]


@dataclass(frozen=True)
class ImageStats:
    """Aggregate counters for the dashboard."""

    total_images: int
    total_size: int
    total_backends: int
    today_uploads: int
