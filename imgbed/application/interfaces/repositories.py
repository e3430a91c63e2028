"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference application DTOs only; no infrastructure imports.
Every method is its own unit of work, so callers may run them concurrently.
"""

from __future__ import annotations

from collections.abc import Collection
from datetime import datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from imgbed.application.dtos.backend import (
        BackendCreate,
        BackendResult,
        BackendUpdate,
    )
    from imgbed.application.dtos.image import ImageCreate, ImageListPage, ImageResult
    from imgbed.application.dtos.storage_location import (
        StorageLocationCreate,
        StorageLocationResult,
    )


# Image repository interface
class IImageRepository(Protocol):
    """Protocol for image repository (DIP)."""

    async def get_by_id(
        self, image_id: str, owner_id: str | None = None
    ) -> ImageResult | None:
        """Return image with locations (and their backends). owner_id filters when set."""

    async def get_by_hash_and_owner(
        self, content_hash: str, owner_id: str
    ) -> ImageResult | None:
        """Return the owner's image for this content, with locations."""

    async def get_shared_by_hash(
        self, content_hash: str, exclude_owner_id: str
    ) -> ImageResult | None:
        """Return another owner's image with this content, preferring one with active locations."""

    async def create(self, image: ImageCreate) -> ImageResult:
        """Insert the image row. Raises DuplicateImageException on (hash, owner) conflict."""

    async def create_with_locations(
        self, image: ImageCreate, locations: list[StorageLocationCreate]
    ) -> ImageResult:
        """Insert image and locations in one transaction (all or nothing)."""

    async def delete(self, image_id: str) -> None:
        """Delete the image and its storage locations in one transaction."""

    async def count_by_hash(self, content_hash: str, exclude_image_id: str) -> int:
        """Count other images sharing this content hash."""

    async def list_images(
        self,
        owner_id: str | None,
        keyword: str | None,
        page: int,
        page_size: int,
    ) -> ImageListPage:
        """Return one page of images, newest first, filtered by owner and filename keyword."""

    async def toggle_allow_random(
        self, image_id: str, owner_id: str | None = None
    ) -> ImageResult | None:
        """Flip allow_random; None when not found (or not owned)."""

    async def set_allow_random(self, image_ids: Collection[str], value: bool) -> int:
        """Set allow_random on many images; returns rows updated."""

    async def list_random_eligible_ids(self) -> list[str]:
        """Return ids of images with allow_random set."""

    async def count_owned(self, image_ids: Collection[str], owner_id: str) -> int:
        """Count how many of image_ids belong to owner_id."""

    async def summarize(
        self, owner_id: str | None, since: datetime
    ) -> tuple[int, int, int]:
        """Return (image count, total bytes, images created since `since`)."""


# Storage location repository interface
class IStorageLocationRepository(Protocol):
    """Protocol for storage location repository (DIP)."""

    async def create(self, location: StorageLocationCreate) -> StorageLocationResult:
        """Insert a location. Raises ConflictException if (image, backend) exists."""

    async def get_by_id(self, location_id: str) -> StorageLocationResult | None:
        """Return location by id."""

    async def increment_failure(self, location_id: str) -> None:
        """Atomically add one to failure_count."""

    async def reset_failure(self, location_id: str) -> None:
        """Set failure_count to zero."""

    async def toggle_active(self, location_id: str) -> StorageLocationResult | None:
        """Flip is_active; None when not found."""

    async def count_by_backend(self, backend_id: str) -> int:
        """Count locations stored on a backend."""


# Backend repository interface
class IBackendRepository(Protocol):
    """Protocol for backend configuration repository (DIP)."""

    async def list_all(self) -> list[BackendResult]:
        """Return every backend ordered by priority, then name."""

    async def get_by_id(self, backend_id: str) -> BackendResult | None:
        """Return backend by id."""

    async def list_upload_enabled(
        self, backend_ids: Collection[str] | None = None
    ) -> list[BackendResult]:
        """Return upload-accepting backends by priority; restricted to backend_ids when given."""

    async def create(self, backend: BackendCreate) -> BackendResult:
        """Insert backend. Raises ConflictException on duplicate name."""

    async def update(
        self, backend_id: str, changes: BackendUpdate
    ) -> BackendResult | None:
        """Apply non-None fields; None when not found."""

    async def delete(self, backend_id: str) -> bool:
        """Delete backend; False when not found."""

    async def count(self) -> int:
        """Return number of configured backends."""


# Settings repository interface
class ISettingRepository(Protocol):
    """Protocol for the key/value setting table (read-only from the core)."""

    async def get_all(self) -> dict[str, str]:
        """Return every setting as key -> raw string value."""
