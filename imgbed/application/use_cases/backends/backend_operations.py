"""Backend administration: CRUD, flag toggles, location toggles, token verification.

Every mutation schedules a registry refresh and returns without waiting
for it; lookups may see the old map until the refresh lands.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from imgbed.application.dtos.backend import BackendUpdate
from imgbed.domain.enums import BackendFlag
from imgbed.domain.exceptions import (
    ConflictException,
    ResourceNotFoundException,
    ValidationException,
)

if TYPE_CHECKING:
    from imgbed.application.dtos.backend import BackendCreate, BackendResult
    from imgbed.application.dtos.storage_location import StorageLocationResult
    from imgbed.application.interfaces.repositories import (
        IBackendRepository,
        IStorageLocationRepository,
    )
    from imgbed.application.interfaces.services import (
        IBackendRegistry,
        IUploaderFactory,
    )

logger = logging.getLogger(__name__)


class BackendAdminService:
    """Administrator operations over storage backends."""

    def __init__(
        self,
        backend_repo: IBackendRepository,
        location_repo: IStorageLocationRepository,
        registry: IBackendRegistry,
        factory: IUploaderFactory,
    ) -> None:
        self.backend_repo = backend_repo
        self.location_repo = location_repo
        self.registry = registry
        self.factory = factory

    async def list_backends(self) -> list[BackendResult]:
        return await self.backend_repo.list_all()

    async def get_backend(self, backend_id: str) -> BackendResult:
        backend = await self.backend_repo.get_by_id(backend_id)
        if backend is None:
            raise ResourceNotFoundException("backend", backend_id)
        return backend

    async def create_backend(self, data: BackendCreate) -> BackendResult:
        """Validate the config blob, persist, and schedule a registry refresh.

        Raises:
            ValidationException: Unknown kind or malformed config.
            ConflictException: Name already taken.
        """
        kind = self.factory.validate(data.kind, data.config)
        backend = await self.backend_repo.create(replace(data, kind=kind))
        logger.info("Created backend %s (ID: %s, kind: %s)", backend.name, backend.id, kind)
        self.registry.schedule_refresh()
        return backend

    async def update_backend(
        self, backend_id: str, changes: BackendUpdate
    ) -> BackendResult:
        existing = await self.get_backend(backend_id)
        if changes.config is not None:
            self.factory.validate(existing.kind, changes.config)
        updated = await self.backend_repo.update(backend_id, changes)
        if updated is None:
            raise ResourceNotFoundException("backend", backend_id)
        logger.info("Updated backend %s (ID: %s)", updated.name, updated.id)
        self.registry.schedule_refresh()
        return updated

    async def delete_backend(self, backend_id: str) -> None:
        """Delete a backend that no storage location references.

        Raises:
            ConflictException: Locations still point at this backend.
            ResourceNotFoundException: No such backend.
        """
        in_use = await self.location_repo.count_by_backend(backend_id)
        if in_use > 0:
            raise ConflictException(
                "Backend is still referenced by storage locations; "
                "remove or migrate them first",
                backend_id=backend_id,
                location_count=in_use,
            )
        if not await self.backend_repo.delete(backend_id):
            raise ResourceNotFoundException("backend", backend_id)
        logger.info("Deleted backend %s", backend_id)
        self.registry.schedule_refresh()

    async def toggle_backend_flag(
        self, backend_id: str, flag: BackendFlag | str
    ) -> BackendResult:
        """Flip allow_upload or allow_redirect."""
        try:
            parsed = BackendFlag(flag)
        except ValueError as e:
            raise ValidationException(
                f"Unknown backend flag: {flag!r} (expected one of {BackendFlag.values()})",
                field="flag",
            ) from e
        existing = await self.get_backend(backend_id)
        new_value = not getattr(existing, parsed.value)
        return await self.update_backend(
            backend_id, BackendUpdate(**{parsed.value: new_value})
        )

    async def toggle_location_active(self, location_id: str) -> StorageLocationResult:
        location = await self.location_repo.toggle_active(location_id)
        if location is None:
            raise ResourceNotFoundException("storage location", location_id)
        logger.info(
            "Storage location %s is now %s",
            location_id,
            "active" if location.is_active else "inactive",
        )
        return location

    async def verify_backend(self, backend_id: str) -> dict[str, Any]:
        """Check the backend's credentials with its provider, when the kind supports it."""
        uploader = self.registry.get(backend_id)
        if uploader is None:
            raise ResourceNotFoundException("backend", backend_id)
        verify = getattr(uploader, "verify_token", None)
        if verify is None:
            raise ValidationException(
                f"Backend kind {uploader.kind!r} does not support verification",
                field="backend_id",
            )
        return await verify()

    async def refresh_registry(self) -> int:
        """Reload uploaders now (waits for completion)."""
        return await self.registry.refresh()
