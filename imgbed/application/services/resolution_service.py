"""Resolution engine: pick a healthy storage location for an image.

Locations carry a failure counter that acts as circuit-breaker state:
reset on a successful probe, incremented on a failed one. Both updates
are fire-and-forget so read latency never waits on bookkeeping; they are
advisory and may race with a later read.
"""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING

from imgbed.domain.enums import AccessPolicy
from imgbed.domain.exceptions import (
    ResourceNotFoundException,
    StorageUnavailableException,
)
from imgbed.shared.background import fire_and_forget

if TYPE_CHECKING:
    from imgbed.application.dtos.storage_location import StorageLocationResult
    from imgbed.application.interfaces.repositories import (
        IImageRepository,
        IStorageLocationRepository,
    )
    from imgbed.application.interfaces.services import IHealthChecker, IRuntimeSettings

logger = logging.getLogger(__name__)


class ResolutionService:
    """get_healthy_location over eligible candidates, ordered by access policy."""

    def __init__(
        self,
        image_repo: IImageRepository,
        location_repo: IStorageLocationRepository,
        health_checker: IHealthChecker,
        runtime_settings: IRuntimeSettings,
        rng: random.Random | None = None,
    ) -> None:
        self.image_repo = image_repo
        self.location_repo = location_repo
        self.health_checker = health_checker
        self.runtime_settings = runtime_settings
        self.rng = rng or random.Random()

    def eligible_candidates(
        self, locations: tuple[StorageLocationResult, ...], max_failures: int
    ) -> list[StorageLocationResult]:
        """Active, redirect-enabled, and under the failure threshold (0 = unlimited)."""
        return [
            loc
            for loc in locations
            if loc.is_active
            and loc.backend is not None
            and loc.backend.allow_redirect
            and (max_failures == 0 or loc.failure_count < max_failures)
        ]

    def order_candidates(
        self, candidates: list[StorageLocationResult], policy: AccessPolicy
    ) -> list[StorageLocationResult]:
        if policy == AccessPolicy.PRIORITY:
            # sorted() is stable: equal priorities keep load order
            return sorted(
                candidates,
                key=lambda loc: loc.backend.priority if loc.backend else 0,
            )
        shuffled = list(candidates)
        self.rng.shuffle(shuffled)
        return shuffled

    async def get_healthy_location(self, image_id: str) -> StorageLocationResult:
        """Return the first healthy candidate.

        Raises:
            ResourceNotFoundException: No image with image_id.
            StorageUnavailableException: Image exists but no candidate is servable.
        """
        image = await self.image_repo.get_by_id(image_id)
        if image is None:
            raise ResourceNotFoundException("image", image_id)

        max_failures = self.runtime_settings.retry_count
        candidates = self.order_candidates(
            self.eligible_candidates(image.locations, max_failures),
            self.runtime_settings.access_policy,
        )
        if not candidates:
            raise StorageUnavailableException(
                "No eligible storage location for image", image_id=image_id
            )

        if max_failures == 0:
            return candidates[0]

        for loc in candidates:
            if await self.health_checker.is_healthy(loc):
                if loc.failure_count > 0:
                    fire_and_forget(
                        self.location_repo.reset_failure(loc.id),
                        name=f"reset-failure-{loc.id}",
                    )
                return loc
            logger.warning(
                "Storage location %s (backend %s) failed health probe (failures: %d)",
                loc.id,
                loc.backend_id,
                loc.failure_count + 1,
            )
            fire_and_forget(
                self.location_repo.increment_failure(loc.id),
                name=f"increment-failure-{loc.id}",
            )

        raise StorageUnavailableException(
            "All storage locations for image are unreachable", image_id=image_id
        )
