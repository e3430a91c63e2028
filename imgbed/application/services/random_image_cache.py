"""Random pool: ids of random-eligible images, rebuilt periodically."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import TYPE_CHECKING

from imgbed.shared.background import fire_and_forget

if TYPE_CHECKING:
    from imgbed.application.interfaces.repositories import IImageRepository

logger = logging.getLogger(__name__)


class RandomImageCache:
    """Immutable snapshot of eligible ids; refresh() swaps it under a lock."""

    def __init__(
        self, image_repo: IImageRepository, rng: random.Random | None = None
    ) -> None:
        self.image_repo = image_repo
        self.rng = rng or random.Random()
        self._ids: tuple[str, ...] = ()
        self._refresh_lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._ids)

    def pick(self) -> str | None:
        """Return a uniformly chosen id, or None when the pool is empty."""
        ids = self._ids
        if not ids:
            return None
        return self.rng.choice(ids)

    async def refresh(self) -> int:
        async with self._refresh_lock:
            ids = await self.image_repo.list_random_eligible_ids()
            self._ids = tuple(ids)
        logger.info("Random image cache updated with %d images", len(ids))
        return len(ids)

    def schedule_refresh(self) -> None:
        fire_and_forget(self.refresh(), name="random-image-cache-refresh")

    async def run_periodic(self, interval_seconds: float) -> None:
        """Refresh every interval_seconds until cancelled (first refresh after one interval)."""
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                await self.refresh()
            except Exception:
                logger.exception("Random image cache refresh failed")
