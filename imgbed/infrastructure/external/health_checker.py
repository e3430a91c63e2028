"""Liveness probes for storage locations (local file check or HTTP HEAD)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import aiofiles.os
import httpx

from imgbed.domain.enums import BackendKind
from imgbed.infrastructure.exceptions import StoragePermissionError

if TYPE_CHECKING:
    from imgbed.application.dtos.storage_location import StorageLocationResult
    from imgbed.application.interfaces.services import IBackendRegistry

logger = logging.getLogger(__name__)


class HealthChecker:
    """IHealthChecker: 2xx/3xx on HEAD is healthy; redirects are not followed."""

    def __init__(
        self,
        registry: IBackendRegistry,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 5.0,
    ) -> None:
        self.registry = registry
        self.http_client = http_client
        self.timeout = timeout

    async def is_healthy(self, location: StorageLocationResult) -> bool:
        if location.storage_kind == BackendKind.LOCAL.value:
            return await self._local_exists(location)
        return await self._head_ok(location.url)

    async def _local_exists(self, location: StorageLocationResult) -> bool:
        try:
            path = self.registry.local_path(location.backend_id, location.url)
        except StoragePermissionError:
            return False
        if path is None:
            logger.debug(
                "Local backend %s not loaded; location %s treated as unhealthy",
                location.backend_id,
                location.id,
            )
            return False
        return await aiofiles.os.path.isfile(path)

    async def _head_ok(self, url: str) -> bool:
        try:
            if self.http_client is not None:
                resp = await self.http_client.head(
                    url, timeout=self.timeout, follow_redirects=False
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.head(url, follow_redirects=False)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug("HEAD %s failed: %s", url, e)
            return False
        return 200 <= resp.status_code < 400
