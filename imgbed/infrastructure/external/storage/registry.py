"""Backend registry: backend id -> live uploader, reloadable without restart.

The map is an immutable snapshot replaced wholesale by refresh(), so
readers on the request path never wait and never see a half-built map.
Refreshes are serialized by an asyncio.Lock; the new snapshot is built
(database read, client construction) before the swap.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from imgbed.application.dtos.backend import BackendResult
from imgbed.application.interfaces.repositories import IBackendRepository
from imgbed.application.interfaces.storage import IUploader
from imgbed.domain.exceptions import ImgbedException
from imgbed.infrastructure.external.storage.factory import UploaderFactory
from imgbed.infrastructure.external.storage.local_storage import LocalUploader
from imgbed.shared.background import fire_and_forget

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Entry:
    backend: BackendResult
    uploader: IUploader


class BackendRegistry:
    """Process-wide registry of uploader instances (see module docstring)."""

    def __init__(
        self, backend_repo: IBackendRepository, factory: UploaderFactory
    ) -> None:
        self.backend_repo = backend_repo
        self.factory = factory
        self._entries: Mapping[str, _Entry] = MappingProxyType({})
        self._refresh_lock = asyncio.Lock()

    def get(self, backend_id: str) -> IUploader | None:
        """Return the uploader for backend_id, or None when not loaded."""
        entry = self._entries.get(backend_id)
        return entry.uploader if entry else None

    def get_backend(self, backend_id: str) -> BackendResult | None:
        """Return the backend row the uploader was built from."""
        entry = self._entries.get(backend_id)
        return entry.backend if entry else None

    def local_path(self, backend_id: str, ref: str) -> Path | None:
        """Absolute file path of ref when backend_id is a loaded local backend.

        Raises StoragePermissionError when ref escapes the storage root.
        """
        uploader = self.get(backend_id)
        if not isinstance(uploader, LocalUploader):
            return None
        return uploader.resolve_path(ref)

    def list_active_uploaders(self) -> list[tuple[BackendResult, IUploader]]:
        """Return (backend, uploader) for upload-accepting backends, priority ascending."""
        entries = [e for e in self._entries.values() if e.backend.allow_upload]
        entries.sort(key=lambda e: (e.backend.priority, e.backend.name))
        return [(e.backend, e.uploader) for e in entries]

    def __len__(self) -> int:
        return len(self._entries)

    async def refresh(self) -> int:
        """Reload every backend row and atomically replace the map.

        Rows with an unknown kind or a config that does not parse are
        logged and skipped. Returns the number of uploaders loaded.
        """
        async with self._refresh_lock:
            backends = await self.backend_repo.list_all()
            entries: dict[str, _Entry] = {}
            for backend in backends:
                try:
                    uploader = self.factory.create(backend)
                except ImgbedException as e:
                    logger.error(
                        "Error initializing backend %s (ID: %s, kind: %s): %s. Skipping.",
                        backend.name,
                        backend.id,
                        backend.kind,
                        e.message,
                    )
                    continue
                except Exception:
                    logger.exception(
                        "Unexpected error initializing backend %s (ID: %s). Skipping.",
                        backend.name,
                        backend.id,
                    )
                    continue
                entries[backend.id] = _Entry(backend=backend, uploader=uploader)
            self._entries = MappingProxyType(entries)
        logger.info("Backend registry refreshed. Loaded %d uploader(s).", len(entries))
        return len(entries)

    def schedule_refresh(self) -> None:
        """Refresh in the background after a configuration change."""
        fire_and_forget(self.refresh(), name="backend-registry-refresh")
