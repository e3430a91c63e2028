"""DTOs for storage locations: one physical copy of an image on one backend."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from imgbed.application.dtos.backend import BackendResult


@dataclass(frozen=True)
class StorageLocationCreate:
    """Input for creating a storage location row."""

    image_id: str
    backend_id: str
    storage_kind: str
    url: str
    delete_identifier: str | None
    is_active: bool = True


@dataclass(frozen=True)
class StorageLocationResult:
    """Storage location read-model.

    url is root-relative for local backends (the serving layer composes
    the public base at read time) and absolute for remote ones.
    backend is loaded when the query asks for it (resolution, details).
    """

    id: str
    image_id: str
    backend_id: str
    storage_kind: str
    url: str
    delete_identifier: str | None
    is_active: bool
    failure_count: int
    backend: BackendResult | None = None
    created_at: datetime | None = None
