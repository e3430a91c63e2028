"""Service interfaces (ports) for the application layer.

Protocols define contracts for application services (DIP).
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from imgbed.application.dtos.backend import BackendResult
    from imgbed.application.dtos.storage_location import StorageLocationResult
    from imgbed.application.dtos.task import TaskResult
    from imgbed.application.interfaces.storage import IUploader
    from imgbed.domain.enums import AccessPolicy, TaskKind


class IBackendRegistry(Protocol):
    """Live uploader instances keyed by backend id."""

    def get(self, backend_id: str) -> IUploader | None:
        """Return the uploader for backend_id, or None if not loaded."""

    def list_active_uploaders(self) -> list[tuple[BackendResult, IUploader]]:
        """Return (backend, uploader) for upload-accepting backends by priority."""

    def local_path(self, backend_id: str, ref: str) -> Path | None:
        """Absolute file path of ref when backend_id is a loaded local backend."""

    async def refresh(self) -> int:
        """Reload every backend row and swap the map. Returns loaded count."""

    def schedule_refresh(self) -> None:
        """Refresh in the background; callers never wait for it."""


class IHealthChecker(Protocol):
    """Liveness probe for one storage location."""

    async def is_healthy(self, location: StorageLocationResult) -> bool:
        """Return True when the stored object is reachable."""


class IRuntimeSettings(Protocol):
    """Process-wide tunables owned by the settings subsystem (read-only here)."""

    @property
    def retry_count(self) -> int:
        """Failure threshold; 0 means unlimited tolerance (no probing)."""

    @property
    def access_policy(self) -> AccessPolicy:
        """Candidate ordering on the read path."""

    @property
    def max_upload_mb(self) -> int:
        """Largest accepted upload in megabytes."""


class ITaskStore(Protocol):
    """In-memory batch task records."""

    def create(self, kind: TaskKind, total: int) -> TaskResult:
        """Register a running task and return its snapshot."""

    def advance(self, task_id: str, progress: int) -> None:
        """Record progress."""

    def complete(self, task_id: str) -> None:
        """Mark completed."""

    def fail(self, task_id: str, message: str) -> None:
        """Mark failed with a message."""

    def list(self) -> list[TaskResult]:
        """Return all tasks."""


class IUploaderFactory(Protocol):
    """Builds uploaders from backend rows and validates config blobs."""

    def validate(self, kind: str, config: dict) -> str:
        """Return the canonical kind tag; raise ValidationException when invalid."""

    def create(self, backend: BackendResult) -> IUploader:
        """Return a live uploader for backend."""
