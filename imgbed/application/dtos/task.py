"""DTOs for in-memory batch tasks."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class TaskResult:
    """Snapshot of a batch task as seen by pollers."""

    id: str
    kind: str
    status: str
    progress: int
    total: int
    message: str | None
    created_at: datetime
