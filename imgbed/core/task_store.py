"""In-memory store for batch tasks.

Single place for task state; no shared mutable dict on app.state. Tasks
are never evicted (diagnostic history for the process lifetime). All
mutation happens on the event loop thread between awaits, so updates are
atomic with respect to readers; readers get frozen TaskResult snapshots.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from imgbed.application.dtos.task import TaskResult
from imgbed.domain.enums import TaskKind, TaskStatus
from imgbed.shared.utils.datetime import utc_now
from imgbed.shared.utils.generators import generate_cuid


@dataclass
class _Task:
    id: str
    kind: str
    status: str
    progress: int
    total: int
    message: str | None
    created_at: datetime

    def snapshot(self) -> TaskResult:
        return TaskResult(
            id=self.id,
            kind=self.kind,
            status=self.status,
            progress=self.progress,
            total=self.total,
            message=self.message,
            created_at=self.created_at,
        )


class TaskStore:
    """In-memory store for batch task status and progress."""

    def __init__(self) -> None:
        self._tasks: dict[str, _Task] = {}

    def create(self, kind: TaskKind, total: int) -> TaskResult:
        """Register a new running task."""
        task = _Task(
            id=generate_cuid(),
            kind=kind.value,
            status=TaskStatus.RUNNING.value,
            progress=0,
            total=total,
            message=None,
            created_at=utc_now(),
        )
        self._tasks[task.id] = task
        return task.snapshot()

    def get(self, task_id: str) -> TaskResult | None:
        task = self._tasks.get(task_id)
        return task.snapshot() if task else None

    def advance(self, task_id: str, progress: int) -> None:
        """Record items processed so far."""
        task = self._tasks.get(task_id)
        if task:
            task.progress = progress

    def complete(self, task_id: str) -> None:
        task = self._tasks.get(task_id)
        if task:
            task.status = TaskStatus.COMPLETED.value

    def fail(self, task_id: str, message: str) -> None:
        """Mark failed with a reason (precondition failed before iteration)."""
        task = self._tasks.get(task_id)
        if task:
            task.status = TaskStatus.FAILED.value
            task.message = message

    def list(self) -> list[TaskResult]:
        """Return every task, newest first."""
        return sorted(
            (t.snapshot() for t in self._tasks.values()),
            key=lambda t: t.created_at,
            reverse=True,
        )
