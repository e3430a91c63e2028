"""Batch operations: detached, task-tracked delete and backfill, plus the action dispatcher."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from imgbed.domain.enums import BackendKind, BatchAction, TaskKind
from imgbed.domain.exceptions import (
    ImgbedException,
    ResourceNotFoundException,
    ValidationException,
)
from imgbed.shared.background import fire_and_forget
from imgbed.shared.utils.generators import generate_unique_name

if TYPE_CHECKING:
    from collections.abc import Sequence

    from imgbed.application.dtos.backend import BackendResult
    from imgbed.application.dtos.task import TaskResult
    from imgbed.application.interfaces.repositories import (
        IBackendRepository,
        IImageRepository,
    )
    from imgbed.application.interfaces.services import IBackendRegistry, ITaskStore
    from imgbed.application.services.distribution_service import DistributionService
    from imgbed.application.use_cases.images.image_operations import (
        ImageDeletionService,
        ImageQueryService,
    )

logger = logging.getLogger(__name__)


class BatchTaskRunner:
    """Runs batch delete/backfill in the background and tracks progress in a TaskStore.

    Each call allocates the task, returns it immediately, and processes
    items one by one. Item failures are logged; the batch always finishes.
    """

    def __init__(
        self,
        task_store: ITaskStore,
        image_repo: IImageRepository,
        backend_repo: IBackendRepository,
        registry: IBackendRegistry,
        distributor: DistributionService,
        deletion_service: ImageDeletionService,
        query_service: ImageQueryService,
    ) -> None:
        self.task_store = task_store
        self.image_repo = image_repo
        self.backend_repo = backend_repo
        self.registry = registry
        self.distributor = distributor
        self.deletion_service = deletion_service
        self.query_service = query_service

    def list_tasks(self) -> list[TaskResult]:
        return self.task_store.list()

    def batch_delete(
        self, image_ids: Sequence[str], requester_id: str, is_admin: bool = False
    ) -> TaskResult:
        task = self.task_store.create(TaskKind.BATCH_DELETE, len(image_ids))
        fire_and_forget(
            self._run_delete(task.id, list(image_ids), requester_id, is_admin),
            name=f"batch-delete-{task.id}",
        )
        return task

    def batch_backfill_to_backend(
        self, image_ids: Sequence[str], backend_id: str
    ) -> TaskResult:
        task = self.task_store.create(TaskKind.BATCH_BACKFILL, len(image_ids))
        fire_and_forget(
            self._run_backfill(task.id, list(image_ids), backend_id),
            name=f"batch-backfill-{task.id}",
        )
        return task

    async def batch_delete_for_owner(
        self, image_ids: Sequence[str], owner_id: str
    ) -> TaskResult:
        """Owner-scoped batch delete; every id must belong to owner_id."""
        await self._require_owned(image_ids, owner_id)
        return self.batch_delete(image_ids, owner_id, is_admin=False)

    async def run_batch_action(
        self,
        action: str,
        image_ids: Sequence[str],
        requester_id: str,
        is_admin: bool = False,
        backend_id: str | None = None,
    ) -> TaskResult | int:
        """Dispatch a named batch action.

        delete/backfill return the started task; the random-pool actions
        run inline and return the number of images updated.

        Raises:
            ValidationException: Unknown action, empty id list, or backfill without backend_id.
            ResourceNotFoundException: Non-admin listed an image they do not own.
        """
        try:
            parsed = BatchAction(action)
        except ValueError as e:
            raise ValidationException(
                f"Invalid action: {action!r} (expected one of {BatchAction.values()})",
                field="action",
            ) from e
        if not image_ids:
            raise ValidationException("No images selected", field="image_ids")
        if not is_admin:
            if parsed == BatchAction.BACKFILL:
                raise ValidationException(
                    "Backfill is an administrator action", field="action"
                )
            await self._require_owned(image_ids, requester_id)

        if parsed == BatchAction.DELETE:
            return self.batch_delete(image_ids, requester_id, is_admin)
        if parsed == BatchAction.BACKFILL:
            if not backend_id:
                raise ValidationException(
                    "backend_id is required for backfill", field="backend_id"
                )
            return self.batch_backfill_to_backend(image_ids, backend_id)
        return await self.query_service.set_random_eligibility(
            image_ids, parsed == BatchAction.ADD_TO_RANDOM
        )

    async def _require_owned(self, image_ids: Sequence[str], owner_id: str) -> None:
        unique_ids = set(image_ids)
        owned = await self.image_repo.count_owned(unique_ids, owner_id)
        if owned != len(unique_ids):
            raise ResourceNotFoundException("image", "one or more selected images")

    async def _run_delete(
        self, task_id: str, image_ids: list[str], requester_id: str, is_admin: bool
    ) -> None:
        for i, image_id in enumerate(image_ids, start=1):
            try:
                await self.deletion_service.delete_image(image_id, requester_id, is_admin)
            except ImgbedException as e:
                logger.warning(
                    "[Task %s] Batch delete failed for %s: %s", task_id, image_id, e.message
                )
            except Exception:
                logger.exception("[Task %s] Batch delete failed for %s", task_id, image_id)
            self.task_store.advance(task_id, i)
        self.task_store.complete(task_id)
        logger.info("[Task %s] Batch delete completed (%d items)", task_id, len(image_ids))

    async def _run_backfill(
        self, task_id: str, image_ids: list[str], backend_id: str
    ) -> None:
        backend = await self.backend_repo.get_by_id(backend_id)
        if backend is None or self.registry.get(backend_id) is None:
            self.task_store.fail(task_id, "Target backend not found")
            logger.warning("[Task %s] Target backend %s not found", task_id, backend_id)
            return

        for i, image_id in enumerate(image_ids, start=1):
            try:
                await self._backfill_one(task_id, image_id, backend)
            except ImgbedException as e:
                logger.warning(
                    "[Task %s] Backfill FAILED for %s: %s", task_id, image_id, e.message
                )
            except Exception:
                logger.exception("[Task %s] Backfill FAILED for %s", task_id, image_id)
            self.task_store.advance(task_id, i)
        self.task_store.complete(task_id)
        logger.info("[Task %s] Batch backfill completed (%d items)", task_id, len(image_ids))

    async def _backfill_one(
        self, task_id: str, image_id: str, backend: BackendResult
    ) -> None:
        image = await self.image_repo.get_by_id(image_id)
        if image is None:
            logger.info("[Task %s] Image %s no longer exists", task_id, image_id)
            return
        if backend.id in image.backend_ids:
            return

        local = next(
            (
                loc
                for loc in image.locations
                if loc.storage_kind == BackendKind.LOCAL.value
            ),
            None,
        )
        path = self.registry.local_path(local.backend_id, local.url) if local else None
        if path is None:
            logger.info(
                "[Task %s] Image %s has no local copy to backfill from; skipped",
                task_id,
                image_id,
            )
            return

        created = await self.distributor.backfill_from_path(
            path,
            generate_unique_name(image.id, image.original_filename),
            image.id,
            backend,
        )
        if created is None:
            logger.warning("[Task %s] Backfill FAILED for %s", task_id, image_id)
