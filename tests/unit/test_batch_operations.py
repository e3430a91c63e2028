"""Tests for BatchTaskRunner and TaskStore (detached batches, progress, dispatcher)."""

import pytest

from imgbed.core.task_store import TaskStore
from imgbed.domain.enums import TaskKind, TaskStatus
from imgbed.domain.exceptions import ResourceNotFoundException, ValidationException
from imgbed.shared import background
from tests.conftest import Harness


class TestTaskStore:
    def test_create_starts_running(self) -> None:
        store = TaskStore()
        task = store.create(TaskKind.BATCH_DELETE, 4)
        assert task.status == TaskStatus.RUNNING.value
        assert task.kind == "Batch Delete"
        assert (task.progress, task.total) == (0, 4)

    def test_advance_complete_and_fail(self) -> None:
        store = TaskStore()
        done = store.create(TaskKind.BATCH_DELETE, 2)
        store.advance(done.id, 2)
        store.complete(done.id)
        failed = store.create(TaskKind.BATCH_BACKFILL, 1)
        store.fail(failed.id, "Target backend not found")

        assert store.get(done.id).status == "completed"
        assert store.get(done.id).progress == 2
        assert store.get(failed.id).status == "failed"
        assert store.get(failed.id).message == "Target backend not found"

    def test_snapshots_are_immutable_copies(self) -> None:
        store = TaskStore()
        task = store.create(TaskKind.BATCH_DELETE, 3)
        store.advance(task.id, 1)
        assert task.progress == 0
        assert store.get(task.id).progress == 1

    def test_list_newest_first_and_unknown_ids_ignored(self) -> None:
        store = TaskStore()
        first = store.create(TaskKind.BATCH_DELETE, 1)
        second = store.create(TaskKind.BATCH_DELETE, 1)
        store.advance("missing", 1)
        store.complete("missing")
        ids = [t.id for t in store.list()]
        assert set(ids) == {first.id, second.id}
        assert store.get("missing") is None


async def _upload(harness: Harness, make_source, data: bytes, owner: str = "alice"):
    return await harness.container.uploads.upload_image(make_source(data), owner)


async def test_batch_delete_returns_immediately_then_completes(
    harness: Harness, make_source
) -> None:
    await harness.add_backend("a")
    one = await _upload(harness, make_source, b"one")
    two = await _upload(harness, make_source, b"two")

    task = harness.container.batches.batch_delete([one.id, two.id, "ghost"], "root", True)
    assert task.status == "running"
    await background.drain()

    final = harness.container.task_store.get(task.id)
    assert final.status == "completed"
    assert final.progress == 3
    assert harness.store.images == {}


async def test_batch_backfill_copies_local_file_to_target(
    harness: Harness, make_source
) -> None:
    await harness.add_local_backend("disk")
    image = await _upload(harness, make_source, b"pixels")
    remote = await harness.add_backend("remote", allow_upload=False)

    task = harness.container.batches.batch_backfill_to_backend([image.id], remote.id)
    await background.drain()

    assert harness.container.task_store.get(task.id).status == "completed"
    assert harness.uploader(remote).uploads == [(f"{image.id}.png", b"pixels")]
    assert {l.backend_id for l in harness.locations_of(image.id)} >= {remote.id}


async def test_batch_backfill_skips_images_without_local_copy(
    harness: Harness, make_source
) -> None:
    await harness.add_backend("a")
    image = await _upload(harness, make_source, b"remote-only")
    target = await harness.add_backend("target", allow_upload=False)

    task = harness.container.batches.batch_backfill_to_backend([image.id, "ghost"], target.id)
    await background.drain()

    final = harness.container.task_store.get(task.id)
    assert final.status == "completed"
    assert final.progress == 2
    assert harness.uploader(target).uploads == []


async def test_batch_backfill_unknown_target_fails_task(
    harness: Harness, make_source
) -> None:
    await harness.add_local_backend("disk")
    image = await _upload(harness, make_source, b"x")

    task = harness.container.batches.batch_backfill_to_backend([image.id], "nope")
    await background.drain()

    final = harness.container.task_store.get(task.id)
    assert final.status == "failed"
    assert final.message == "Target backend not found"


async def test_batch_backfill_item_failure_does_not_stop_batch(
    harness: Harness, make_source
) -> None:
    await harness.add_local_backend("disk")
    one = await _upload(harness, make_source, b"one")
    two = await _upload(harness, make_source, b"two")
    target = await harness.add_backend("target", allow_upload=False)
    harness.uploader(target).fail = True

    task = harness.container.batches.batch_backfill_to_backend([one.id, two.id], target.id)
    await background.drain()

    final = harness.container.task_store.get(task.id)
    assert final.status == "completed"
    assert final.progress == 2


class TestRunBatchAction:
    async def test_invalid_action(self, harness: Harness) -> None:
        with pytest.raises(ValidationException, match="Invalid action"):
            await harness.container.batches.run_batch_action("explode", ["x"], "root", True)

    async def test_empty_selection(self, harness: Harness) -> None:
        with pytest.raises(ValidationException):
            await harness.container.batches.run_batch_action("delete", [], "root", True)

    async def test_owner_cannot_touch_foreign_images(
        self, harness: Harness, make_source
    ) -> None:
        await harness.add_backend("a")
        image = await _upload(harness, make_source, b"x", owner="alice")
        with pytest.raises(ResourceNotFoundException):
            await harness.container.batches.run_batch_action("delete", [image.id], "bob")
        assert image.id in harness.store.images

    async def test_owner_batch_delete(self, harness: Harness, make_source) -> None:
        await harness.add_backend("a")
        image = await _upload(harness, make_source, b"x", owner="alice")

        task = await harness.container.batches.run_batch_action("delete", [image.id], "alice")
        await background.drain()

        assert harness.container.task_store.get(task.id).status == "completed"
        assert harness.store.images == {}

    async def test_backfill_requires_admin_and_backend(
        self, harness: Harness, make_source
    ) -> None:
        await harness.add_backend("a")
        image = await _upload(harness, make_source, b"x")
        with pytest.raises(ValidationException):
            await harness.container.batches.run_batch_action("backfill", [image.id], "alice")
        with pytest.raises(ValidationException, match="backend_id"):
            await harness.container.batches.run_batch_action(
                "backfill", [image.id], "root", is_admin=True
            )

    async def test_random_pool_actions_run_inline(
        self, harness: Harness, make_source
    ) -> None:
        await harness.add_backend("a")
        one = await _upload(harness, make_source, b"one")
        two = await _upload(harness, make_source, b"two")

        updated = await harness.container.batches.run_batch_action(
            "add_to_random", [one.id, two.id], "alice"
        )
        await background.drain()
        assert updated == 2
        assert len(harness.container.random_cache) == 2

        await harness.container.batches.run_batch_action(
            "remove_from_random", [one.id], "alice"
        )
        await background.drain()
        assert harness.container.random_cache.pick() == two.id

    async def test_owner_scoped_delete_helper(self, harness: Harness, make_source) -> None:
        await harness.add_backend("a")
        image = await _upload(harness, make_source, b"x", owner="alice")
        with pytest.raises(ResourceNotFoundException):
            await harness.container.batches.batch_delete_for_owner([image.id], "bob")
        task = await harness.container.batches.batch_delete_for_owner([image.id], "alice")
        await background.drain()
        assert harness.container.batches.list_tasks()[0].id == task.id
