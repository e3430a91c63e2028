"""Pytest configuration and fixtures for imgbed.

Unit and API tests run against in-memory fakes of the repository ports and
fake uploaders, wired through the real ServiceContainer. Repository
integration tests use the database from DATABASE_URL and are marked
requires_db (skipped when it is not configured).
"""

from __future__ import annotations

import itertools
import random
from collections.abc import Collection
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any, BinaryIO

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from imgbed.application.dtos.backend import BackendCreate, BackendResult, BackendUpdate
from imgbed.application.dtos.image import ImageCreate, ImageListPage, ImageResult
from imgbed.application.dtos.storage_location import (
    StorageLocationCreate,
    StorageLocationResult,
)
from imgbed.application.dtos.upload import UploadResult
from imgbed.application.services.file_source import BytesFileSource
from imgbed.core.config import Settings
from imgbed.core.container import ServiceContainer
from imgbed.domain.exceptions import (
    ConflictException,
    DatabaseNotConfiguredException,
    DuplicateImageException,
    ValidationException,
)
from imgbed.infrastructure.exceptions import BackendNetworkError
from imgbed.infrastructure.external.storage.local_storage import LocalUploader
from imgbed.shared import background
from imgbed.shared.utils.datetime import utc_now


# ---------------------------------------------------------------------------
# In-memory repositories
# ---------------------------------------------------------------------------


class InMemoryStore:
    """Rows shared by the fake repositories (one 'database')."""

    def __init__(self) -> None:
        self.backends: dict[str, BackendResult] = {}
        self.images: dict[str, ImageResult] = {}
        self.locations: dict[str, StorageLocationResult] = {}
        self.settings: dict[str, str] = {}
        self._ids = itertools.count(1)

    def next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"


class FakeImageRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    def _hydrate(self, image: ImageResult) -> ImageResult:
        locations = tuple(
            replace(loc, backend=self.store.backends.get(loc.backend_id))
            for loc in self.store.locations.values()
            if loc.image_id == image.id
        )
        return replace(image, locations=locations)

    async def get_by_id(
        self, image_id: str, owner_id: str | None = None
    ) -> ImageResult | None:
        image = self.store.images.get(image_id)
        if image is None or (owner_id is not None and image.owner_id != owner_id):
            return None
        return self._hydrate(image)

    async def get_by_hash_and_owner(
        self, content_hash: str, owner_id: str
    ) -> ImageResult | None:
        for image in self.store.images.values():
            if image.content_hash == content_hash and image.owner_id == owner_id:
                return self._hydrate(image)
        return None

    async def get_shared_by_hash(
        self, content_hash: str, exclude_owner_id: str
    ) -> ImageResult | None:
        candidates = [
            self._hydrate(i)
            for i in self.store.images.values()
            if i.content_hash == content_hash and i.owner_id != exclude_owner_id
        ]
        for candidate in candidates:
            if candidate.active_locations:
                return candidate
        return candidates[0] if candidates else None

    def _insert(self, image: ImageCreate) -> ImageResult:
        for existing in self.store.images.values():
            if (
                existing.content_hash == image.content_hash
                and existing.owner_id == image.owner_id
            ):
                raise DuplicateImageException(image.content_hash, image.owner_id)
        row = ImageResult(
            id=image.id,
            content_hash=image.content_hash,
            original_filename=image.original_filename,
            file_size=image.file_size,
            content_type=image.content_type,
            width=image.width,
            height=image.height,
            owner_id=image.owner_id,
            allow_random=image.allow_random,
            created_at=utc_now(),
        )
        self.store.images[row.id] = row
        return row

    async def create(self, image: ImageCreate) -> ImageResult:
        return self._insert(image)

    async def create_with_locations(
        self, image: ImageCreate, locations: list[StorageLocationCreate]
    ) -> ImageResult:
        row = self._insert(image)
        inserted: list[str] = []
        try:
            for loc in locations:
                inserted.append(_insert_location(self.store, loc).id)
        except ConflictException:
            for loc_id in inserted:
                del self.store.locations[loc_id]
            del self.store.images[row.id]
            raise
        return self._hydrate(row)

    async def delete(self, image_id: str) -> None:
        self.store.images.pop(image_id, None)
        for loc_id in [
            lid for lid, loc in self.store.locations.items() if loc.image_id == image_id
        ]:
            del self.store.locations[loc_id]

    async def count_by_hash(self, content_hash: str, exclude_image_id: str) -> int:
        return sum(
            1
            for i in self.store.images.values()
            if i.content_hash == content_hash and i.id != exclude_image_id
        )

    async def list_images(
        self,
        owner_id: str | None,
        keyword: str | None,
        page: int,
        page_size: int,
    ) -> ImageListPage:
        rows = [
            i
            for i in self.store.images.values()
            if (owner_id is None or i.owner_id == owner_id)
            and (not keyword or keyword.lower() in i.original_filename.lower())
        ]
        rows.reverse()
        start = (max(page, 1) - 1) * page_size
        return ImageListPage(
            total=len(rows),
            page=page,
            page_size=page_size,
            images=[self._hydrate(i) for i in rows[start : start + page_size]],
        )

    async def toggle_allow_random(
        self, image_id: str, owner_id: str | None = None
    ) -> ImageResult | None:
        image = self.store.images.get(image_id)
        if image is None or (owner_id is not None and image.owner_id != owner_id):
            return None
        updated = replace(image, allow_random=not image.allow_random)
        self.store.images[image_id] = updated
        return updated

    async def set_allow_random(self, image_ids: Collection[str], value: bool) -> int:
        count = 0
        for image_id in set(image_ids):
            image = self.store.images.get(image_id)
            if image is not None:
                self.store.images[image_id] = replace(image, allow_random=value)
                count += 1
        return count

    async def list_random_eligible_ids(self) -> list[str]:
        return [i.id for i in self.store.images.values() if i.allow_random]

    async def count_owned(self, image_ids: Collection[str], owner_id: str) -> int:
        return sum(
            1
            for image_id in set(image_ids)
            if (img := self.store.images.get(image_id)) and img.owner_id == owner_id
        )

    async def summarize(
        self, owner_id: str | None, since: datetime
    ) -> tuple[int, int, int]:
        rows = [
            i
            for i in self.store.images.values()
            if owner_id is None or i.owner_id == owner_id
        ]
        today = sum(1 for i in rows if i.created_at and i.created_at >= since)
        return len(rows), sum(i.file_size for i in rows), today


def _insert_location(
    store: InMemoryStore, location: StorageLocationCreate
) -> StorageLocationResult:
    for existing in store.locations.values():
        if (
            existing.image_id == location.image_id
            and existing.backend_id == location.backend_id
        ):
            raise ConflictException(
                "Storage location already exists for this image and backend"
            )
    row = StorageLocationResult(
        id=store.next_id("loc"),
        image_id=location.image_id,
        backend_id=location.backend_id,
        storage_kind=location.storage_kind,
        url=location.url,
        delete_identifier=location.delete_identifier,
        is_active=location.is_active,
        failure_count=0,
        created_at=utc_now(),
    )
    store.locations[row.id] = row
    return row


class FakeStorageLocationRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    async def create(self, location: StorageLocationCreate) -> StorageLocationResult:
        return _insert_location(self.store, location)

    async def get_by_id(self, location_id: str) -> StorageLocationResult | None:
        loc = self.store.locations.get(location_id)
        if loc is None:
            return None
        return replace(loc, backend=self.store.backends.get(loc.backend_id))

    async def increment_failure(self, location_id: str) -> None:
        loc = self.store.locations.get(location_id)
        if loc is not None:
            self.store.locations[location_id] = replace(
                loc, failure_count=loc.failure_count + 1
            )

    async def reset_failure(self, location_id: str) -> None:
        loc = self.store.locations.get(location_id)
        if loc is not None:
            self.store.locations[location_id] = replace(loc, failure_count=0)

    async def toggle_active(self, location_id: str) -> StorageLocationResult | None:
        loc = self.store.locations.get(location_id)
        if loc is None:
            return None
        updated = replace(loc, is_active=not loc.is_active)
        self.store.locations[location_id] = updated
        return updated

    async def count_by_backend(self, backend_id: str) -> int:
        return sum(
            1 for loc in self.store.locations.values() if loc.backend_id == backend_id
        )


class FakeBackendRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    def _ordered(self) -> list[BackendResult]:
        return sorted(self.store.backends.values(), key=lambda b: (b.priority, b.name))

    async def list_all(self) -> list[BackendResult]:
        return self._ordered()

    async def get_by_id(self, backend_id: str) -> BackendResult | None:
        return self.store.backends.get(backend_id)

    async def list_upload_enabled(
        self, backend_ids: Collection[str] | None = None
    ) -> list[BackendResult]:
        return [
            b
            for b in self._ordered()
            if b.allow_upload and (backend_ids is None or b.id in backend_ids)
        ]

    async def create(self, backend: BackendCreate) -> BackendResult:
        if any(b.name == backend.name for b in self.store.backends.values()):
            raise ConflictException(f"Backend name already exists: {backend.name}")
        row = BackendResult(
            id=self.store.next_id("backend"),
            name=backend.name,
            kind=backend.kind,
            config=dict(backend.config),
            priority=backend.priority,
            allow_upload=backend.allow_upload,
            allow_redirect=backend.allow_redirect,
        )
        self.store.backends[row.id] = row
        return row

    async def update(
        self, backend_id: str, changes: BackendUpdate
    ) -> BackendResult | None:
        row = self.store.backends.get(backend_id)
        if row is None:
            return None
        fields = {k: v for k, v in vars(changes).items() if v is not None}
        updated = replace(row, **fields)
        self.store.backends[backend_id] = updated
        return updated

    async def delete(self, backend_id: str) -> bool:
        return self.store.backends.pop(backend_id, None) is not None

    async def count(self) -> int:
        return len(self.store.backends)


class FakeSettingRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    async def get_all(self) -> dict[str, str]:
        return dict(self.store.settings)


# ---------------------------------------------------------------------------
# Uploaders, factory, health checker
# ---------------------------------------------------------------------------


class FakeUploader:
    """Remote-style uploader that records calls; fail=True simulates an outage."""

    def __init__(
        self,
        name: str,
        fail: bool = False,
        kind: str = "object-store",
    ) -> None:
        self.name = name
        self.fail = fail
        self._kind = kind
        self.uploads: list[tuple[str, bytes]] = []
        self.deleted: list[str] = []

    @property
    def kind(self) -> str:
        return self._kind

    async def upload(self, stream: BinaryIO, unique_name: str) -> UploadResult:
        if self.fail:
            raise BackendNetworkError(self.kind, "upload", f"{self.name} is down")
        self.uploads.append((unique_name, stream.read()))
        return UploadResult(
            url=f"https://{self.name}.example.com/{unique_name}",
            delete_identifier=f"{self.name}-{unique_name}",
        )

    async def upload_from_path(self, path: str | Path, unique_name: str) -> UploadResult:
        with open(path, "rb") as f:
            return await self.upload(f, unique_name)

    async def delete(self, delete_identifier: str) -> None:
        if self.fail:
            raise BackendNetworkError(self.kind, "delete", f"{self.name} is down")
        self.deleted.append(delete_identifier)


class CrashingUploader(FakeUploader):
    """Raises a non-domain error (e.g. an SDK bug) from upload and delete."""

    async def upload(self, stream: BinaryIO, unique_name: str) -> UploadResult:
        raise ValueError(f"{self.name}: unexpected SDK response")

    async def delete(self, delete_identifier: str) -> None:
        raise ValueError(f"{self.name}: unexpected SDK response")


class FakeUploaderFactory:
    """Hands out pre-built uploaders by backend id."""

    def __init__(self) -> None:
        self.uploaders: dict[str, Any] = {}

    def validate(self, kind: str, config: dict) -> str:
        if kind not in ("local", "object-store", "third-party-host"):
            raise ValidationException(f"Unsupported backend kind: {kind!r}", field="kind")
        return kind

    def create(self, backend: BackendResult) -> Any:
        uploader = self.uploaders.get(backend.id)
        if uploader is None:
            raise ValidationException(f"No uploader for {backend.id}", field="config")
        return uploader


class FakeHealthChecker:
    """Healthy unless the location id is in `down`; records probe order."""

    def __init__(self) -> None:
        self.down: set[str] = set()
        self.probed: list[str] = []

    async def is_healthy(self, location: StorageLocationResult) -> bool:
        self.probed.append(location.id)
        return location.id not in self.down


# ---------------------------------------------------------------------------
# Harness
# ---------------------------------------------------------------------------


class Harness:
    """ServiceContainer over fakes plus helpers to seed backends and images."""

    def __init__(self, tmp_path: Path) -> None:
        self.tmp_path = tmp_path
        self.store = InMemoryStore()
        self.image_repo = FakeImageRepository(self.store)
        self.location_repo = FakeStorageLocationRepository(self.store)
        self.backend_repo = FakeBackendRepository(self.store)
        self.setting_repo = FakeSettingRepository(self.store)
        self.factory = FakeUploaderFactory()
        self.health = FakeHealthChecker()
        self.settings = Settings(database_url="")
        self.container = ServiceContainer.build(
            self.settings,
            image_repo=self.image_repo,
            location_repo=self.location_repo,
            backend_repo=self.backend_repo,
            setting_repo=self.setting_repo,
            health_checker=self.health,
            factory=self.factory,
        )
        self.container.resolution.rng = random.Random(7)

    async def add_backend(
        self,
        name: str,
        priority: int = 1,
        uploader: Any = None,
        allow_upload: bool = True,
        allow_redirect: bool = True,
        kind: str = "object-store",
    ) -> BackendResult:
        backend = await self.backend_repo.create(
            BackendCreate(
                name=name,
                kind=kind,
                priority=priority,
                allow_upload=allow_upload,
                allow_redirect=allow_redirect,
            )
        )
        self.factory.uploaders[backend.id] = uploader or FakeUploader(name)
        await self.container.registry.refresh()
        return backend

    async def add_local_backend(self, name: str = "disk", priority: int = 1) -> BackendResult:
        uploader = LocalUploader(str(self.tmp_path / name))
        return await self.add_backend(name, priority, uploader, kind="local")

    def uploader(self, backend: BackendResult) -> Any:
        return self.factory.uploaders[backend.id]

    async def set_runtime(self, **values: Any) -> None:
        self.store.settings.update({k: str(v) for k, v in values.items()})
        await self.container.settings_cache.reload()

    def locations_of(self, image_id: str) -> list[StorageLocationResult]:
        return [l for l in self.store.locations.values() if l.image_id == image_id]


@pytest.fixture
async def harness(tmp_path: Path) -> Harness:
    h = Harness(tmp_path)
    yield h
    await background.drain(timeout=5)


@pytest.fixture
def png_bytes() -> bytes:
    """A real 3x2 PNG."""
    import io

    from PIL import Image

    buf = io.BytesIO()
    Image.new("RGB", (3, 2), color=(200, 10, 10)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def make_source():
    def _make(data: bytes = b"hello", filename: str = "cat.png") -> BytesFileSource:
        return BytesFileSource(data, filename)

    return _make


@pytest.fixture
async def client(harness: Harness) -> AsyncClient:
    """Async HTTP client against an app wired to the harness container (ASGI)."""
    from imgbed.main import create_app

    app = create_app(with_lifespan=False)
    app.state.container = harness.container
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport, base_url="http://test", follow_redirects=False
    ) as ac:
        yield ac


@pytest.fixture
def mock_http():
    """Build an httpx.AsyncClient whose requests are answered by handler."""

    def _make(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make


@pytest.fixture
async def session_factory():
    """Session factory for repository integration tests.

    Requires DATABASE_URL (PostgreSQL). Skips (pytest.skip) when it is not
    configured. Use @pytest.mark.requires_db on tests that need this
    fixture; run without DB via: pytest -m 'not requires_db'.
    Tables are created if missing; rows persist (use a test database).
    """
    from imgbed.infrastructure.persistence import database

    try:
        factory = database.get_session_factory()
    except DatabaseNotConfiguredException:
        pytest.skip("Postgres not configured: set DATABASE_URL")
    await database.create_schema()
    yield factory
    await database.dispose_engine()
