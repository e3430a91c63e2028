"""Storage ports: the uploader capability and re-openable upload sources.

Implementations: LocalUploader, ObjectStoreUploader, ThirdPartyHostUploader
(imgbed.infrastructure.external.storage). The registry hands these out as
IUploader so adding a backend kind needs no change to the registry or the
distribution engine.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, Protocol

if TYPE_CHECKING:
    from imgbed.application.dtos.upload import UploadResult


class IUploader(Protocol):
    """Uniform contract over one configured storage backend."""

    @property
    def kind(self) -> str:
        """Stable kind tag (BackendKind value)."""
        ...

    async def upload(self, stream: BinaryIO, unique_name: str) -> UploadResult:
        """Store bytes read from stream under unique_name.

        The stream is read once, front to back. Raises UpstreamFailureException.
        """
        ...

    async def upload_from_path(self, path: str | Path, unique_name: str) -> UploadResult:
        """Same as upload, sourced from a local file (used by backfill)."""
        ...

    async def delete(self, delete_identifier: str) -> None:
        """Remove the object. Deleting an already-absent object succeeds."""
        ...


class IFileSource(Protocol):
    """An upload payload that can be opened independently any number of times.

    Fan-out gives every backend its own stream; a single shared reader
    would be consumed by the first upload.
    """

    filename: str
    content_type: str
    size: int

    def open(self) -> AbstractContextManager[BinaryIO]:
        """Return a context manager yielding a fresh stream positioned at 0."""
        ...
