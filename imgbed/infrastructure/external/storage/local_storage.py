"""Local filesystem uploader with path validation and atomic writes."""

from __future__ import annotations

import asyncio
import os
import posixpath
import tempfile
from pathlib import Path
from typing import BinaryIO
from urllib.parse import urlparse

import aiofiles
import aiofiles.os

from imgbed.application.dtos.upload import UploadResult
from imgbed.domain.enums import BackendKind
from imgbed.infrastructure.exceptions import LocalStorageError, StoragePermissionError

# Prefix used by earlier releases when they stored absolute local URLs.
_LEGACY_URL_PREFIX = "/uploads/"


class LocalUploader:
    """Local filesystem storage with atomic writes and path traversal protection.

    Paths are validated against storage_root. Writes use temp file + rename.
    The stored reference is the path relative to storage_root, so moving
    the public base URL never invalidates rows.
    """

    CHUNK_SIZE = 64 * 1024  # 64KB

    def __init__(self, storage_root: str, public_url: str | None = None) -> None:
        """Initialize local storage.

        Args:
            storage_root: Base directory for all files (created if missing).
            public_url: Optional public base for the serving layer.
        """
        self.storage_root = Path(storage_root).resolve()
        self.public_url = public_url.rstrip("/") if public_url else None
        self.storage_root.mkdir(parents=True, exist_ok=True, mode=0o750)

    @property
    def kind(self) -> str:
        return BackendKind.LOCAL.value

    @staticmethod
    def normalize_ref(ref: str) -> str:
        """Return the root-relative path for ref.

        Accepts plain relative refs ('abc.png') and absolute URLs or
        '/uploads/...' paths written by earlier releases.
        """
        if "://" in ref:
            ref = urlparse(ref).path
        if ref.startswith(_LEGACY_URL_PREFIX):
            ref = ref[len(_LEGACY_URL_PREFIX):]
        return ref.lstrip("/")

    def resolve_path(self, ref: str) -> Path:
        """Resolve ref under storage_root. Raises StoragePermissionError on traversal."""
        relative = self.normalize_ref(ref)
        full_path = (self.storage_root / relative).resolve()
        try:
            full_path.relative_to(self.storage_root)
        except ValueError as e:
            raise StoragePermissionError(ref, "path_validation") from e
        if full_path == self.storage_root:
            raise StoragePermissionError(ref, "path_validation")
        return full_path

    async def upload(self, stream: BinaryIO, unique_name: str) -> UploadResult:
        """Copy stream to storage_root/unique_name atomically."""
        target_path = self.resolve_path(unique_name)
        target_path.parent.mkdir(parents=True, exist_ok=True, mode=0o750)
        temp_fd, temp_path = tempfile.mkstemp(
            dir=target_path.parent,
            prefix=".tmp_",
            suffix=target_path.suffix,
        )
        os.close(temp_fd)
        try:
            async with aiofiles.open(temp_path, "wb") as f:
                while chunk := stream.read(self.CHUNK_SIZE):
                    await f.write(chunk)
            os.chmod(temp_path, 0o640)
            os.replace(temp_path, target_path)
        except OSError as e:
            raise LocalStorageError("upload", str(target_path), str(e)) from e
        finally:
            if os.path.exists(temp_path):
                os.unlink(temp_path)

        relative = posixpath.join(
            *target_path.relative_to(self.storage_root).parts
        )
        return UploadResult(url=relative, delete_identifier=relative)

    async def upload_from_path(self, path: str | Path, unique_name: str) -> UploadResult:
        """Copy a local file into this backend."""
        try:
            src = await asyncio.to_thread(open, path, "rb")
        except OSError as e:
            raise LocalStorageError("upload", str(path), str(e)) from e
        with src:
            return await self.upload(src, unique_name)

    async def delete(self, delete_identifier: str) -> None:
        """Remove the file. Already absent counts as success."""
        if not delete_identifier:
            raise LocalStorageError("delete", "", "delete identifier is empty")
        file_path = self.resolve_path(delete_identifier)
        try:
            await aiofiles.os.remove(file_path)
        except FileNotFoundError:
            return
        except OSError as e:
            raise LocalStorageError("delete", str(file_path), str(e)) from e
