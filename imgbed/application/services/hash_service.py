"""Content hash service for upload deduplication (streaming, algorithm-pluggable)."""

from __future__ import annotations

import asyncio
import hashlib
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, BinaryIO

if TYPE_CHECKING:
    from imgbed.application.interfaces.storage import IFileSource


class HashAlgorithm(ABC):
    """Abstract hash algorithm (OCP)."""

    @abstractmethod
    def new(self) -> Any:
        """Return a fresh hashlib-style object (update/hexdigest)."""
        ...


class MD5Algorithm(HashAlgorithm):
    """MD5 implementation. 32 hex chars, the width stored on image rows."""

    def new(self) -> Any:
        return hashlib.md5(usedforsecurity=False)


class SHA256Algorithm(HashAlgorithm):
    """SHA-256 implementation."""

    def new(self) -> Any:
        return hashlib.sha256()


class ContentHashService:
    """Single source of truth for image content digests."""

    CHUNK_SIZE = 64 * 1024

    def __init__(self, algorithm: HashAlgorithm | None = None) -> None:
        self.algorithm = algorithm or MD5Algorithm()

    def hash_stream(self, stream: BinaryIO) -> str:
        """Blocking: digest stream front to back in chunks."""
        digest = self.algorithm.new()
        while chunk := stream.read(self.CHUNK_SIZE):
            digest.update(chunk)
        return digest.hexdigest()

    def hash_bytes(self, data: bytes) -> str:
        digest = self.algorithm.new()
        digest.update(data)
        return digest.hexdigest()

    async def compute(self, source: IFileSource) -> str:
        """Digest a re-openable source off the event loop."""

        def _hash() -> str:
            with source.open() as stream:
                return self.hash_stream(stream)

        return await asyncio.to_thread(_hash)
