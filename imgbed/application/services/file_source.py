"""Re-openable upload sources (IFileSource implementations).

Fan-out, hashing and dimension probing each open their own stream, so a
source must hand out an independent reader per open().
"""

from __future__ import annotations

import io
import mimetypes
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO


def _guess_type(filename: str) -> str:
    return mimetypes.guess_type(filename)[0] or "application/octet-stream"


class LocalFileSource:
    """A file on local disk (spooled upload, or the local copy used for backfill)."""

    def __init__(
        self,
        path: str | Path,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> None:
        self.path = Path(path)
        self.filename = filename or self.path.name
        self.content_type = content_type or _guess_type(self.filename)
        self.size = os.path.getsize(self.path)

    @contextmanager
    def open(self) -> Iterator[BinaryIO]:
        with open(self.path, "rb") as f:
            yield f


class BytesFileSource:
    """An in-memory payload; every open() gets its own BytesIO over the same bytes."""

    def __init__(
        self, data: bytes, filename: str, content_type: str | None = None
    ) -> None:
        self.data = data
        self.filename = filename
        self.content_type = content_type or _guess_type(filename)
        self.size = len(data)

    @contextmanager
    def open(self) -> Iterator[BinaryIO]:
        stream = io.BytesIO(self.data)
        try:
            yield stream
        finally:
            stream.close()
