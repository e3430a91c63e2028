"""Best-effort pixel dimension probe (Pillow)."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from PIL import Image, UnidentifiedImageError

if TYPE_CHECKING:
    from imgbed.application.interfaces.storage import IFileSource

logger = logging.getLogger(__name__)


def _read_dimensions(source: IFileSource) -> tuple[int, int]:
    with source.open() as stream:
        # Header parse only; pixel data is never decoded
        with Image.open(stream) as img:
            return int(img.width), int(img.height)


async def probe_dimensions(source: IFileSource) -> tuple[int, int]:
    """Return (width, height); (0, 0) when the bytes are not a decodable image."""
    try:
        return await asyncio.to_thread(_read_dimensions, source)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.info("Could not decode dimensions of %s: %s", source.filename, e)
        return 0, 0
