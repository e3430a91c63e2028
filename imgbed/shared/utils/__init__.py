"""Shared utilities: datetime and id generators."""

from imgbed.shared.utils.datetime import (
    ensure_utc,
    start_of_day_utc,
    utc_now,
)
from imgbed.shared.utils.generators import generate_cuid, generate_unique_name

__all__ = [
    "generate_cuid",
    "generate_unique_name",
    "utc_now",
    "ensure_utc",
    "start_of_day_utc",
]
