"""Shared utilities: datetime, id generation, logging, background work.

Used by domain, application, and infrastructure. No business logic.
"""

from imgbed.shared.background import fire_and_forget
from imgbed.shared.utils import (
    ensure_utc,
    generate_cuid,
    start_of_day_utc,
    utc_now,
)

__all__ = [
    "fire_and_forget",
    "generate_cuid",
    "utc_now",
    "ensure_utc",
    "start_of_day_utc",
]
