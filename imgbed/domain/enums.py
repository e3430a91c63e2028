"""Domain enumerations for the image gateway.

Enums represent fixed sets of domain values (backend kinds, access
policy, task lifecycle, batch actions).
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class BackendKind(_ValuesMixin, str, Enum):
    """Kind tag of a storage backend. Selects the uploader implementation.

    Stored denormalized on every storage location so delete and health
    logic can branch without loading the backend row.
    """

    LOCAL = "local"
    OBJECT_STORE = "object-store"
    THIRD_PARTY_HOST = "third-party-host"

    @classmethod
    def parse(cls, value: str) -> "BackendKind":
        """Return the kind for value, accepting legacy tags ('oss', 's3', 'sm.ms')."""
        normalized = (value or "").strip().lower()
        normalized = _KIND_ALIASES.get(normalized, normalized)
        return cls(normalized)


_KIND_ALIASES: dict[str, str] = {
    "oss": "object-store",
    "s3": "object-store",
    "sm.ms": "third-party-host",
    "smms": "third-party-host",
}


class AccessPolicy(_ValuesMixin, str, Enum):
    """Read-path strategy for choosing among candidate storage locations."""

    PRIORITY = "priority"
    RANDOM = "random"


class TaskStatus(_ValuesMixin, str, Enum):
    """Batch task lifecycle status."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class TaskKind(_ValuesMixin, str, Enum):
    """Batch task kind (shown to pollers)."""

    BATCH_DELETE = "Batch Delete"
    BATCH_BACKFILL = "Batch Backfill"


class BatchAction(_ValuesMixin, str, Enum):
    """Actions accepted by the batch dispatcher."""

    DELETE = "delete"
    BACKFILL = "backfill"
    ADD_TO_RANDOM = "add_to_random"
    REMOVE_FROM_RANDOM = "remove_from_random"


class BackendFlag(_ValuesMixin, str, Enum):
    """Boolean backend flags that can be toggled by an administrator."""

    ALLOW_UPLOAD = "allow_upload"
    ALLOW_REDIRECT = "allow_redirect"
