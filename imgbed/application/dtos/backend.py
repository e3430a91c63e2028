"""DTOs for storage backend configuration (no dependency on ORM)."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class BackendResult:
    """Backend read-model. Lower priority value = preferred."""

    id: str
    name: str
    kind: str
    config: dict[str, Any]
    priority: int
    allow_upload: bool
    allow_redirect: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class BackendCreate:
    """Input for creating a backend (write-model). Config is validated before persisting."""

    name: str
    kind: str
    config: dict[str, Any] = field(default_factory=dict)
    priority: int = 1
    allow_upload: bool = True
    allow_redirect: bool = True


@dataclass(frozen=True)
class BackendUpdate:
    """Partial update; None fields are left unchanged."""

    name: str | None = None
    config: dict[str, Any] | None = None
    priority: int | None = None
    allow_upload: bool | None = None
    allow_redirect: bool | None = None
