"""Backend ORM model. One configured storage destination (kind + config blob)."""

from typing import Any

from sqlalchemy import JSON, Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from imgbed.infrastructure.persistence.database import Base
from imgbed.infrastructure.persistence.models.mixins import CuidMixin, TimestampMixin


class Backend(CuidMixin, TimestampMixin, Base):
    """Storage backend. Table: backend. Unique name; lower priority is preferred."""

    __tablename__ = "backend"

    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    kind: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    config: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    allow_upload: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    allow_redirect: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
