"""StorageLocation ORM model. One physical copy of an image on one backend."""

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from imgbed.infrastructure.persistence.database import Base
from imgbed.infrastructure.persistence.models.mixins import CreatedAtMixin, CuidMixin

if TYPE_CHECKING:
    from imgbed.infrastructure.persistence.models.backend import Backend
    from imgbed.infrastructure.persistence.models.image import Image


class StorageLocation(CuidMixin, CreatedAtMixin, Base):
    """Storage location. Table: storage_location. Unique (image_id, backend_id).

    Deleting an image cascades to its locations; a backend that still has
    locations cannot be deleted (RESTRICT).
    """

    __tablename__ = "storage_location"

    image_id: Mapped[str] = mapped_column(
        String, ForeignKey("image.id", ondelete="CASCADE"), nullable=False, index=True
    )
    backend_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("backend.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    storage_kind: Mapped[str] = mapped_column(String(50), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    delete_identifier: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    failure_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    image: Mapped["Image"] = relationship(back_populates="locations")
    backend: Mapped["Backend"] = relationship(lazy="joined")

    __table_args__ = (
        UniqueConstraint("image_id", "backend_id", name="uq_storage_location_image_backend"),
    )
