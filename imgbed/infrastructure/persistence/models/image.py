"""Image ORM model. One logical upload by one owner."""

from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, Boolean, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from imgbed.infrastructure.persistence.database import Base
from imgbed.infrastructure.persistence.models.mixins import CreatedAtMixin, CuidMixin

if TYPE_CHECKING:
    from imgbed.infrastructure.persistence.models.storage_location import (
        StorageLocation,
    )


class Image(CuidMixin, CreatedAtMixin, Base):
    """Uploaded image. Table: image. Unique (content_hash, owner_id).

    owner_id refers to the external user store and carries no foreign key.
    """

    __tablename__ = "image"

    content_hash: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    original_filename: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    content_type: Mapped[str] = mapped_column(String(100), nullable=False)
    width: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    height: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    owner_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    allow_random: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, index=True
    )

    locations: Mapped[list["StorageLocation"]] = relationship(
        back_populates="image",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="StorageLocation.created_at",
    )

    __table_args__ = (
        UniqueConstraint("content_hash", "owner_id", name="uq_image_hash_owner"),
    )
