"""SQLAlchemy ORM models. Importing this package registers every table on Base.metadata."""

from imgbed.infrastructure.persistence.models.backend import Backend
from imgbed.infrastructure.persistence.models.image import Image
from imgbed.infrastructure.persistence.models.setting import Setting
from imgbed.infrastructure.persistence.models.storage_location import StorageLocation

__all__ = [
    "Backend",
    "Image",
    "Setting",
    "StorageLocation",
]
