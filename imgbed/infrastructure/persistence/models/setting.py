"""Setting ORM model. Key/value tunables edited by administrators."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from imgbed.infrastructure.persistence.database import Base
from imgbed.infrastructure.persistence.models.mixins import TimestampMixin


class Setting(TimestampMixin, Base):
    """Runtime setting row. Table: setting. Primary key is the setting key."""

    __tablename__ = "setting"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
