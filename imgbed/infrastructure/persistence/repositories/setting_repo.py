"""Setting repository (read-only key/value rows)."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from imgbed.infrastructure.persistence.models.setting import Setting
from imgbed.infrastructure.persistence.repositories.base import BaseRepository


class SettingRepository(BaseRepository[Setting]):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        super().__init__(session_factory, Setting)

    async def get_all(self) -> dict[str, str]:
        async with self._session() as session:
            result = await session.execute(select(Setting.key, Setting.value))
            return {key: value for key, value in result.all()}
