"""Repository pattern implementation for settings feature.

Isolates data access for setting rows from the settings pipeline. The
pipeline only depends on ``SettingsRepositoryInterface`` so the store can be
replaced (e.g. by an in-memory fake in tests).
"""

from abc import ABC, abstractmethod
from typing import List, Sequence

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sitesettings.core.exceptions import NotFoundError
from . import messages
from .models import SettingORM
from .schemas import SettingEditItem, SettingValue

logger = structlog.get_logger(__name__)


def setting_orm_to_value(row: SettingORM) -> SettingValue:
    """Convert an ORM row to the cached representation."""
    return SettingValue(
        id=row.id,
        key=row.key,
        value=row.value,
        type=row.type,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SettingsRepositoryInterface(ABC):
    """Interface for settings persistence."""

    @abstractmethod
    async def get_all(self) -> List[SettingValue]:
        """Get every stored setting.

        :returns: All settings ordered by key
        """
        pass

    @abstractmethod
    async def edit(self, entries: Sequence[SettingEditItem]) -> List[SettingValue]:
        """Persist new values for existing settings.

        :param entries: Key/value changes
        :returns: Updated settings in request order
        :raises NotFoundError: If a key does not exist
        """
        pass


class SQLAlchemySettingsRepository(SettingsRepositoryInterface):
    """SQLAlchemy implementation of the settings repository."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_all(self) -> List[SettingValue]:
        stmt = select(SettingORM).order_by(SettingORM.key)
        result = await self.db.execute(stmt)
        return [setting_orm_to_value(row) for row in result.scalars().all()]

    async def edit(self, entries: Sequence[SettingEditItem]) -> List[SettingValue]:
        keys = [entry.key for entry in entries]
        stmt = select(SettingORM).where(SettingORM.key.in_(keys))
        result = await self.db.execute(stmt)
        rows = {row.key: row for row in result.scalars().all()}

        missing = [key for key in keys if key not in rows]
        if missing:
            raise NotFoundError(
                messages.PROBLEM_FINDING_SETTING.format(key=missing[0]),
                context={"key": missing[0]},
            )

        for entry in entries:
            rows[entry.key].value = entry.value

        await self.db.commit()
        for key in rows:
            await self.db.refresh(rows[key])

        logger.info("settings_persisted", keys=keys)
        return [setting_orm_to_value(rows[key]) for key in keys]
