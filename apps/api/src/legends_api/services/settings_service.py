"""Program settings singleton: load with defaults and seed at startup."""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from legends_api.core.settings import settings
from legends_api.models.loyalty import AppSetting
from legends_api.repositories import AppSettingRepository


@dataclass(frozen=True)
class ProgramSettings:
    """Scan award and rate limit configuration threaded through a request."""

    default_points_per_scan: int
    per_day: int
    per_week: int
    per_month: int

    @classmethod
    def defaults(cls) -> "ProgramSettings":
        return cls(
            default_points_per_scan=settings.default_points_per_scan,
            per_day=settings.default_per_day,
            per_week=settings.default_per_week,
            per_month=settings.default_per_month,
        )

    @classmethod
    def from_record(cls, record: AppSetting | None) -> "ProgramSettings":
        fallback = cls.defaults()
        if record is None:
            return fallback

        def pick(value: int | None, default: int) -> int:
            return default if value is None else int(value)

        return cls(
            default_points_per_scan=pick(record.default_points_per_scan, fallback.default_points_per_scan),
            per_day=pick(record.per_day, fallback.per_day),
            per_week=pick(record.per_week, fallback.per_week),
            per_month=pick(record.per_month, fallback.per_month),
        )


class SettingsService:
    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session
        self._settings = AppSettingRepository(db_session)

    async def get_record(self) -> AppSetting | None:
        return await self._settings.get_singleton()

    async def load(self) -> ProgramSettings:
        return ProgramSettings.from_record(await self._settings.get_singleton())

    async def seed_defaults(self) -> bool:
        """Create the singleton with defaults when absent. Returns True if seeded."""

        if await self._settings.get_singleton() is not None:
            return False

        defaults = ProgramSettings.defaults()
        await self._settings.create(
            default_points_per_scan=defaults.default_points_per_scan,
            per_day=defaults.per_day,
            per_week=defaults.per_week,
            per_month=defaults.per_month,
        )
        await self._db.commit()
        logger.info("Seeded App Settings with defaults")
        return True
