"""Calendar scan windows and per-member scan counting."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID
from zoneinfo import ZoneInfo

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from legends_api.core.settings import settings
from legends_api.repositories import ScanEventRepository
from legends_api.services.errors import LimitExceeded
from legends_api.services.settings_service import ProgramSettings


@dataclass(frozen=True)
class ScanWindows:
    """Window starts, expressed in UTC for querying."""

    day_start: datetime
    week_start: datetime
    month_start: datetime


@dataclass(frozen=True)
class ScanCounts:
    today_count: int
    week_count: int
    month_count: int

    def incremented(self) -> "ScanCounts":
        return ScanCounts(
            today_count=self.today_count + 1,
            week_count=self.week_count + 1,
            month_count=self.month_count + 1,
        )


def compute_windows(now: datetime, tz: ZoneInfo | None = None) -> ScanWindows:
    """Local midnight, Monday 00:00 of the ISO week, and the first of the month."""

    zone = tz or ZoneInfo(settings.program_timezone)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local_now = now.astimezone(zone)

    day_start = datetime(local_now.year, local_now.month, local_now.day, tzinfo=zone)
    # days since Monday
    day_index = local_now.weekday()
    week_start_date = day_start.date() - timedelta(days=day_index)
    week_start = datetime(week_start_date.year, week_start_date.month, week_start_date.day, tzinfo=zone)
    month_start = datetime(local_now.year, local_now.month, 1, tzinfo=zone)

    return ScanWindows(
        day_start=day_start.astimezone(timezone.utc),
        week_start=week_start.astimezone(timezone.utc),
        month_start=month_start.astimezone(timezone.utc),
    )


class RateLimiter:
    """Counts prior scans and enforces the day → week → month thresholds."""

    def __init__(self, db_session: AsyncSession, *, tz: ZoneInfo | None = None) -> None:
        self._scans = ScanEventRepository(db_session)
        self._tz = tz

    async def count_in_window(self, user_id: UUID, window_start: datetime) -> int:
        return await self._scans.count_since(user_id, window_start)

    async def check_limits(
        self,
        user_id: UUID,
        program: ProgramSettings,
        now: datetime,
    ) -> ScanCounts:
        windows = compute_windows(now, self._tz)
        counts = ScanCounts(
            today_count=await self.count_in_window(user_id, windows.day_start),
            week_count=await self.count_in_window(user_id, windows.week_start),
            month_count=await self.count_in_window(user_id, windows.month_start),
        )

        for scope, count, limit in (
            ("day", counts.today_count, program.per_day),
            ("week", counts.week_count, program.per_week),
            ("month", counts.month_count, program.per_month),
        ):
            if count >= limit:
                logger.info(
                    "Scan rejected by rate limit",
                    user_id=str(user_id),
                    scope=scope,
                    count=count,
                    limit=limit,
                )
                raise LimitExceeded(scope)

        return counts
