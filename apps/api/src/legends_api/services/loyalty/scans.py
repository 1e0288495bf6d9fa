"""QR scan validation and point award."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID
from zoneinfo import ZoneInfo

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from legends_api.observability.loyalty import get_loyalty_store
from legends_api.repositories import LocationRepository, MemberCardRepository, ScanEventRepository
from legends_api.services.errors import InvalidLocation, LimitExceeded, Unauthorized
from legends_api.services.locks import KeyedLock, get_member_locks
from legends_api.services.settings_service import ProgramSettings, SettingsService

from .cards import CardProvisioner
from .rate_limiter import RateLimiter, ScanCounts


@dataclass
class LimitsSummary:
    per_day: int
    per_week: int
    per_month: int
    today_count: int
    week_count: int
    month_count: int

    @classmethod
    def build(cls, program: ProgramSettings, counts: ScanCounts) -> "LimitsSummary":
        return cls(
            per_day=program.per_day,
            per_week=program.per_week,
            per_month=program.per_month,
            today_count=counts.today_count,
            week_count=counts.week_count,
            month_count=counts.month_count,
        )


@dataclass
class ScanResult:
    points_awarded: int
    balance: int
    limits: LimitsSummary
    scan_event_id: UUID
    card_id: UUID


class ScanService:
    """Validate a scan token, apply rate limits and credit the member card."""

    def __init__(
        self,
        db_session: AsyncSession,
        *,
        locks: KeyedLock | None = None,
        tz: ZoneInfo | None = None,
    ) -> None:
        self._db = db_session
        self._locations = LocationRepository(db_session)
        self._cards = MemberCardRepository(db_session)
        self._scans = ScanEventRepository(db_session)
        self._settings = SettingsService(db_session)
        self._limiter = RateLimiter(db_session, tz=tz)
        self._provisioner = CardProvisioner(db_session)
        self._locks = locks or get_member_locks()

    async def scan(
        self,
        user_id: UUID | None,
        qr_token: str,
        *,
        now: datetime | None = None,
    ) -> ScanResult:
        if user_id is None:
            raise Unauthorized()

        store = get_loyalty_store()
        token = (qr_token or "").strip()
        location = await self._locations.find_active_by_token(token) if token else None
        if location is None:
            store.record_scan("invalid_location")
            logger.info("Scan rejected for unknown or inactive location", user_id=str(user_id))
            raise InvalidLocation()
        location_id = location.id

        program = await self._settings.load()
        scanned_at = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)

        async with self._locks.hold(user_id):
            try:
                counts = await self._limiter.check_limits(user_id, program, scanned_at)
            except LimitExceeded as error:
                store.record_scan(f"rejected_{error.scope}")
                raise

            card = await self._provisioner.ensure_card(user_id, now=scanned_at)
            card_id = card.id

            event = await self._scans.create(
                user_id=user_id,
                location_id=location_id,
                points_awarded=program.default_points_per_scan,
                scanned_at=scanned_at,
            )
            balance = await self._cards.increment_balance(card, program.default_points_per_scan)
            event_id = event.id
            await self._db.commit()

        store.record_scan("awarded", points=program.default_points_per_scan)
        logger.info(
            "Recorded scan",
            user_id=str(user_id),
            location_id=str(location_id),
            points=program.default_points_per_scan,
            balance=balance,
        )
        return ScanResult(
            points_awarded=program.default_points_per_scan,
            balance=balance,
            limits=LimitsSummary.build(program, counts.incremented()),
            scan_event_id=event_id,
            card_id=card_id,
        )
