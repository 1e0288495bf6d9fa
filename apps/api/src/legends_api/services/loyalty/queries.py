"""Read-only member queries: card, transaction history, catalog, settings."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from legends_api.models.loyalty import MemberCard, Reward, ScanEvent
from legends_api.repositories import MemberCardRepository, RewardRepository, ScanEventRepository
from legends_api.services.errors import Unauthorized, ValidationFailed
from legends_api.services.settings_service import ProgramSettings, SettingsService

DEFAULT_TRANSACTION_LIMIT = 20
MAX_TRANSACTION_LIMIT = 200


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class LoyaltyQueryService:
    def __init__(self, db_session: AsyncSession) -> None:
        self._cards = MemberCardRepository(db_session)
        self._scans = ScanEventRepository(db_session)
        self._rewards = RewardRepository(db_session)
        self._settings = SettingsService(db_session)

    async def my_card(self, user_id: UUID | None) -> MemberCard | None:
        if user_id is None:
            raise Unauthorized()
        return await self._cards.find_by_user(user_id)

    async def my_transactions(
        self,
        user_id: UUID | None,
        *,
        limit: int | None = None,
        scanned_from: datetime | None = None,
        scanned_to: datetime | None = None,
    ) -> list[ScanEvent]:
        """Newest-first scan history with the scanned location attached."""

        if user_id is None:
            raise Unauthorized()
        size = DEFAULT_TRANSACTION_LIMIT if limit is None else limit
        if size < 1:
            raise ValidationFailed("limit must be positive")
        return await self._scans.list_for_user(
            user_id,
            limit=min(size, MAX_TRANSACTION_LIMIT),
            scanned_from=_as_utc(scanned_from),
            scanned_to=_as_utc(scanned_to),
        )

    async def rewards(self, *, active_only: bool = False) -> list[Reward]:
        return await self._rewards.list_rewards(active_only=active_only)

    async def program_settings(self) -> ProgramSettings:
        return await self._settings.load()
