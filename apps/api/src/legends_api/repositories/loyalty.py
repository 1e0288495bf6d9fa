"""Repositories for loyalty program entities."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.attributes import set_committed_value

from legends_api.models.loyalty import (
    AppSetting,
    Location,
    MemberCard,
    Redemption,
    Reward,
    ScanEvent,
)

from .base import Repository


class LocationRepository(Repository[Location]):
    model = Location

    async def find_active_by_token(self, qr_token: str) -> Location | None:
        return await self.find_first(Location.qr_token == qr_token, Location.is_active.is_(True))

    async def qr_token_taken(self, qr_token: str, *, exclude_id: UUID | None = None) -> bool:
        filters = [Location.qr_token == qr_token]
        if exclude_id is not None:
            filters.append(Location.id != exclude_id)
        return await self.exists(*filters)

    async def entry_code_taken(self, entry_code: str, *, exclude_id: UUID | None = None) -> bool:
        filters = [Location.entry_code == entry_code]
        if exclude_id is not None:
            filters.append(Location.id != exclude_id)
        return await self.exists(*filters)


class MemberCardRepository(Repository[MemberCard]):
    model = MemberCard

    async def find_by_user(self, user_id: UUID) -> MemberCard | None:
        return await self.find_first(MemberCard.user_id == user_id)

    async def card_number_taken(self, card_number: str) -> bool:
        return await self.exists(MemberCard.card_number == card_number)

    async def increment_balance(self, card: MemberCard, delta: int) -> int:
        """Add ``delta`` in a single UPDATE and return the stored balance."""

        stmt = (
            update(MemberCard)
            .where(MemberCard.id == card.id)
            .values(points_balance=MemberCard.points_balance + delta)
            .returning(MemberCard.points_balance)
            .execution_options(synchronize_session=False)
        )
        result = await self._db.execute(stmt)
        balance = int(result.scalar_one())
        set_committed_value(card, "points_balance", balance)
        return balance

    async def deduct_balance(self, card: MemberCard, cost: int) -> int | None:
        """Subtract ``cost`` only if the stored balance covers it.

        Returns the new balance, or ``None`` when the guard rejected the write.
        """

        stmt = (
            update(MemberCard)
            .where(MemberCard.id == card.id, MemberCard.points_balance >= cost)
            .values(points_balance=MemberCard.points_balance - cost)
            .returning(MemberCard.points_balance)
            .execution_options(synchronize_session=False)
        )
        result = await self._db.execute(stmt)
        balance = result.scalar_one_or_none()
        if balance is None:
            return None
        set_committed_value(card, "points_balance", int(balance))
        return int(balance)


class ScanEventRepository(Repository[ScanEvent]):
    model = ScanEvent

    async def count_since(self, user_id: UUID, window_start: datetime) -> int:
        stmt = select(func.count(ScanEvent.id)).where(
            ScanEvent.user_id == user_id,
            ScanEvent.scanned_at >= window_start,
        )
        result = await self._db.execute(stmt)
        return int(result.scalar_one() or 0)

    async def list_for_user(
        self,
        user_id: UUID,
        *,
        limit: int,
        scanned_from: datetime | None = None,
        scanned_to: datetime | None = None,
    ) -> list[ScanEvent]:
        filters = [ScanEvent.user_id == user_id]
        if scanned_from is not None:
            filters.append(ScanEvent.scanned_at >= scanned_from)
        if scanned_to is not None:
            filters.append(ScanEvent.scanned_at <= scanned_to)
        return await self.find_many(
            *filters,
            order_by=(ScanEvent.scanned_at.desc(),),
            limit=limit,
            options=(selectinload(ScanEvent.location),),
        )


class RewardRepository(Repository[Reward]):
    model = Reward

    async def list_rewards(self, *, active_only: bool = False) -> list[Reward]:
        filters = [Reward.active.is_(True)] if active_only else []
        return await self.find_many(*filters, order_by=(Reward.cost_points.asc(),))


class RedemptionRepository(Repository[Redemption]):
    model = Redemption


class AppSettingRepository(Repository[AppSetting]):
    model = AppSetting

    async def get_singleton(self) -> AppSetting | None:
        return await self.find_first(order_by=(AppSetting.id.asc(),))
