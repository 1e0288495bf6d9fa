"""Spending card points on rewards."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from legends_api.models.loyalty import RedemptionStatus
from legends_api.observability.loyalty import get_loyalty_store
from legends_api.repositories import MemberCardRepository, RedemptionRepository, RewardRepository
from legends_api.services.errors import (
    CardNotFound,
    InsufficientPoints,
    RewardUnavailable,
    Unauthorized,
)
from legends_api.services.locks import KeyedLock, get_member_locks


def _as_uuid(value: UUID | str) -> UUID | None:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


@dataclass
class RedemptionResult:
    balance: int
    redemption_id: UUID
    status: str


class RedemptionService:
    def __init__(self, db_session: AsyncSession, *, locks: KeyedLock | None = None) -> None:
        self._db = db_session
        self._rewards = RewardRepository(db_session)
        self._cards = MemberCardRepository(db_session)
        self._redemptions = RedemptionRepository(db_session)
        self._locks = locks or get_member_locks()

    async def redeem(
        self,
        user_id: UUID | None,
        reward_id: UUID | str,
        *,
        now: datetime | None = None,
    ) -> RedemptionResult:
        """Approve a redemption and deduct its cost from the member card.

        Reward ids that are not UUIDs are treated as unknown rewards.
        """

        if user_id is None:
            raise Unauthorized()

        store = get_loyalty_store()
        reward_key = _as_uuid(reward_id)
        reward = await self._rewards.find_one(reward_key) if reward_key is not None else None
        if reward is None or reward.active is False:
            store.record_redemption("reward_unavailable")
            raise RewardUnavailable()
        cost = int(reward.cost_points or 0)

        async with self._locks.hold(user_id):
            card = await self._cards.find_by_user(user_id)
            if card is None:
                store.record_redemption("card_not_found")
                raise CardNotFound()

            balance = int(card.points_balance or 0)
            if balance < cost:
                store.record_redemption("insufficient_points")
                raise InsufficientPoints(balance=balance, required=cost)

            redemption = await self._redemptions.create(
                user_id=user_id,
                reward_id=reward.id,
                points_spent=cost,
                status=RedemptionStatus.APPROVED.value,
                redeemed_at=(now or datetime.now(timezone.utc)).astimezone(timezone.utc),
            )
            new_balance = await self._cards.deduct_balance(card, cost)
            if new_balance is None:
                # balance moved under us in another process
                await self._db.rollback()
                store.record_redemption("insufficient_points")
                raise InsufficientPoints(balance=balance, required=cost)

            result = RedemptionResult(
                balance=new_balance,
                redemption_id=redemption.id,
                status=redemption.status,
            )
            await self._db.commit()

        store.record_redemption("approved", points=cost)
        logger.info(
            "Approved reward redemption",
            user_id=str(user_id),
            reward_id=str(reward_id),
            redemption_id=str(result.redemption_id),
            points=cost,
            balance=result.balance,
        )
        return result
