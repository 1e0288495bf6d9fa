"""Lazy provisioning of the single member card per user."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from legends_api.models.loyalty import DEFAULT_CARD_TIER, MemberCard, MemberCardStatus
from legends_api.observability.loyalty import get_loyalty_store
from legends_api.repositories import MemberCardRepository
from legends_api.services.codes import unique_card_number


class CardProvisioner:
    """Look up a member's card, creating it on first need."""

    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session
        self._cards = MemberCardRepository(db_session)

    async def get_card(self, user_id: UUID) -> MemberCard | None:
        return await self._cards.find_by_user(user_id)

    async def ensure_card(self, user_id: UUID, *, now: datetime | None = None) -> MemberCard:
        """Return the user's card, creating an empty active one if missing.

        A concurrent first scan may win the insert; the unique constraint on
        ``user_id`` turns that into an ``IntegrityError`` and the winner's card
        is returned instead. Must run before any other pending writes in the
        session, since recovery rolls the session back.
        """

        card = await self._cards.find_by_user(user_id)
        if card is not None:
            get_loyalty_store().record_card_event("reused")
            return card

        card_number = await unique_card_number(self._cards.card_number_taken)
        try:
            card = await self._cards.create(
                user_id=user_id,
                card_number=card_number,
                points_balance=0,
                status=MemberCardStatus.ACTIVE.value,
                tier=DEFAULT_CARD_TIER,
                issued_at=now or datetime.now(timezone.utc),
            )
        except IntegrityError:
            await self._db.rollback()
            logger.warning("Detected race when creating member card", user_id=str(user_id))
            existing = await self._cards.find_by_user(user_id)
            if existing is None:
                raise
            get_loyalty_store().record_card_event("race_recovered")
            return existing

        get_loyalty_store().record_card_event("created")
        logger.info(
            "Issued member card",
            user_id=str(user_id),
            card_id=str(card.id),
            card_number=card.card_number,
        )
        return card
