import asyncio

import pytest
from sqlalchemy import func, select

from factories import create_user
from legends_api.models.loyalty import DEFAULT_CARD_TIER, MemberCard
from legends_api.observability.loyalty import get_loyalty_store
from legends_api.services.loyalty import CardProvisioner


@pytest.mark.asyncio
async def test_ensure_card_creates_empty_active_card(session_factory) -> None:
    async with session_factory() as session:
        user = await create_user(session)
        card = await CardProvisioner(session).ensure_card(user.id)
        await session.commit()

    assert card.points_balance == 0
    assert card.status == "active"
    assert card.tier == DEFAULT_CARD_TIER
    assert card.card_number.startswith("LEG-")
    assert card.issued_at is not None


@pytest.mark.asyncio
async def test_ensure_card_is_idempotent(session_factory) -> None:
    async with session_factory() as session:
        user = await create_user(session)
        provisioner = CardProvisioner(session)

        first = await provisioner.ensure_card(user.id)
        second = await provisioner.ensure_card(user.id)
        await session.commit()

        total = await session.scalar(select(func.count(MemberCard.id)).where(MemberCard.user_id == user.id))

    assert first.id == second.id
    assert total == 1
    assert get_loyalty_store().snapshot().cards == {"created": 1, "reused": 1}


@pytest.mark.asyncio
async def test_get_card_returns_none_before_provisioning(session_factory) -> None:
    async with session_factory() as session:
        user = await create_user(session)
        assert await CardProvisioner(session).get_card(user.id) is None


@pytest.mark.asyncio
async def test_concurrent_first_provisioning_yields_single_card(file_session_factory) -> None:
    async with file_session_factory() as session:
        user = await create_user(session)
        await session.commit()
        user_id = user.id

    async def provision():
        async with file_session_factory() as session:
            card = await CardProvisioner(session).ensure_card(user_id)
            card_id = card.id
            await session.commit()
            return card_id

    card_ids = await asyncio.gather(*(provision() for _ in range(4)))

    async with file_session_factory() as session:
        total = await session.scalar(select(func.count(MemberCard.id)).where(MemberCard.user_id == user_id))

    assert total == 1
    assert len(set(card_ids)) == 1
