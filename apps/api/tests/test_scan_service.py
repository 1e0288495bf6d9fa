import asyncio
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy import func, select

from factories import create_card, create_location, create_user
from legends_api.models.loyalty import AppSetting, MemberCard, ScanEvent
from legends_api.observability.loyalty import get_loyalty_store
from legends_api.services.errors import InvalidLocation, LimitExceeded, Unauthorized
from legends_api.services.loyalty import ScanService

UTC_ZONE = ZoneInfo("UTC")
NOW = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)


async def _scan_count(session, user_id) -> int:
    return await session.scalar(select(func.count(ScanEvent.id)).where(ScanEvent.user_id == user_id))


@pytest.mark.asyncio
async def test_first_scan_awards_points_and_provisions_card(session_factory) -> None:
    async with session_factory() as session:
        user = await create_user(session)
        location = await create_location(session)
        await session.commit()

        result = await ScanService(session, tz=UTC_ZONE).scan(user.id, location.qr_token, now=NOW)

        card = await session.scalar(select(MemberCard).where(MemberCard.user_id == user.id))
        event = await session.scalar(select(ScanEvent).where(ScanEvent.user_id == user.id))

    assert result.points_awarded == 1
    assert result.balance == 1
    assert card.points_balance == 1
    assert event.location_id == location.id
    assert event.points_awarded == 1
    limits = result.limits
    assert (limits.per_day, limits.per_week, limits.per_month) == (1, 3, 10)
    assert (limits.today_count, limits.week_count, limits.month_count) == (1, 1, 1)
    assert get_loyalty_store().snapshot().scans == {"awarded": 1, "points_awarded": 1}


@pytest.mark.asyncio
async def test_second_scan_same_day_hits_daily_limit(session_factory) -> None:
    async with session_factory() as session:
        user = await create_user(session)
        location = await create_location(session)
        await session.commit()
        service = ScanService(session, tz=UTC_ZONE)

        await service.scan(user.id, location.qr_token, now=NOW)
        with pytest.raises(LimitExceeded) as excinfo:
            await service.scan(user.id, location.qr_token, now=NOW + timedelta(hours=1))

        card = await session.scalar(select(MemberCard).where(MemberCard.user_id == user.id))
        await session.refresh(card)
        scans = await _scan_count(session, user.id)

    assert excinfo.value.scope == "day"
    assert excinfo.value.message == "Daily scan limit reached"
    assert card.points_balance == 1
    assert scans == 1
    assert get_loyalty_store().snapshot().scans["rejected_day"] == 1


@pytest.mark.asyncio
async def test_rejected_scan_leaves_balance_unchanged(session_factory) -> None:
    async with session_factory() as session:
        user = await create_user(session)
        location = await create_location(session)
        card = await create_card(session, user, balance=7)
        session.add(
            ScanEvent(user_id=user.id, location_id=location.id, points_awarded=1, scanned_at=NOW - timedelta(hours=3))
        )
        await session.commit()

        with pytest.raises(LimitExceeded):
            await ScanService(session, tz=UTC_ZONE).scan(user.id, location.qr_token, now=NOW)

        await session.refresh(card)

    assert card.points_balance == 7


@pytest.mark.asyncio
async def test_next_day_scan_is_allowed(session_factory) -> None:
    async with session_factory() as session:
        user = await create_user(session)
        location = await create_location(session)
        await session.commit()
        service = ScanService(session, tz=UTC_ZONE)

        await service.scan(user.id, location.qr_token, now=NOW)
        result = await service.scan(user.id, location.qr_token, now=NOW + timedelta(days=1))

    assert result.balance == 2
    assert (result.limits.today_count, result.limits.week_count) == (1, 2)


@pytest.mark.asyncio
@pytest.mark.parametrize("token_kind", ["unknown", "inactive", "blank"])
async def test_invalid_location_is_rejected_without_scan_event(session_factory, token_kind) -> None:
    async with session_factory() as session:
        user = await create_user(session)
        inactive = await create_location(session, is_active=False)
        await session.commit()
        token = {"unknown": "not-a-token", "inactive": inactive.qr_token, "blank": "   "}[token_kind]

        with pytest.raises(InvalidLocation) as excinfo:
            await ScanService(session, tz=UTC_ZONE).scan(user.id, token, now=NOW)

        scans = await _scan_count(session, user.id)

    assert excinfo.value.message == "Invalid or inactive location QR"
    assert scans == 0
    assert get_loyalty_store().snapshot().scans == {"invalid_location": 1}


@pytest.mark.asyncio
async def test_scan_requires_member(session_factory) -> None:
    async with session_factory() as session:
        with pytest.raises(Unauthorized):
            await ScanService(session).scan(None, "anything")


@pytest.mark.asyncio
async def test_scan_uses_stored_program_settings(session_factory) -> None:
    async with session_factory() as session:
        session.add(AppSetting(default_points_per_scan=5, per_day=2, per_week=None, per_month=20))
        user = await create_user(session)
        location = await create_location(session)
        await session.commit()

        result = await ScanService(session, tz=UTC_ZONE).scan(user.id, location.qr_token, now=NOW)

    assert result.points_awarded == 5
    assert result.balance == 5
    assert (result.limits.per_day, result.limits.per_week, result.limits.per_month) == (2, 3, 20)


@pytest.mark.asyncio
async def test_concurrent_scans_do_not_lose_balance_updates(file_session_factory) -> None:
    async with file_session_factory() as session:
        session.add(AppSetting(default_points_per_scan=2, per_day=50, per_week=50, per_month=50))
        user = await create_user(session)
        location = await create_location(session)
        await session.commit()
        user_id, token = user.id, location.qr_token

    async def scan():
        async with file_session_factory() as session:
            return await ScanService(session, tz=UTC_ZONE).scan(user_id, token, now=NOW)

    results = await asyncio.gather(*(scan() for _ in range(6)))

    async with file_session_factory() as session:
        cards = (await session.scalars(select(MemberCard).where(MemberCard.user_id == user_id))).all()
        scans = await _scan_count(session, user_id)

    assert len(cards) == 1
    assert cards[0].points_balance == 12
    assert scans == 6
    assert sorted(result.balance for result in results) == [2, 4, 6, 8, 10, 12]
    assert sorted(result.limits.today_count for result in results) == [1, 2, 3, 4, 5, 6]
