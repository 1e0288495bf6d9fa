"""Model builders shared by the test suite."""

from datetime import datetime, timezone
from uuid import uuid4

from legends_api.core.security import issue_token
from legends_api.models.loyalty import Location, MemberCard, Reward
from legends_api.models.user import User


async def create_user(session, **overrides) -> User:
    suffix = uuid4().hex[:8]
    data = {
        "email": f"member-{suffix}@example.com",
        "username": f"member-{suffix}",
        "name": "Legends Member",
        "phone_number": "+15550100",
        "confirmed": True,
    }
    data.update(overrides)
    user = User(**data)
    session.add(user)
    await session.flush()
    return user


async def create_location(session, *, is_active: bool = True, **overrides) -> Location:
    data = {
        "name": "Downtown Arena",
        "qr_token": uuid4().hex,
        "entry_code": f"{uuid4().int % 1_000_000:06d}",
        "is_active": is_active,
    }
    data.update(overrides)
    location = Location(**data)
    session.add(location)
    await session.flush()
    return location


async def create_card(session, user: User, *, balance: int = 0) -> MemberCard:
    card = MemberCard(
        user_id=user.id,
        card_number=f"LEG-{uuid4().hex[:8].upper()}",
        points_balance=balance,
        status="active",
        tier="Legends",
        issued_at=datetime.now(timezone.utc),
    )
    session.add(card)
    await session.flush()
    return card


async def create_reward(session, *, cost_points: int, active: bool = True, title: str = "Free Drink") -> Reward:
    reward = Reward(title=title, cost_points=cost_points, active=active)
    session.add(reward)
    await session.flush()
    return reward


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {issue_token(user.id)}"}
