"""Local account registration."""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from legends_api.core.security import issue_token
from legends_api.models.user import User
from legends_api.repositories import UserRepository
from legends_api.services.errors import DuplicateIdentity, LoyaltyError, ValidationFailed
from legends_api.services.loyalty.cards import CardProvisioner


@dataclass
class SignupResult:
    user: User
    jwt: str


def _clean(value: str | None) -> str:
    return (value or "").strip()


class SignupService:
    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session
        self._users = UserRepository(db_session)

    async def username_exists(self, username: str | None) -> bool:
        candidate = _clean(username)
        if not candidate:
            return False
        return await self._users.find_by_username(candidate) is not None

    async def signup(
        self,
        *,
        username: str | None,
        email: str | None,
        password: str | None,
        phone_number: str | None,
        name: str | None = None,
    ) -> SignupResult:
        """Create an unconfirmed local account and provision its member card.

        Card provisioning failures are logged and do not fail the signup.
        """

        address = _clean(email).lower()
        handle = _clean(username)
        phone = _clean(phone_number)
        display_name = _clean(name) or None
        if not address or not handle or not password or not phone:
            raise ValidationFailed("email, username, password and phone_number are required")

        if await self._users.find_by_email(address) is not None:
            raise DuplicateIdentity("email")
        if await self._users.find_by_username(handle) is not None:
            raise DuplicateIdentity("username")

        try:
            user = await self._users.create(
                email=address,
                username=handle,
                name=display_name,
                phone_number=phone,
                password=password,
                provider="local",
                confirmed=False,
                blocked=False,
            )
            await self._db.commit()
        except IntegrityError:
            await self._db.rollback()
            conflict = await self._conflict(address, handle)
            if conflict is None:
                raise
            raise conflict from None
        await self._db.refresh(user)
        token = issue_token(user.id)
        logger.info("Registered member", user_id=str(user.id))

        user_id = user.id
        try:
            await CardProvisioner(self._db).ensure_card(user_id)
            await self._db.commit()
        except (LoyaltyError, SQLAlchemyError) as error:
            await self._db.rollback()
            logger.warning("MemberCard auto-create failed", user_id=str(user_id), error=str(error))

        await self._db.refresh(user)
        return SignupResult(user=user, jwt=token)

    async def _conflict(self, address: str, handle: str) -> DuplicateIdentity | None:
        """Name the identity a concurrent signup claimed between our check and insert."""

        if await self._users.find_by_email(address) is not None:
            return DuplicateIdentity("email")
        if await self._users.find_by_username(handle) is not None:
            return DuplicateIdentity("username")
        logger.error("Signup insert conflicted on an unknown constraint", email=address)
        return None
