"""User persistence with password hashing applied on write."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import func, update
from sqlalchemy.orm.attributes import set_committed_value

from legends_api.core.security import hash_password
from legends_api.models.user import User

from .base import Repository


class UserRepository(Repository[User]):
    model = User

    async def find_by_email(self, email: str) -> User | None:
        return await self.find_first(func.lower(User.email) == email.strip().lower())

    async def find_by_username(self, username: str) -> User | None:
        return await self.find_first(User.username == username)

    async def consume_otp(self, user: User, code: str, *, now: datetime, **changes: Any) -> bool:
        """Clear a matching unexpired code in one UPDATE, applying ``changes`` alongside.

        Returns False when the code was already consumed, replaced or expired.
        """

        values = self._hash_password_field({**changes, "otp_code": None, "otp_expires_at": None})
        stmt = (
            update(User)
            .where(
                User.id == user.id,
                User.otp_code == code,
                User.otp_expires_at >= now,
            )
            .values(**values)
            .returning(User.id)
            .execution_options(synchronize_session=False)
        )
        result = await self._db.execute(stmt)
        if result.scalar_one_or_none() is None:
            return False
        for field, value in values.items():
            set_committed_value(user, field, value)
        return True

    async def create(self, **data: Any) -> User:
        return await super().create(**self._hash_password_field(data))

    async def update(self, entity: User, **data: Any) -> User:
        return await super().update(entity, **self._hash_password_field(data))

    @staticmethod
    def _hash_password_field(data: dict[str, Any]) -> dict[str, Any]:
        if "password" not in data:
            return data
        payload = dict(data)
        password = payload.pop("password")
        payload["password_hash"] = hash_password(password) if password else None
        return payload
