"""Bearer-token member resolution for protected endpoints."""

from __future__ import annotations

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from legends_api.core.security import CredentialError, decode_token
from legends_api.db.session import get_session
from legends_api.models.user import User
from legends_api.repositories import UserRepository
from legends_api.services.errors import Unauthorized

_BEARER_PREFIX = "bearer "


def _extract_bearer(authorization: str | None) -> str | None:
    if not authorization:
        return None
    if not authorization.lower().startswith(_BEARER_PREFIX):
        return None
    token = authorization[len(_BEARER_PREFIX):].strip()
    return token or None


async def require_member(
    authorization: str | None = Header(None),
    db: AsyncSession = Depends(get_session),
) -> User:
    """Resolve the caller from ``Authorization: Bearer <jwt>``."""

    token = _extract_bearer(authorization)
    if token is None:
        raise Unauthorized()

    try:
        user_id = decode_token(token)
    except CredentialError as error:
        raise Unauthorized() from error

    user = await UserRepository(db).find_one(user_id)
    if user is None or user.blocked:
        raise Unauthorized()
    return user
