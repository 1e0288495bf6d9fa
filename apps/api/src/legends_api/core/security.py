"""Password hashing and session credential issuance."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import bcrypt
import jwt

from legends_api.core.settings import settings


class CredentialError(Exception):
    """Raised when a session credential cannot be decoded."""


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str | None) -> bool:
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


def issue_token(subject: UUID | str, *, now: datetime | None = None) -> str:
    """Issue a signed JWT identifying ``subject``."""

    issued_at = now or datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": str(subject),
        "iat": issued_at,
        "exp": issued_at + timedelta(hours=settings.jwt_expiration_hours),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> UUID:
    """Return the subject of a valid token."""

    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError as error:
        raise CredentialError("Token expired") from error
    except jwt.InvalidTokenError as error:
        raise CredentialError("Invalid token") from error

    subject = payload.get("sub")
    try:
        return UUID(str(subject))
    except (TypeError, ValueError) as error:
        raise CredentialError("Invalid token subject") from error
