"""Email one-time passwords for sign-in and password reset."""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from legends_api.core.security import issue_token
from legends_api.core.settings import settings
from legends_api.models.user import User
from legends_api.observability.loyalty import get_loyalty_store
from legends_api.repositories import UserRepository
from legends_api.services.errors import (
    InvalidOrExpiredCode,
    OtpDispatchFailed,
    UserNotFound,
    ValidationFailed,
)
from legends_api.services.notifications import EmailBackend

OTP_SUBJECT = "Your verification code"


def generate_otp_code() -> str:
    """Six digits between 100000 and 999999."""

    return str(100000 + secrets.randbelow(900000))


def _ensure_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


@dataclass
class VerifiedSession:
    user: User
    jwt: str


class OtpService:
    """Issue, deliver and consume email OTPs."""

    def __init__(self, db_session: AsyncSession, *, email_backend: EmailBackend | None = None) -> None:
        self._db = db_session
        self._users = UserRepository(db_session)
        self._email = email_backend

    async def request_otp(self, email: str | None, *, now: datetime | None = None) -> None:
        address = _normalize_email(email)
        if not address:
            raise ValidationFailed("Email is required")

        user = await self._users.find_by_email(address)
        if user is None:
            raise UserNotFound()

        issued_at = _ensure_aware(now or datetime.now(timezone.utc))
        code = generate_otp_code()
        await self._users.update(
            user,
            otp_code=code,
            otp_expires_at=issued_at + timedelta(seconds=settings.otp_ttl_seconds),
        )
        await self._db.commit()

        store = get_loyalty_store()
        minutes = max(settings.otp_ttl_seconds // 60, 1)
        body = f"Your one-time password is {code}. It expires in {minutes} minutes."
        if self._email is None:
            store.record_otp_event("dispatch_failed")
            logger.warning("OTP email dispatch skipped, no email backend configured", user_id=str(user.id))
            raise OtpDispatchFailed()
        try:
            await self._email.send_email(
                address,
                OTP_SUBJECT,
                body,
                sender=settings.email_default_from,
                reply_to=settings.email_default_reply_to,
            )
        except Exception as error:
            store.record_otp_event("dispatch_failed")
            logger.warning("OTP email dispatch failed", user_id=str(user.id), error=str(error))
            raise OtpDispatchFailed() from error

        store.record_otp_event("issued")
        logger.info("Issued email OTP", user_id=str(user.id))

    async def verify_otp(
        self,
        email: str | None,
        code: str | None,
        *,
        now: datetime | None = None,
    ) -> VerifiedSession:
        """Consume a valid code, confirm the account and issue a session token."""

        user, candidate, current = await self._match_code(
            email, code, now=now, required="Email and code are required"
        )
        await self._consume(user, candidate, current, confirmed=True)

        get_loyalty_store().record_otp_event("verified")
        logger.info("Verified email OTP", user_id=str(user.id))
        return VerifiedSession(user=user, jwt=issue_token(user.id))

    async def confirm_password_reset(
        self,
        email: str | None,
        code: str | None,
        new_password: str | None,
        *,
        now: datetime | None = None,
    ) -> None:
        if not new_password:
            raise ValidationFailed("Email, code and newPassword are required")
        user, candidate, current = await self._match_code(
            email, code, now=now, required="Email, code and newPassword are required"
        )
        await self._consume(user, candidate, current, password=new_password)

        get_loyalty_store().record_otp_event("password_reset")
        logger.info("Password reset via OTP", user_id=str(user.id))

    async def _match_code(
        self,
        email: str | None,
        code: str | None,
        *,
        now: datetime | None,
        required: str,
    ) -> tuple[User, str, datetime]:
        address = _normalize_email(email)
        candidate = (code or "").strip()
        if not address or not candidate:
            raise ValidationFailed(required)

        user = await self._users.find_by_email(address)
        current = _ensure_aware(now or datetime.now(timezone.utc))
        if (
            user is None
            or not user.otp_code
            or user.otp_expires_at is None
            or current > _ensure_aware(user.otp_expires_at)
            or not secrets.compare_digest(str(user.otp_code), candidate)
        ):
            get_loyalty_store().record_otp_event("failed")
            raise InvalidOrExpiredCode()
        return user, candidate, current

    async def _consume(self, user: User, code: str, now: datetime, **changes: Any) -> None:
        # the read above may be stale; only the conditional UPDATE decides
        user_id = user.id
        consumed = await self._users.consume_otp(user, code, now=now, **changes)
        if not consumed:
            await self._db.rollback()
            get_loyalty_store().record_otp_event("failed")
            logger.info("OTP already consumed or expired", user_id=str(user_id))
            raise InvalidOrExpiredCode()
        await self._db.commit()
