"""Unauthenticated identity endpoints: email OTP, password reset, signup."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from legends_api.api.dependencies.integrations import get_email_backend
from legends_api.db.session import get_session
from legends_api.models.user import User
from legends_api.services.auth import OtpService, SignupService
from legends_api.services.notifications import EmailBackend


router = APIRouter(prefix="/auth", tags=["Auth"])


class OtpRequest(BaseModel):
    email: Optional[str] = Field(None, description="Account email address")


class OtpVerifyRequest(BaseModel):
    email: Optional[str] = None
    code: Optional[str] = Field(None, description="Six digit code from the email")


class PasswordConfirmRequest(BaseModel):
    email: Optional[str] = None
    code: Optional[str] = None
    newPassword: Optional[str] = None


class SignupRequest(BaseModel):
    name: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    phone_number: Optional[str] = None


class OkResponse(BaseModel):
    ok: bool = True


class UserResponse(BaseModel):
    id: UUID
    documentId: str
    email: str
    username: str
    name: Optional[str]
    confirmed: bool
    blocked: bool

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            documentId=user.document_id,
            email=user.email,
            username=user.username,
            name=user.name,
            confirmed=bool(user.confirmed),
            blocked=bool(user.blocked),
        )


class SignupUserResponse(UserResponse):
    phone_number: Optional[str]

    @classmethod
    def from_user(cls, user: User) -> "SignupUserResponse":
        base = UserResponse.from_user(user).model_dump()
        return cls(**base, phone_number=user.phone_number)


class OtpVerifyResponse(BaseModel):
    ok: bool = True
    jwt: str
    userId: UUID
    user: UserResponse


class SignupResponse(BaseModel):
    ok: bool = True
    jwt: str
    user: SignupUserResponse


class UsernameExistsResponse(BaseModel):
    exists: bool


@router.post("/otp/request", response_model=OkResponse, summary="Email a one-time password")
async def request_email_otp(
    payload: OtpRequest,
    db: AsyncSession = Depends(get_session),
    email_backend: EmailBackend | None = Depends(get_email_backend),
) -> OkResponse:
    await OtpService(db, email_backend=email_backend).request_otp(payload.email)
    return OkResponse()


@router.post("/otp/verify", response_model=OtpVerifyResponse, summary="Exchange an OTP for a session")
async def verify_email_otp(
    payload: OtpVerifyRequest,
    db: AsyncSession = Depends(get_session),
) -> OtpVerifyResponse:
    session = await OtpService(db).verify_otp(payload.email, payload.code)
    return OtpVerifyResponse(
        jwt=session.jwt,
        userId=session.user.id,
        user=UserResponse.from_user(session.user),
    )


@router.post("/password/confirm", response_model=OkResponse, summary="Reset password with an OTP")
async def confirm_password_reset(
    payload: PasswordConfirmRequest,
    db: AsyncSession = Depends(get_session),
) -> OkResponse:
    await OtpService(db).confirm_password_reset(payload.email, payload.code, payload.newPassword)
    return OkResponse()


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a member account",
)
async def signup(
    payload: SignupRequest,
    db: AsyncSession = Depends(get_session),
) -> SignupResponse:
    result = await SignupService(db).signup(
        name=payload.name,
        username=payload.username,
        email=payload.email,
        password=payload.password,
        phone_number=payload.phone_number,
    )
    return SignupResponse(jwt=result.jwt, user=SignupUserResponse.from_user(result.user))


@router.get("/username-exists", response_model=UsernameExistsResponse)
async def username_exists(
    username: str = Query("", description="Username to check"),
    db: AsyncSession = Depends(get_session),
) -> UsernameExistsResponse:
    return UsernameExistsResponse(exists=await SignupService(db).username_exists(username))
