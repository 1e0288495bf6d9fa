"""Member-facing loyalty endpoints: scans, redemptions, card and history."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from legends_api.api.dependencies.session import require_member
from legends_api.db.session import get_session
from legends_api.models.loyalty import MemberCard, Reward, ScanEvent
from legends_api.models.user import User
from legends_api.services.loyalty import (
    CardProvisioner,
    LimitsSummary,
    LoyaltyQueryService,
    RedemptionService,
    ScanService,
)


router = APIRouter(tags=["Loyalty"])


class ScanRequest(BaseModel):
    qrToken: str = Field(..., description="Token encoded in the location QR")


class LimitsResponse(BaseModel):
    perDay: int
    perWeek: int
    perMonth: int
    todayCount: int
    weekCount: int
    monthCount: int

    @classmethod
    def from_summary(cls, summary: LimitsSummary) -> "LimitsResponse":
        return cls(
            perDay=summary.per_day,
            perWeek=summary.per_week,
            perMonth=summary.per_month,
            todayCount=summary.today_count,
            weekCount=summary.week_count,
            monthCount=summary.month_count,
        )


class ScanResponse(BaseModel):
    ok: bool = True
    pointsAwarded: int
    balance: int
    limits: LimitsResponse


class RedemptionRequest(BaseModel):
    rewardId: str


class RedemptionResponse(BaseModel):
    ok: bool = True
    balance: int
    redemptionId: UUID
    status: str


class MemberCardResponse(BaseModel):
    id: UUID
    documentId: str
    cardNumber: str
    pointsBalance: int
    status: str
    tier: str
    issuedAt: datetime

    @classmethod
    def from_card(cls, card: MemberCard) -> "MemberCardResponse":
        return cls(
            id=card.id,
            documentId=card.document_id,
            cardNumber=card.card_number,
            pointsBalance=int(card.points_balance or 0),
            status=card.status,
            tier=card.tier,
            issuedAt=card.issued_at,
        )


class LocationSummary(BaseModel):
    id: UUID
    name: str


class TransactionResponse(BaseModel):
    id: UUID
    pointsAwarded: int
    scannedAt: datetime
    location: Optional[LocationSummary]

    @classmethod
    def from_event(cls, event: ScanEvent) -> "TransactionResponse":
        location = event.location
        return cls(
            id=event.id,
            pointsAwarded=event.points_awarded,
            scannedAt=event.scanned_at,
            location=LocationSummary(id=location.id, name=location.name) if location else None,
        )


class RewardResponse(BaseModel):
    id: UUID
    title: str
    description: Optional[str]
    costPoints: int
    active: bool

    @classmethod
    def from_reward(cls, reward: Reward) -> "RewardResponse":
        return cls(
            id=reward.id,
            title=reward.title,
            description=reward.description,
            costPoints=int(reward.cost_points or 0),
            active=bool(reward.active),
        )


class ProgramSettingsResponse(BaseModel):
    defaultPointsPerScan: int
    perDay: int
    perWeek: int
    perMonth: int


@router.post("/scans", response_model=ScanResponse, summary="Scan a location QR code")
async def scan_qr_code(
    payload: ScanRequest,
    member: User = Depends(require_member),
    db: AsyncSession = Depends(get_session),
) -> ScanResponse:
    result = await ScanService(db).scan(member.id, payload.qrToken)
    return ScanResponse(
        pointsAwarded=result.points_awarded,
        balance=result.balance,
        limits=LimitsResponse.from_summary(result.limits),
    )


@router.post("/redemptions", response_model=RedemptionResponse, summary="Redeem a reward")
async def redeem_reward(
    payload: RedemptionRequest,
    member: User = Depends(require_member),
    db: AsyncSession = Depends(get_session),
) -> RedemptionResponse:
    result = await RedemptionService(db).redeem(member.id, payload.rewardId)
    return RedemptionResponse(
        balance=result.balance,
        redemptionId=result.redemption_id,
        status=result.status,
    )


@router.post("/cards/me", response_model=MemberCardResponse, summary="Ensure the caller has a card")
async def ensure_my_card(
    member: User = Depends(require_member),
    db: AsyncSession = Depends(get_session),
) -> MemberCardResponse:
    card = await CardProvisioner(db).ensure_card(member.id)
    await db.commit()
    return MemberCardResponse.from_card(card)


@router.get("/cards/me", response_model=Optional[MemberCardResponse], summary="Caller's member card")
async def get_my_card(
    member: User = Depends(require_member),
    db: AsyncSession = Depends(get_session),
) -> Optional[MemberCardResponse]:
    card = await LoyaltyQueryService(db).my_card(member.id)
    return MemberCardResponse.from_card(card) if card else None


@router.get("/transactions", response_model=List[TransactionResponse], summary="Caller's scan history")
async def list_my_transactions(
    limit: Optional[int] = Query(None, ge=1, le=200),
    scanned_from: Optional[datetime] = Query(None, alias="from"),
    scanned_to: Optional[datetime] = Query(None, alias="to"),
    member: User = Depends(require_member),
    db: AsyncSession = Depends(get_session),
) -> List[TransactionResponse]:
    events = await LoyaltyQueryService(db).my_transactions(
        member.id,
        limit=limit,
        scanned_from=scanned_from,
        scanned_to=scanned_to,
    )
    return [TransactionResponse.from_event(event) for event in events]


@router.get(
    "/rewards",
    response_model=List[RewardResponse],
    dependencies=[Depends(require_member)],
    summary="Reward catalog",
)
async def list_rewards(
    active_only: bool = Query(False, alias="activeOnly"),
    db: AsyncSession = Depends(get_session),
) -> List[RewardResponse]:
    rewards = await LoyaltyQueryService(db).rewards(active_only=active_only)
    return [RewardResponse.from_reward(reward) for reward in rewards]


@router.get(
    "/settings",
    response_model=ProgramSettingsResponse,
    dependencies=[Depends(require_member)],
    summary="Program scan settings",
)
async def get_program_settings(db: AsyncSession = Depends(get_session)) -> ProgramSettingsResponse:
    program = await LoyaltyQueryService(db).program_settings()
    return ProgramSettingsResponse(
        defaultPointsPerScan=program.default_points_per_scan,
        perDay=program.per_day,
        perWeek=program.per_week,
        perMonth=program.per_month,
    )
