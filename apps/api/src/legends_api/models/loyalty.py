"""Loyalty program domain models: locations, cards, scans, rewards."""

from __future__ import annotations

from enum import Enum
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from legends_api.db.base import Base


DEFAULT_CARD_TIER = "Legends"


class MemberCardStatus(str, Enum):
    """Lifecycle statuses for member cards."""

    ACTIVE = "active"
    SUSPENDED = "suspended"


class RedemptionStatus(str, Enum):
    """Redemptions are approved on creation; other values are reserved for operators."""

    APPROVED = "approved"
    CANCELLED = "cancelled"


class Location(Base):
    """Physical venue whose QR code members scan to earn points."""

    __tablename__ = "locations"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String, nullable=False)
    qr_token = Column(String(64), nullable=False, unique=True, index=True)
    entry_code = Column(String(6), nullable=False, unique=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default="true")
    qr_image_ref = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    scan_events = relationship("ScanEvent", back_populates="location")


class MemberCard(Base):
    """Loyalty card holding a member's point balance."""

    __tablename__ = "member_cards"
    __table_args__ = (
        UniqueConstraint("user_id", name="uq_member_cards_user_id"),
        CheckConstraint("points_balance >= 0", name="points_balance_non_negative"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    document_id = Column(String(32), nullable=False, unique=True, default=lambda: uuid4().hex)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    card_number = Column(String(16), nullable=False, unique=True, index=True)
    points_balance = Column(Integer, nullable=False, default=0, server_default="0")
    status = Column(String(16), nullable=False, default=MemberCardStatus.ACTIVE.value, server_default=MemberCardStatus.ACTIVE.value)
    tier = Column(String(32), nullable=False, default=DEFAULT_CARD_TIER, server_default=DEFAULT_CARD_TIER)
    issued_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    user = relationship("User", backref="member_cards")


class ScanEvent(Base):
    """Append-only record of a member scanning a location."""

    __tablename__ = "scan_events"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    location_id = Column(UUID(as_uuid=True), ForeignKey("locations.id"), nullable=False)
    points_awarded = Column(Integer, nullable=False)
    scanned_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    location = relationship("Location", back_populates="scan_events")


class Reward(Base):
    """Catalog entry members can spend points on."""

    __tablename__ = "rewards"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    cost_points = Column(Integer, nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True, server_default="true")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class Redemption(Base):
    """Append-only record of points spent on a reward."""

    __tablename__ = "redemptions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    reward_id = Column(UUID(as_uuid=True), ForeignKey("rewards.id"), nullable=False)
    points_spent = Column(Integer, nullable=False)
    status = Column(String(16), nullable=False, default=RedemptionStatus.APPROVED.value)
    redeemed_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    reward = relationship("Reward")


class AppSetting(Base):
    """Singleton row holding program-wide scan settings."""

    __tablename__ = "app_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    default_points_per_scan = Column(Integer, nullable=True)
    per_day = Column(Integer, nullable=True)
    per_week = Column(Integer, nullable=True)
    per_month = Column(Integer, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
