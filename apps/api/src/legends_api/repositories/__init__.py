"""Entity repositories."""

from .base import Repository
from .loyalty import (
    AppSettingRepository,
    LocationRepository,
    MemberCardRepository,
    RedemptionRepository,
    RewardRepository,
    ScanEventRepository,
)
from .user import UserRepository

__all__ = [
    "AppSettingRepository",
    "LocationRepository",
    "MemberCardRepository",
    "RedemptionRepository",
    "Repository",
    "RewardRepository",
    "ScanEventRepository",
    "UserRepository",
]
