"""SQLAlchemy models package."""

from .loyalty import (  # noqa: F401
    AppSetting,
    Location,
    MemberCard,
    MemberCardStatus,
    Redemption,
    RedemptionStatus,
    Reward,
    ScanEvent,
)
from .user import User  # noqa: F401
