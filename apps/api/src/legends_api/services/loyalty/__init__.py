"""Loyalty service exports."""

from .cards import CardProvisioner  # noqa: F401
from .locations import LocationService  # noqa: F401
from .queries import LoyaltyQueryService  # noqa: F401
from .rate_limiter import RateLimiter, ScanCounts, ScanWindows, compute_windows  # noqa: F401
from .redemptions import RedemptionResult, RedemptionService  # noqa: F401
from .scans import LimitsSummary, ScanResult, ScanService  # noqa: F401
