"""
Domain errors raised by the loyalty engine.

Every error carries a stable ``code`` and the HTTP status the API layer
responds with. Messages are safe to show to members.
"""

from __future__ import annotations

from fastapi import status


class LoyaltyError(Exception):
    """Base class for request-level loyalty failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "LOYALTY_ERROR"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationFailed(LoyaltyError):
    code = "VALIDATION_ERROR"


class Unauthorized(LoyaltyError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class InvalidLocation(LoyaltyError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "INVALID_LOCATION"

    def __init__(self, message: str = "Invalid or inactive location QR") -> None:
        super().__init__(message)


class LimitExceeded(LoyaltyError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "LIMIT_EXCEEDED"

    _LABELS = {"day": "Daily", "week": "Weekly", "month": "Monthly"}

    def __init__(self, scope: str) -> None:
        self.scope = scope
        label = self._LABELS.get(scope, scope.capitalize())
        super().__init__(f"{label} scan limit reached")


class CardNotFound(LoyaltyError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "CARD_NOT_FOUND"

    def __init__(self, message: str = "Member card not found") -> None:
        super().__init__(message)


class RewardUnavailable(LoyaltyError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "REWARD_UNAVAILABLE"

    def __init__(self, message: str = "Reward not available") -> None:
        super().__init__(message)


class InsufficientPoints(LoyaltyError):
    status_code = status.HTTP_409_CONFLICT
    code = "INSUFFICIENT_POINTS"

    def __init__(self, balance: int, required: int) -> None:
        self.balance = balance
        self.required = required
        super().__init__("Insufficient points")


class GenerationExhausted(LoyaltyError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "GENERATION_EXHAUSTED"

    def __init__(self, message: str = "Failed to generate unique card number. Please try again.") -> None:
        super().__init__(message)


class UserNotFound(LoyaltyError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "USER_NOT_FOUND"

    def __init__(self, message: str = "User not found") -> None:
        super().__init__(message)


class InvalidOrExpiredCode(LoyaltyError):
    code = "INVALID_OR_EXPIRED_CODE"

    def __init__(self, message: str = "Invalid or expired code") -> None:
        super().__init__(message)


class DuplicateIdentity(LoyaltyError):
    status_code = status.HTTP_409_CONFLICT
    code = "DUPLICATE_IDENTITY"

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"{field.capitalize()} already in use")


class OtpDispatchFailed(LoyaltyError):
    status_code = status.HTTP_502_BAD_GATEWAY
    code = "OTP_DISPATCH_FAILED"

    def __init__(self, message: str = "Failed to send OTP email") -> None:
        super().__init__(message)


__all__ = [
    "CardNotFound",
    "DuplicateIdentity",
    "GenerationExhausted",
    "InsufficientPoints",
    "InvalidLocation",
    "InvalidOrExpiredCode",
    "LimitExceeded",
    "LoyaltyError",
    "OtpDispatchFailed",
    "RewardUnavailable",
    "Unauthorized",
    "UserNotFound",
    "ValidationFailed",
]
