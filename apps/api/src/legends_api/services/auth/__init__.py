"""Identity flows: email OTP and signup."""

from .otp_service import OTP_SUBJECT, OtpService, VerifiedSession, generate_otp_code
from .signup_service import SignupResult, SignupService

__all__ = [
    "OTP_SUBJECT",
    "OtpService",
    "SignupResult",
    "SignupService",
    "VerifiedSession",
    "generate_otp_code",
]
