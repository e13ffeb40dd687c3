from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.api_rate_limit],
    enabled=settings.rate_limit_enabled,
)


def otp_rate_limit() -> str:
    """Limit string for the OTP routes, read from settings on every request."""
    return settings.otp_rate_limit
