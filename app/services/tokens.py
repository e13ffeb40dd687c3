from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import secrets

import jwt

from app.config import settings


class TokenError(ValueError):
    pass


@dataclass(frozen=True)
class AccessTokenData:
    user_id: str
    role: str


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(user_id: str, role: str) -> str:
    if not settings.jwt_secret:
        raise TokenError("JWT secret is not configured")
    now = _utcnow()
    expires_at = now + timedelta(seconds=settings.access_token_expire_seconds)
    payload = {
        "sub": str(user_id),
        "role": role,
        "type": "access",
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def generate_refresh_token() -> str:
    return secrets.token_hex(40)


def decode_access_token(token: str) -> AccessTokenData:
    if not token:
        raise TokenError("Token is missing")
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except jwt.ExpiredSignatureError as exc:
        raise TokenError("Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise TokenError("Invalid token") from exc
    if payload.get("type") != "access":
        raise TokenError("Invalid token type")
    subject = payload.get("sub")
    if not subject:
        raise TokenError("Token subject is missing")
    return AccessTokenData(user_id=str(subject), role=str(payload.get("role") or ""))
