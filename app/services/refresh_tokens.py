from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, select

from app.config import settings
from app.database import as_utc, session_scope
from app.models.refresh_token import RefreshTokenEntry
from app.services.tokens import TokenError, generate_refresh_token


class RefreshTokenStore:
    """Opaque refresh tokens kept server-side.

    Tokens are reusable until they expire; nothing revokes them.
    """

    def create_token(self, user_id: str) -> str:
        now = datetime.now(timezone.utc)
        token = generate_refresh_token()
        expires_at = now + timedelta(seconds=settings.refresh_token_expire_seconds)
        with session_scope() as session:
            session.execute(
                delete(RefreshTokenEntry).where(RefreshTokenEntry.expires_at <= now)
            )
            session.add(
                RefreshTokenEntry(
                    token=token,
                    user_id=user_id,
                    created_at=now,
                    expires_at=expires_at,
                )
            )
        return token

    def resolve_user_id(self, token: str) -> str:
        now = datetime.now(timezone.utc)
        with session_scope() as session:
            entry = session.execute(
                select(RefreshTokenEntry).where(RefreshTokenEntry.token == token)
            ).scalar_one_or_none()
            if entry is None:
                raise TokenError("Invalid refresh token")
            if as_utc(entry.expires_at) < now:
                raise TokenError("Refresh token expired")
            return entry.user_id


refresh_token_store = RefreshTokenStore()
