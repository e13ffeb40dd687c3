from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException, status

from app.services.profiles import profile_store
from app.services.tokens import TokenError, decode_access_token


@dataclass(frozen=True)
class CurrentUser:
    id: str
    role: str


def get_current_user(authorization: str | None = Header(default=None)) -> CurrentUser:
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: Missing token",
        )
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: Missing token",
        )
    try:
        access_data = decode_access_token(token.strip())
    except TokenError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: Invalid or expired token",
        ) from exc
    return CurrentUser(id=access_data.user_id, role=access_data.role)


def require_roles(*allowed_roles: str):
    """Dependency factory that checks the caller's stored role, not the token claim."""

    def dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        profile = profile_store.get(user.id)
        if profile is None or profile.role not in allowed_roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return CurrentUser(id=profile.id, role=profile.role)

    return dependency


require_admin = require_roles("admin")
