from datetime import datetime, timezone
import logging

from sqlalchemy import select

from app.database import as_utc, session_scope
from app.models.profile import ProfileEntry
from app.schemas.profiles import ProfileCreate, ProfileResponse, ProfileUpdate

LOGGER = logging.getLogger(__name__)

STAFF_ROLES = ("admin", "editor", "writer")
LOGIN_ALLOWED_ROLES = STAFF_ROLES


class ProfileError(ValueError):
    pass


class ProfileNotFoundError(ProfileError):
    pass


class ProfileExistsError(ProfileError):
    pass


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class ProfileStore:
    def get(self, profile_id: str) -> ProfileResponse | None:
        with session_scope() as session:
            entry = session.get(ProfileEntry, profile_id)
            if entry is None:
                return None
            return self._to_response(entry)

    def get_by_email(self, email: str) -> ProfileResponse | None:
        with session_scope() as session:
            entry = session.execute(
                select(ProfileEntry).where(ProfileEntry.email == _normalize_email(email))
            ).scalar_one_or_none()
            if entry is None:
                return None
            return self._to_response(entry)

    def create_profile(self, payload: ProfileCreate) -> ProfileResponse:
        now = datetime.now(timezone.utc)
        email = _normalize_email(payload.email)
        with session_scope() as session:
            existing = session.execute(
                select(ProfileEntry).where(ProfileEntry.email == email)
            ).scalar_one_or_none()
            if existing:
                raise ProfileExistsError("User already exists")
            entry = ProfileEntry(
                name=payload.name,
                email=email,
                role=payload.role,
                created_at=now,
                updated_at=now,
            )
            session.add(entry)
            session.flush()
            LOGGER.info("Created profile id=%s role=%s", entry.id, entry.role)
            return self._to_response(entry)

    def list_staff(self) -> list[ProfileResponse]:
        with session_scope() as session:
            entries = session.execute(
                select(ProfileEntry)
                .where(ProfileEntry.role.in_(STAFF_ROLES))
                .order_by(ProfileEntry.created_at.desc())
            ).scalars().all()
            return [self._to_response(entry) for entry in entries]

    def update_profile(self, profile_id: str, payload: ProfileUpdate) -> ProfileResponse:
        with session_scope() as session:
            entry = session.get(ProfileEntry, profile_id)
            if entry is None:
                raise ProfileNotFoundError("User not found")
            if payload.name is not None:
                entry.name = payload.name
            if payload.role is not None:
                entry.role = payload.role
            entry.updated_at = datetime.now(timezone.utc)
            session.flush()
            return self._to_response(entry)

    def delete_profile(self, profile_id: str) -> None:
        with session_scope() as session:
            entry = session.get(ProfileEntry, profile_id)
            if entry is None:
                raise ProfileNotFoundError("User not found")
            session.delete(entry)
        LOGGER.info("Deleted profile id=%s", profile_id)

    def ensure_admin(self, email: str, name: str) -> ProfileResponse:
        """Create or promote the bootstrap admin profile."""
        now = datetime.now(timezone.utc)
        key = _normalize_email(email)
        with session_scope() as session:
            entry = session.execute(
                select(ProfileEntry).where(ProfileEntry.email == key)
            ).scalar_one_or_none()
            if entry is None:
                entry = ProfileEntry(
                    name=name or "Administrator",
                    email=key,
                    role="admin",
                    created_at=now,
                    updated_at=now,
                )
                session.add(entry)
            elif entry.role != "admin":
                entry.role = "admin"
                entry.updated_at = now
            session.flush()
            return self._to_response(entry)

    def _to_response(self, entry: ProfileEntry) -> ProfileResponse:
        return ProfileResponse(
            id=entry.id,
            name=entry.name,
            email=entry.email,
            role=entry.role,
            created_at=as_utc(entry.created_at),
        )


profile_store = ProfileStore()
