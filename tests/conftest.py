import os

os.environ.update(
    {
        "APP_ENV": "test",
        "DATABASE_URL": "sqlite://",
        "JWT_SECRET": "test-secret-key-with-at-least-32-bytes",
        "SUPABASE_URL": "https://project.supabase.co",
        "SUPABASE_SERVICE_ROLE_KEY": "service-role-key",
        "STORAGE_BUCKET": "blog_media",
        "EMAIL_PROVIDER": "console",
        "OTP_COOLDOWN_SECONDS": "60",
        "OTP_DEBUG": "false",
        "OTP_RATE_LIMIT_MAX": "1000",
        "API_RATE_LIMIT_MAX": "10000",
        "SEED_ADMIN_EMAIL": "",
    }
)

import pytest
from fastapi.testclient import TestClient

from app.database import Base, init_db, session_scope
from app.main import app
from app.schemas.profiles import ProfileCreate
from app.services.cooldown import otp_cooldown
from app.services.profiles import profile_store
from app.services.storage import MediaStorage
from app.services.tokens import create_access_token

init_db()


class FakeStorage(MediaStorage):
    """Keeps uploaded objects in memory instead of calling the storage API."""

    def __init__(self) -> None:
        super().__init__("https://project.supabase.co", "service-role-key", "blog_media")
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.removed: list[str] = []

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        self.objects[path] = (data, content_type)
        return self.public_url(path)

    def remove(self, paths: list[str]) -> None:
        for path in paths:
            self.objects.pop(path, None)
            self.removed.append(path)


class SentEmails:
    def __init__(self) -> None:
        self.codes: dict[str, str] = {}

    def __call__(self, to_email: str, code: str) -> None:
        self.codes[to_email] = code


@pytest.fixture()
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(autouse=True)
def clean_state():
    yield
    with session_scope() as session:
        for table in reversed(Base.metadata.sorted_tables):
            session.execute(table.delete())
    otp_cooldown.reset()


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    outbox = SentEmails()
    monkeypatch.setattr("app.routers.auth.send_otp_email", outbox)
    return outbox


@pytest.fixture(autouse=True)
def storage(monkeypatch):
    fake = FakeStorage()
    monkeypatch.setattr("app.routers.blogs.media_storage", fake)
    return fake


@pytest.fixture()
def admin():
    return profile_store.create_profile(
        ProfileCreate(name="Ada Admin", email="ada@inkwell.io", role="admin")
    )


@pytest.fixture()
def editor():
    return profile_store.create_profile(
        ProfileCreate(name="Eddie Editor", email="eddie@inkwell.io", role="editor")
    )


def bearer(profile) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(profile.id, profile.role)}"}


@pytest.fixture()
def admin_headers(admin):
    return bearer(admin)


@pytest.fixture()
def editor_headers(editor):
    return bearer(editor)
