from datetime import datetime, timedelta, timezone

from app.config import settings
from app.database import session_scope
from app.models.otp import EmailOtpEntry
from app.models.profile import ProfileEntry
from app.models.refresh_token import RefreshTokenEntry
from app.services.tokens import decode_access_token


def _send(client, email):
    return client.post("/api/auth/send-otp", json={"email": email})


def _login(client, sent_emails, email):
    assert _send(client, email).status_code == 200
    return client.post(
        "/api/auth/verify-otp", json={"email": email, "otp": sent_emails.codes[email]}
    )


def test_send_otp_delivers_code_for_staff(client, editor, sent_emails):
    response = _send(client, "Eddie@Inkwell.io")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["expiresInSeconds"] == settings.otp_expiry_minutes * 60
    assert "otp" not in body
    code = sent_emails.codes["eddie@inkwell.io"]
    assert len(code) == settings.otp_length
    assert code.isdigit()


def test_send_otp_rejects_unknown_email(client, sent_emails):
    response = _send(client, "stranger@inkwell.io")

    assert response.status_code == 403
    assert response.json() == {
        "success": False,
        "message": "Access denied. This email is not registered in the system.",
    }
    assert sent_emails.codes == {}


def test_send_otp_cooldown(client, editor):
    assert _send(client, "eddie@inkwell.io").status_code == 200

    response = _send(client, "eddie@inkwell.io")

    assert response.status_code == 429
    body = response.json()
    assert body["success"] is False
    assert body["message"].startswith("Please wait ")
    assert body["message"].endswith(" seconds before requesting another OTP.")


def test_send_otp_validates_email(client):
    response = _send(client, "not-an-email")

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Validation error"
    assert body["errors"][0]["field"] == "email"


def test_verify_otp_issues_tokens(client, editor, sent_emails):
    response = _login(client, sent_emails, "eddie@inkwell.io")

    assert response.status_code == 200
    body = response.json()
    assert body["user"] == {
        "id": editor.id,
        "name": "Eddie Editor",
        "email": "eddie@inkwell.io",
        "role": "editor",
    }
    assert body["expiresIn"] == settings.access_token_expire_seconds
    assert body["tokenType"] == "bearer"
    token_data = decode_access_token(body["accessToken"])
    assert token_data.user_id == editor.id
    assert token_data.role == "editor"
    assert body["refreshToken"]


def test_verify_otp_is_single_use(client, editor, sent_emails):
    assert _login(client, sent_emails, "eddie@inkwell.io").status_code == 200

    response = client.post(
        "/api/auth/verify-otp",
        json={"email": "eddie@inkwell.io", "otp": sent_emails.codes["eddie@inkwell.io"]},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid or expired OTP"


def test_verify_otp_wrong_code(client, editor, sent_emails):
    assert _send(client, "eddie@inkwell.io").status_code == 200
    code = sent_emails.codes["eddie@inkwell.io"]
    wrong = str((int(code) + 1) % 10**len(code)).zfill(len(code))

    response = client.post(
        "/api/auth/verify-otp", json={"email": "eddie@inkwell.io", "otp": wrong}
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid OTP"


def test_verify_otp_rejects_malformed_code(client):
    response = client.post(
        "/api/auth/verify-otp", json={"email": "eddie@inkwell.io", "otp": "12ab"}
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Validation error"


def test_refresh_token_mints_access_token(client, editor, sent_emails):
    refresh_token = _login(client, sent_emails, "eddie@inkwell.io").json()["refreshToken"]

    first = client.post("/api/auth/refresh-token", json={"refreshToken": refresh_token})
    second = client.post("/api/auth/refresh-token", json={"refreshToken": refresh_token})

    assert first.status_code == 200
    assert second.status_code == 200
    assert decode_access_token(first.json()["accessToken"]).user_id == editor.id
    assert first.json()["expiresIn"] == settings.access_token_expire_seconds


def test_refresh_token_unknown(client):
    response = client.post(
        "/api/auth/refresh-token", json={"refreshToken": "0123456789abcdef"}
    )

    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Invalid refresh token"}


def test_refresh_token_expired(client, editor, sent_emails):
    refresh_token = _login(client, sent_emails, "eddie@inkwell.io").json()["refreshToken"]
    with session_scope() as session:
        entry = session.query(RefreshTokenEntry).filter_by(token=refresh_token).one()
        entry.expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)

    response = client.post("/api/auth/refresh-token", json={"refreshToken": refresh_token})

    assert response.status_code == 401
    assert response.json()["message"] == "Refresh token expired"


def test_refresh_token_for_deleted_profile(client, admin, admin_headers, editor, sent_emails):
    refresh_token = _login(client, sent_emails, "eddie@inkwell.io").json()["refreshToken"]
    assert client.delete(f"/api/admin/users/{editor.id}", headers=admin_headers).status_code == 200

    response = client.post("/api/auth/refresh-token", json={"refreshToken": refresh_token})

    assert response.status_code == 403


def test_refresh_token_short_value_is_unknown(client):
    response = client.post("/api/auth/refresh-token", json={"refreshToken": "abc"})

    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Invalid refresh token"}


def test_verify_otp_keeps_code_when_profile_is_gone(client, editor, sent_emails):
    assert _send(client, "eddie@inkwell.io").status_code == 200
    with session_scope() as session:
        session.delete(session.get(ProfileEntry, editor.id))

    response = client.post(
        "/api/auth/verify-otp",
        json={"email": "eddie@inkwell.io", "otp": sent_emails.codes["eddie@inkwell.io"]},
    )

    assert response.status_code == 403
    assert response.json()["message"] == "Access denied. User not found."
    with session_scope() as session:
        assert session.get(EmailOtpEntry, "eddie@inkwell.io") is not None
