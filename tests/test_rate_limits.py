import dataclasses

import pytest

from app.config import settings
from app.limiter import limiter


@pytest.fixture()
def otp_limit_of_two(monkeypatch):
    monkeypatch.setattr(
        "app.limiter.settings", dataclasses.replace(settings, otp_rate_limit_max=2)
    )
    limiter.reset()
    yield
    limiter.reset()


def test_send_otp_is_limited_per_client(client, otp_limit_of_two, sent_emails):
    for index in range(2):
        response = client.post(
            "/api/auth/send-otp", json={"email": f"visitor{index}@inkwell.io"}
        )
        assert response.status_code == 403

    response = client.post("/api/auth/send-otp", json={"email": "visitor9@inkwell.io"})

    assert response.status_code == 429
    assert response.json() == {
        "success": False,
        "message": "Too many OTP requests. Please try again later.",
    }
    assert sent_emails.codes == {}


def test_verify_otp_has_its_own_counter(client, otp_limit_of_two):
    for index in range(2):
        client.post("/api/auth/send-otp", json={"email": f"visitor{index}@inkwell.io"})

    response = client.post(
        "/api/auth/verify-otp", json={"email": "visitor0@inkwell.io", "otp": "123456"}
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid or expired OTP"
