from datetime import timedelta

import pytest

from app.database import as_utc, session_scope
from app.models.otp import EmailOtpEntry
from app.services.otp import OtpStore, OtpVerificationError, hash_otp


@pytest.fixture()
def store():
    return OtpStore(expiry_minutes=10, code_length=6)


def _wrong(code):
    return str((int(code) + 1) % 10**len(code)).zfill(len(code))


def test_request_stores_only_a_digest(store):
    record = store.request_otp("Writer@Inkwell.io")

    with session_scope() as session:
        entry = session.get(EmailOtpEntry, "writer@inkwell.io")
        assert entry.otp_hash == hash_otp("writer@inkwell.io", record.code)
        assert entry.otp_hash != record.code
        assert entry.attempts == 0
        assert as_utc(entry.expires_at) == record.expires_at


def test_digest_is_salted_with_email():
    assert hash_otp("a@inkwell.io", "123456") != hash_otp("b@inkwell.io", "123456")


def test_code_valid_until_expiry(store):
    record = store.request_otp("writer@inkwell.io")

    store.verify_otp("writer@inkwell.io", record.code, now=record.expires_at)

    assert store.attempts_for("writer@inkwell.io") is None


def test_code_rejected_after_expiry(store):
    record = store.request_otp("writer@inkwell.io")

    with pytest.raises(OtpVerificationError, match="OTP expired"):
        store.verify_otp(
            "writer@inkwell.io",
            record.code,
            now=record.expires_at + timedelta(microseconds=1),
        )


def test_mismatches_count_attempts_without_locking(store):
    record = store.request_otp("writer@inkwell.io")

    for expected_attempts in range(1, 8):
        with pytest.raises(OtpVerificationError, match="Invalid OTP"):
            store.verify_otp("writer@inkwell.io", _wrong(record.code))
        assert store.attempts_for("writer@inkwell.io") == expected_attempts

    store.verify_otp("writer@inkwell.io", record.code)
    assert store.attempts_for("writer@inkwell.io") is None


def test_new_request_replaces_code_and_resets_attempts(store):
    first = store.request_otp("writer@inkwell.io")
    with pytest.raises(OtpVerificationError):
        store.verify_otp("writer@inkwell.io", _wrong(first.code))

    second = store.request_otp("writer@inkwell.io")

    assert store.attempts_for("writer@inkwell.io") == 0
    if first.code != second.code:
        with pytest.raises(OtpVerificationError, match="Invalid OTP"):
            store.verify_otp("writer@inkwell.io", first.code)
    store.verify_otp("writer@inkwell.io", second.code)


def test_unknown_email(store):
    with pytest.raises(OtpVerificationError, match="Invalid or expired OTP"):
        store.verify_otp("nobody@inkwell.io", "123456")
