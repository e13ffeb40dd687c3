from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import hashlib
import hmac
import logging
import secrets

from sqlalchemy import delete

from app.config import settings
from app.database import as_utc, session_scope
from app.models.otp import EmailOtpEntry

LOGGER = logging.getLogger(__name__)


class OtpVerificationError(ValueError):
    pass


@dataclass(frozen=True)
class OtpRecord:
    code: str
    expires_at: datetime


def normalize_email(email: str) -> str:
    return email.strip().lower()


def hash_otp(email: str, code: str) -> str:
    secret = (settings.otp_hash_secret or settings.jwt_secret).encode("utf-8")
    message = f"{normalize_email(email)}:{code}".encode("utf-8")
    return hmac.new(secret, message, hashlib.sha256).hexdigest()


class OtpStore:
    """One hashed, expiring passcode per email address."""

    def __init__(self, expiry_minutes: int, code_length: int) -> None:
        self._expiry_minutes = expiry_minutes
        self._code_length = code_length

    def request_otp(self, email: str) -> OtpRecord:
        now = datetime.now(timezone.utc)
        normalized = normalize_email(email)
        record = OtpRecord(
            code=self._generate_code(),
            expires_at=now + timedelta(minutes=self._expiry_minutes),
        )
        otp_hash = hash_otp(normalized, record.code)

        with session_scope() as session:
            session.execute(
                delete(EmailOtpEntry).where(
                    EmailOtpEntry.expires_at < now,
                    EmailOtpEntry.email != normalized,
                )
            )
            entry = session.get(EmailOtpEntry, normalized)
            if entry is None:
                session.add(
                    EmailOtpEntry(
                        email=normalized,
                        otp_hash=otp_hash,
                        expires_at=record.expires_at,
                        attempts=0,
                        created_at=now,
                    )
                )
            else:
                entry.otp_hash = otp_hash
                entry.expires_at = record.expires_at
                entry.attempts = 0
                entry.created_at = now
        return record

    def verify_otp(
        self,
        email: str,
        code: str,
        now: datetime | None = None,
        consume: bool = True,
    ) -> None:
        """Check the passcode for ``email`` or raise ``OtpVerificationError``.

        A mismatch only bumps the attempt counter; the row stays usable until
        it expires or a new code replaces it. With ``consume=False`` a valid
        code is left in place for a later ``discard``.
        """
        now = now or datetime.now(timezone.utc)
        normalized = normalize_email(email)
        clean_code = code.strip()
        failure = None

        with session_scope() as session:
            entry = session.get(EmailOtpEntry, normalized)
            if entry is None:
                failure = "Invalid or expired OTP"
            elif as_utc(entry.expires_at) < now:
                failure = "OTP expired"
            elif not hmac.compare_digest(
                entry.otp_hash, hash_otp(normalized, clean_code)
            ):
                entry.attempts = (entry.attempts or 0) + 1
                failure = "Invalid OTP"
                LOGGER.info(
                    "OTP mismatch email=%s attempts=%s", normalized, entry.attempts
                )
            elif consume:
                session.delete(entry)

        if failure:
            raise OtpVerificationError(failure)

    def discard(self, email: str) -> None:
        with session_scope() as session:
            session.execute(
                delete(EmailOtpEntry).where(EmailOtpEntry.email == normalize_email(email))
            )

    def attempts_for(self, email: str) -> int | None:
        with session_scope() as session:
            entry = session.get(EmailOtpEntry, normalize_email(email))
            if entry is None:
                return None
            return entry.attempts

    def _generate_code(self) -> str:
        value = secrets.randbelow(10**self._code_length)
        return str(value).zfill(self._code_length)


otp_store = OtpStore(settings.otp_expiry_minutes, settings.otp_length)
