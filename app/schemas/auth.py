from typing import Literal, Optional

from pydantic import EmailStr, Field, field_validator

from app.config import settings
from app.schemas.common import CamelModel

OTP_LENGTH = settings.otp_length


class SendOtpRequest(CamelModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class SendOtpResponse(CamelModel):
    success: bool = True
    message: str
    expires_in_seconds: int
    otp: Optional[str] = None


class VerifyOtpRequest(CamelModel):
    email: EmailStr
    otp: str = Field(min_length=OTP_LENGTH, max_length=OTP_LENGTH, pattern=r"^\d+$")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class AuthUser(CamelModel):
    id: str
    name: str
    email: str
    role: Literal["admin", "editor", "writer"]


class VerifyOtpResponse(CamelModel):
    success: bool = True
    user: AuthUser
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class RefreshTokenRequest(CamelModel):
    refresh_token: str = Field(min_length=1)


class RefreshTokenResponse(CamelModel):
    success: bool = True
    access_token: str
    token_type: str = "bearer"
    expires_in: int
