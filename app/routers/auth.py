import logging

from fastapi import APIRouter, HTTPException, Request, status

from app.config import settings
from app.limiter import limiter, otp_rate_limit
from app.schemas.auth import (
    AuthUser,
    RefreshTokenRequest,
    RefreshTokenResponse,
    SendOtpRequest,
    SendOtpResponse,
    VerifyOtpRequest,
    VerifyOtpResponse,
)
from app.services.cooldown import otp_cooldown
from app.services.email import EmailSendError, send_otp_email
from app.services.otp import OtpVerificationError, otp_store
from app.services.profiles import LOGIN_ALLOWED_ROLES, profile_store
from app.services.refresh_tokens import refresh_token_store
from app.services.tokens import TokenError, create_access_token

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/send-otp", response_model=SendOtpResponse, response_model_exclude_none=True)
@limiter.limit(otp_rate_limit)
def send_otp(request: Request, payload: SendOtpRequest) -> SendOtpResponse:
    wait_seconds = otp_cooldown.hit(payload.email)
    if wait_seconds:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Please wait {wait_seconds} seconds before requesting another OTP.",
        )

    profile = profile_store.get_by_email(payload.email)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. This email is not registered in the system.",
        )
    if profile.role not in LOGIN_ALLOWED_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Role is not allowed to login.",
        )

    record = otp_store.request_otp(payload.email)
    try:
        send_otp_email(payload.email, record.code)
    except EmailSendError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(exc),
        ) from exc
    LOGGER.info("OTP issued for profile id=%s", profile.id)
    return SendOtpResponse(
        message="OTP sent",
        expires_in_seconds=settings.otp_expiry_minutes * 60,
        otp=record.code if settings.otp_debug else None,
    )


@router.post("/verify-otp", response_model=VerifyOtpResponse)
@limiter.limit(otp_rate_limit)
def verify_otp(request: Request, payload: VerifyOtpRequest) -> VerifyOtpResponse:
    try:
        otp_store.verify_otp(payload.email, payload.otp, consume=False)
    except OtpVerificationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    profile = profile_store.get_by_email(payload.email)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. User not found.",
        )
    if profile.role not in LOGIN_ALLOWED_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Role not allowed.",
        )
    otp_store.discard(payload.email)

    try:
        access_token = create_access_token(profile.id, profile.role)
    except TokenError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    refresh_token = refresh_token_store.create_token(profile.id)
    LOGGER.info("Profile id=%s signed in", profile.id)
    return VerifyOtpResponse(
        user=AuthUser(
            id=profile.id, name=profile.name, email=profile.email, role=profile.role
        ),
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.access_token_expire_seconds,
    )


@router.post("/refresh-token", response_model=RefreshTokenResponse)
def refresh_access_token(payload: RefreshTokenRequest) -> RefreshTokenResponse:
    try:
        user_id = refresh_token_store.resolve_user_id(payload.refresh_token)
    except TokenError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc

    profile = profile_store.get(user_id)
    if profile is None or profile.role not in LOGIN_ALLOWED_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied",
        )
    try:
        access_token = create_access_token(profile.id, profile.role)
    except TokenError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    return RefreshTokenResponse(
        access_token=access_token,
        expires_in=settings.access_token_expire_seconds,
    )
