import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

DEFAULT_CORS_ORIGINS = (
    "http://localhost:5173",
    "http://localhost:4173",
    "https://prashant-jhadev.netlify.app",
)


def _env_bool(name: str, default: bool = False) -> bool:
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw_value = os.getenv(name)
    if not raw_value:
        return default
    return tuple(item.strip() for item in raw_value.split(",") if item.strip())


def _window_to_limit(max_requests: int, window_ms: int) -> str:
    seconds = max(1, window_ms // 1000)
    return f"{max_requests}/{seconds} seconds"


@dataclass(frozen=True)
class Settings:
    app_name: str = os.getenv("APP_NAME", "Inkwell Blog API")
    environment: str = os.getenv("APP_ENV", "development").strip().lower()
    log_level: str = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    cors_origins: tuple[str, ...] = _env_list("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)

    database_url: str = os.getenv("DATABASE_URL", "")

    jwt_secret: str = os.getenv("JWT_SECRET", "")
    jwt_algorithm: str = os.getenv("ALGORITHM", "HS256")
    access_token_expire_seconds: int = int(os.getenv("ACCESS_TOKEN_EXPIRES_IN", "900"))
    refresh_token_expire_seconds: int = int(
        os.getenv("REFRESH_TOKEN_EXPIRES_IN", "604800")
    )

    otp_length: int = int(os.getenv("OTP_LENGTH", "6"))
    otp_expiry_minutes: int = int(os.getenv("OTP_EXPIRY_MINUTES", "10"))
    otp_cooldown_seconds: int = int(os.getenv("OTP_COOLDOWN_SECONDS", "60"))
    otp_debug: bool = _env_bool("OTP_DEBUG", False)
    otp_hash_secret: str = os.getenv("OTP_HASH_SECRET", "")

    rate_limit_enabled: bool = _env_bool("RATE_LIMIT_ENABLED", True)
    api_rate_limit_window_ms: int = int(os.getenv("API_RATE_LIMIT_WINDOW", "900000"))
    api_rate_limit_max: int = int(os.getenv("API_RATE_LIMIT_MAX", "100"))
    otp_rate_limit_window_ms: int = int(os.getenv("OTP_RATE_LIMIT_WINDOW", "900000"))
    otp_rate_limit_max: int = int(os.getenv("OTP_RATE_LIMIT_MAX", "5"))

    email_provider: str = os.getenv("EMAIL_PROVIDER", "smtp").strip().lower()
    resend_api_key: str = os.getenv("RESEND_API_KEY", "")
    otp_email_sender: str = os.getenv(
        "OTP_EMAIL_SENDER", "Blog Auth <onboarding@resend.dev>"
    )
    otp_email_subject: str = os.getenv("OTP_EMAIL_SUBJECT", "Your Login OTP")
    smtp_host: str = os.getenv("SMTP_HOST", "")
    smtp_port: int = int(os.getenv("SMTP_PORT", "587"))
    smtp_user: str = os.getenv("SMTP_USER", "")
    smtp_password: str = os.getenv("SMTP_PASS", "")

    supabase_url: str = os.getenv("SUPABASE_URL", "").rstrip("/")
    supabase_service_role_key: str = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
    storage_bucket: str = os.getenv("STORAGE_BUCKET", "blog_media")

    image_max_size_mb: int = int(os.getenv("IMAGE_MAX_SIZE_MB", "5"))
    audio_max_size_mb: int = int(os.getenv("AUDIO_MAX_SIZE_MB", "10"))
    video_max_size_mb: int = int(os.getenv("VIDEO_MAX_SIZE_MB", "50"))
    max_media_files: int = int(os.getenv("MAX_MEDIA_FILES", "5"))
    image_max_width: int = int(os.getenv("IMAGE_MAX_WIDTH", "1600"))
    image_quality: int = int(os.getenv("IMAGE_QUALITY", "75"))

    seed_admin_email: str = os.getenv("SEED_ADMIN_EMAIL", "").strip().lower()
    seed_admin_name: str = os.getenv("SEED_ADMIN_NAME", "Administrator").strip()

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def api_rate_limit(self) -> str:
        return _window_to_limit(self.api_rate_limit_max, self.api_rate_limit_window_ms)

    @property
    def otp_rate_limit(self) -> str:
        return _window_to_limit(self.otp_rate_limit_max, self.otp_rate_limit_window_ms)


REQUIRED_ENV_VARS = (
    "DATABASE_URL",
    "JWT_SECRET",
    "SUPABASE_URL",
    "SUPABASE_SERVICE_ROLE_KEY",
)

PROVIDER_ENV_VARS = {
    "resend": ("RESEND_API_KEY",),
    "smtp": ("SMTP_HOST", "SMTP_PORT", "SMTP_USER", "SMTP_PASS"),
    "console": (),
}


def missing_env_vars(provider: str) -> list[str]:
    required = REQUIRED_ENV_VARS + PROVIDER_ENV_VARS.get(provider, ())
    return [name for name in required if not os.getenv(name)]


def validate_environment(current: "Settings") -> None:
    if current.email_provider not in PROVIDER_ENV_VARS:
        raise RuntimeError(f"Unknown EMAIL_PROVIDER: {current.email_provider}")
    missing = missing_env_vars(current.email_provider)
    if missing:
        raise RuntimeError(f"Missing required env vars: {', '.join(missing)}")


settings = Settings()
