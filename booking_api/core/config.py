from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from project root so it loads regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str
    database_ssl: bool = False

    # JWT (admin panel)
    secret_key: str
    access_token_expire_minutes: int = 60
    algorithm: str = "HS256"
    admin_username: str = "admin"
    # bcrypt hash; leave empty to disable admin login
    admin_password_hash: str = ""

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Razorpay
    razorpay_key_id: str = ""
    razorpay_key_secret: str = ""
    razorpay_api_base: str = "https://api.razorpay.com/v1"
    razorpay_timeout_seconds: float = 10.0
    default_currency: str = "INR"
    # Price of one slot in major currency units; None skips the amount check
    slot_price: int | None = None

    # Slot/booking business rules
    slot_window_start: str = "08:00"
    slot_window_end: str = "18:30"
    slot_interval_minutes: int = 10
    booking_utc_offset_minutes: int = 330  # UTC+05:30
    free_booking_enabled: bool = False

    # Env
    env: str = "development"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def admin_login_enabled(self) -> bool:
        return bool(self.admin_username and self.admin_password_hash)
