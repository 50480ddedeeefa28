from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from project root so it loads regardless of cwd
_BACKEND_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _BACKEND_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str

    # JWT (tokens are issued by the auth service; we only verify them)
    secret_key: str
    access_token_expire_minutes: int = 15
    algorithm: str = "HS256"

    # CORS
    cors_origins: str = "http://localhost:5173"

    # Google Calendar mirroring
    google_client_id: str = ""
    google_client_secret: str = ""
    google_api_timeout_seconds: float = 10.0

    # Availability / booking rules
    max_slot_range_days: int = 60
    min_booking_notice_minutes: int = 0
    default_time_gap_minutes: int = 30
    default_timezone: str = "UTC"

    # Env
    env: str = "development"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def google_calendar_enabled(self) -> bool:
        return bool(self.google_client_id and self.google_client_secret)


settings = Settings()
