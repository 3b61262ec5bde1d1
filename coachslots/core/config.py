from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from the project root so it loads regardless of cwd
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
    auto_create_tables: bool = False

    # JWT (tokens are minted by the identity provider with the same secret)
    secret_key: str
    access_token_expire_minutes: int = 60
    algorithm: str = "HS256"

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Scheduling rules
    max_slot_range_days: int = 60
    default_timezone: str = "America/New_York"
    # Blocked slots that ended more than this many days ago are purged
    blocked_slot_retention_days: int = 30

    # External calendar busy-times service. Leave empty to disable.
    external_calendar_url: str = ""
    external_calendar_api_key: str = ""
    external_calendar_timeout_seconds: float = 5.0

    # Env
    env: str = "development"

    # Email (SMTP). Leave smtp_host empty to disable sending.
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    from_email: str = ""
    from_name: str = "Coachslots"
    site_name: str = "Coachslots"
    contact_email: str = ""

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def email_enabled(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_password and self.from_email)

    @property
    def external_calendar_enabled(self) -> bool:
        return bool(self.external_calendar_url)


settings = Settings()
