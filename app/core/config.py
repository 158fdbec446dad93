from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """
    Global application configuration.

    Values are loaded from environment variables (or a local `.env` file) at
    runtime. Webhook URLs are optional: when a URL is missing the matching
    feature degrades gracefully instead of failing at startup.
    """

    APP_NAME: str = "Meeting Intake Service"
    APP_ENV: str = Field("local", description="Environment name: local/dev/stage/prod")
    APP_VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"

    ALLOWED_ORIGINS: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Comma-separated list of origins allowed by CORS.",
    )

    # --- Admin session ---
    SESSION_SECRET: str = Field(
        "meeting-intake-session-secret",
        description="Secret used to sign the admin session cookie.",
    )
    SESSION_MAX_AGE_SECONDS: int = Field(
        3600,
        description="Lifetime of the admin session cookie in seconds.",
    )
    ADMIN_USERNAME: str | None = Field(
        default=None,
        description="Username accepted by /api/admin/login.",
    )
    ADMIN_PASSWORD: str | None = Field(
        default=None,
        description="Password accepted by /api/admin/login.",
    )
    ADMIN_EMAIL: str = Field(
        "admin@company.com",
        description="Address reported as the acting admin on outbound actions.",
    )

    # --- Meeting sources / workflow webhooks ---
    MEETINGS_SOURCE: str = Field(
        "webhook",
        description="Where the admin list is read from: 'webhook' or 'sheets'.",
    )
    MEETING_REQUEST_WEBHOOK: str | None = Field(
        default=None,
        description="Workflow webhook receiving new meeting requests (POST).",
    )
    ADMIN_MEETINGS_WEBHOOK: str | None = Field(
        default=None,
        description="Workflow webhook returning the current meeting list.",
    )
    ADMIN_MEETINGS_WEBHOOK_METHOD: str = Field(
        "GET",
        description="HTTP method used for ADMIN_MEETINGS_WEBHOOK (GET or POST).",
    )
    ADMIN_ACTION_WEBHOOK: str | None = Field(
        default=None,
        description="Workflow webhook receiving approve/reject/reschedule actions.",
    )
    WEBHOOK_TIMEOUT_SECONDS: float = Field(
        10.0,
        description="Timeout applied to regular webhook calls.",
    )
    SYNC_TIMEOUT_SECONDS: float = Field(
        15.0,
        description="Timeout applied to admin-triggered sync calls.",
    )

    # --- Spreadsheet ---
    GOOGLE_SHEETS_ID: str | None = Field(
        default=None,
        description="Spreadsheet id holding the Meeting_Requests tab.",
    )
    GOOGLE_API_KEY: str | None = Field(
        default=None,
        description="API key for the Sheets values API. Without it the CSV export is used.",
    )
    GOOGLE_SHEETS_RANGE: str = Field(
        "Meeting_Requests!A:X",
        description="A1 range read through the Sheets values API.",
    )
    SAMPLE_DATA_FALLBACK: bool = Field(
        default=True,
        description=(
            "Serve built-in sample meetings when the spreadsheet cannot be read. "
            "Meant for local development."
        ),
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def parse_allowed_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("MEETINGS_SOURCE", "ADMIN_MEETINGS_WEBHOOK_METHOD", mode="before")
    @classmethod
    def normalize_choice(cls, value: str) -> str:
        return value.strip()

    @field_validator("WEBHOOK_TIMEOUT_SECONDS", mode="before")
    @classmethod
    def normalize_webhook_timeout(cls, value: float | str) -> float:
        parsed_value = float(value)
        if parsed_value <= 0:
            return 10.0
        return parsed_value

    @field_validator("SYNC_TIMEOUT_SECONDS", mode="before")
    @classmethod
    def normalize_sync_timeout(cls, value: float | str) -> float:
        parsed_value = float(value)
        if parsed_value <= 0:
            return 15.0
        return parsed_value


@lru_cache()
def get_settings() -> Settings:
    """
    Cached accessor for application settings.

    Using LRU cache ensures settings are read and validated only once,
    while still being easily importable across the app.
    """
    return Settings()
