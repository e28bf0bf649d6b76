"""Application configuration via pydantic settings."""

from datetime import timedelta
from functools import lru_cache
from pathlib import Path

from typing import Annotated, Any

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Typed application configuration."""

    app_env: str = Field("local", alias="APP_ENV")
    app_name: str = "credvault"
    api_v1_prefix: str = "/api/v1"

    database_url: str = Field(
        "sqlite+aiosqlite:///./credvault.db", alias="DATABASE_URL"
    )
    sync_database_url: str | None = Field(default=None, alias="SYNC_DATABASE_URL")

    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    session_token_ttl_hours: int = Field(24, alias="SESSION_TOKEN_TTL_HOURS")
    reset_token_ttl_minutes: int = Field(40, alias="RESET_TOKEN_TTL_MINUTES")

    password_min_length: int = Field(6, alias="PASSWORD_MIN_LENGTH")
    bcrypt_rounds: int = Field(12, alias="BCRYPT_ROUNDS")

    frontend_url: str = Field("http://localhost:3000", alias="FRONTEND_URL")

    session_cookie_name: str = Field("token", alias="SESSION_COOKIE_NAME")
    session_cookie_secure: bool = Field(True, alias="SESSION_COOKIE_SECURE")
    session_cookie_samesite: str = Field("none", alias="SESSION_COOKIE_SAMESITE")

    smtp_host: str | None = Field(default=None, alias="SMTP_HOST")
    smtp_port: int | None = Field(default=None, alias="SMTP_PORT")
    smtp_username: str | None = Field(default=None, alias="SMTP_USER")
    smtp_password: str | None = Field(default=None, alias="SMTP_PASSWORD")
    smtp_from: str | None = Field(default=None, alias="SMTP_FROM")
    dev_email_echo: bool = Field(default=False, alias="DEV_EMAIL_ECHO")

    default_photo_url: str = Field(
        "https://i.ibb.co/4pDNDk1/avatar.png", alias="DEFAULT_PHOTO_URL"
    )
    default_bio: str = Field("bio", alias="DEFAULT_BIO")

    cors_allow_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        alias="CORS_ALLOW_ORIGINS",
    )

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[3] / ".env",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def session_token_ttl(self) -> timedelta:
        return timedelta(hours=self.session_token_ttl_hours)

    @property
    def reset_token_ttl(self) -> timedelta:
        return timedelta(minutes=self.reset_token_ttl_minutes)

    @property
    def email_sender(self) -> str:
        return self.smtp_from or self.smtp_username or "no-reply@credvault.local"

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()  # type: ignore[call-arg]
