from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    PROJECT_NAME: str = "Calshare"
    API_V1_STR: str = "/api/v1"
    DAV_PREFIX: str = "/dav"
    LOG_LEVEL: str = "INFO"

    # Keep the database next to the backend directory by default
    DATABASE_URL: str = "sqlite:///../calshare.db"
    DB_CONNECT_TIMEOUT: int = 10
    DB_STATEMENT_TIMEOUT_MS: int = 15000

    # How multiple role rows for the same collection are combined
    ACCESS_POLICY: Literal["most_privileged", "first_match"] = "most_privileged"

    # Outbound invite mail (implicit TLS)
    SMTP_ADDRESS: str = "localhost"
    SMTP_PORT: int = 465
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = "noreply@localhost"
    SMTP_FROM_NAME: str = "Calshare"
    SMTP_TIMEOUT: float = 30.0

    # Celery configuration
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/0"

    @field_validator("DAV_PREFIX", mode="before")
    @classmethod
    def normalize_dav_prefix(cls, value: str) -> str:
        """Mount prefixes start with a slash and never end with one."""
        value = "/" + value.strip().strip("/")
        return value if value != "/" else ""

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def upper_log_level(cls, value: str) -> str:
        return value.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
