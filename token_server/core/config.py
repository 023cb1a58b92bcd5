"""Application configuration for the token server."""
from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .errors import ConfigMissingError

REQUIRED_ENV_VARS = ("APP_ID", "APP_CERTIFICATE")


class Settings(BaseSettings):
    """Runtime configuration, read once at startup and frozen afterwards."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    app_id: str = Field(..., min_length=1)
    app_certificate: str = Field(..., min_length=1)

    port: int = Field(default=3000, ge=1, le=65535)
    app_env: str = Field(default="development")
    cors_allow_origins: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["*"])

    @field_validator("app_id", "app_certificate", mode="before")
    @classmethod
    def _strip_secret(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: object) -> object:
        """Allow comma-separated env values for CORS origins."""

        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @property
    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"


def load_settings(**overrides: object) -> Settings:
    """Build settings, turning missing secrets into ``ConfigMissingError``."""

    try:
        return Settings(**overrides)
    except ValidationError as exc:
        missing = sorted(
            {
                str(error["loc"][0]).upper()
                for error in exc.errors()
                if error["loc"] and str(error["loc"][0]).upper() in REQUIRED_ENV_VARS
            }
        )
        if missing:
            raise ConfigMissingError(missing) from exc
        raise


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return load_settings()
