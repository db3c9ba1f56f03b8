"""Dashboard server configuration via environment variables."""

from __future__ import annotations

from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from pbstats.auth.session_store import DEFAULT_SESSION_TTL_SECONDS
from pbstats.validators import StringListEnvSettingsSource, parse_string_list

if TYPE_CHECKING:
    from pydantic_settings.sources.base import PydanticBaseSettingsSource


class DashboardSettings(BaseSettings):
    model_config = {"env_prefix": "PBSTATS_"}

    log_dir: str = "backend/logs/dashboard"
    cors_origins: list[str] = []
    cookie_secure: bool = False
    # Public base URL; password recovery links point back to {site_url}/reset.
    site_url: str = "http://localhost:8000"
    # IANA zone used to read entered times and label trend points. Empty means the server's local zone.
    display_timezone: str = ""
    session_ttl_seconds: int = Field(default=DEFAULT_SESSION_TTL_SECONDS, gt=0)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        return parse_string_list(v, allow_empty=True)

    @field_validator("site_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("display_timezone")
    @classmethod
    def validate_display_timezone(cls, v: str) -> str:
        v = v.strip()
        if v:
            try:
                ZoneInfo(v)
            except (ZoneInfoNotFoundError, ValueError) as e:
                raise ValueError(f"Unknown time zone: {v}") from e
        return v

    @property
    def timezone(self) -> ZoneInfo | None:
        return ZoneInfo(self.display_timezone) if self.display_timezone else None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings, StringListEnvSettingsSource(settings_cls), dotenv_settings, file_secret_settings)
