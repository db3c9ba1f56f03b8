"""Supabase project settings."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class SupabaseSettings(BaseSettings):
    model_config = {"env_prefix": "SUPABASE_"}

    # Project URL, e.g. https://abcd1234.supabase.co -- required, no default.
    url: str = Field(min_length=1)

    # Public anon key; row ownership is enforced by the table policy, not by this key.
    anon_key: str = Field(min_length=1)

    timeout_seconds: float = Field(default=10.0, gt=0)
    games_table: str = "games"

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")
