import pytest
from pydantic import ValidationError

from pbstats.supabase.settings import SupabaseSettings


class TestSupabaseSettings:
    def test_reads_env(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://proj.supabase.co/")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-key")

        settings = SupabaseSettings()

        assert settings.url == "https://proj.supabase.co"
        assert settings.anon_key == "anon-key"
        assert settings.timeout_seconds == 10.0
        assert settings.games_table == "games"

    def test_table_override(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_GAMES_TABLE", "games_dev")
        settings = SupabaseSettings(url="https://proj.supabase.co", anon_key="k")
        assert settings.games_table == "games_dev"

    def test_url_required(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        with pytest.raises(ValidationError):
            SupabaseSettings(anon_key="k")

    def test_anon_key_must_not_be_empty(self):
        with pytest.raises(ValidationError):
            SupabaseSettings(url="https://proj.supabase.co", anon_key="")

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            SupabaseSettings(url="https://proj.supabase.co", anon_key="k", timeout_seconds=0)
