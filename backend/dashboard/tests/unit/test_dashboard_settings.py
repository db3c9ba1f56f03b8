from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from dashboard.server.settings import DashboardSettings


@pytest.fixture(autouse=True)
def _clear_dashboard_env(monkeypatch):
    for name in (
        "PBSTATS_LOG_DIR",
        "PBSTATS_CORS_ORIGINS",
        "PBSTATS_COOKIE_SECURE",
        "PBSTATS_SITE_URL",
        "PBSTATS_DISPLAY_TIMEZONE",
        "PBSTATS_SESSION_TTL_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)


class TestDashboardSettings:
    def test_defaults(self):
        settings = DashboardSettings()
        assert settings.log_dir == "backend/logs/dashboard"
        assert settings.cors_origins == []
        assert settings.cookie_secure is False
        assert settings.site_url == "http://localhost:8000"
        assert settings.display_timezone == ""
        assert settings.timezone is None
        assert settings.session_ttl_seconds == 7 * 86400

    def test_cors_origins_json_array(self, monkeypatch):
        monkeypatch.setenv("PBSTATS_CORS_ORIGINS", '["http://x.com","http://y.com"]')
        assert DashboardSettings().cors_origins == ["http://x.com", "http://y.com"]

    def test_cors_origins_csv(self, monkeypatch):
        monkeypatch.setenv("PBSTATS_CORS_ORIGINS", "http://x.com,http://y.com")
        assert DashboardSettings().cors_origins == ["http://x.com", "http://y.com"]

    def test_cors_origins_malformed_json_raises(self, monkeypatch):
        monkeypatch.setenv("PBSTATS_CORS_ORIGINS", "[not json")
        with pytest.raises(ValidationError, match="cors_origins"):
            DashboardSettings()

    def test_site_url_trailing_slash_stripped(self, monkeypatch):
        monkeypatch.setenv("PBSTATS_SITE_URL", "https://pb.example.com/")
        assert DashboardSettings().site_url == "https://pb.example.com"

    def test_cookie_secure_override(self, monkeypatch):
        monkeypatch.setenv("PBSTATS_COOKIE_SECURE", "true")
        assert DashboardSettings().cookie_secure is True

    def test_display_timezone(self, monkeypatch):
        monkeypatch.setenv("PBSTATS_DISPLAY_TIMEZONE", "America/Denver")
        settings = DashboardSettings()
        assert settings.timezone == ZoneInfo("America/Denver")

    def test_unknown_timezone_raises(self):
        with pytest.raises(ValidationError, match="Unknown time zone"):
            DashboardSettings(display_timezone="Mars/Olympus_Mons")

    def test_session_ttl_must_be_positive(self):
        with pytest.raises(ValidationError):
            DashboardSettings(session_ttl_seconds=0)
