"""Tests for resilient_db.settings — environment-driven configuration."""

import pytest
from pydantic import ValidationError

from resilient_db.settings import ResilientDbSettings, clear_settings_cache, get_settings


class TestResilientDbSettings:
    def test_defaults(self):
        s = ResilientDbSettings()
        assert s.database_url == "memory"
        assert s.max_attempts == 3
        assert s.connect_timeout == 10.0
        assert s.log_level == "INFO"
        assert s.log_format == "json"
        assert s.json_logs is True

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("RESILIENT_DB_MAX_ATTEMPTS", "5")
        monkeypatch.setenv("RESILIENT_DB_DATABASE_URL", "postgresql://u:p@db/app")
        s = ResilientDbSettings()
        assert s.max_attempts == 5
        assert s.database_url == "postgresql://u:p@db/app"

    def test_log_level_normalised(self):
        assert ResilientDbSettings(log_level="debug").log_level == "DEBUG"

    def test_console_format(self):
        s = ResilientDbSettings(log_format="Console")
        assert s.log_format == "console"
        assert s.json_logs is False

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_attempts": 0},
            {"connect_timeout": 0},
            {"log_level": "LOUD"},
            {"log_format": "xml"},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValidationError):
            ResilientDbSettings(**kwargs)

    def test_dotenv_file(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("RESILIENT_DB_MAX_ATTEMPTS=9\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        assert ResilientDbSettings().max_attempts == 9


class TestGetSettings:
    def test_cached(self):
        assert get_settings() is get_settings()

    def test_force_reload(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("RESILIENT_DB_MAX_ATTEMPTS", "4")
        assert get_settings() is first
        assert get_settings(_force_reload=True).max_attempts == 4

    def test_clear_cache(self):
        first = get_settings()
        clear_settings_cache()
        assert get_settings() is not first
