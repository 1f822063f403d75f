"""ServerSettings tests — environment parsing."""

from dataclasses import FrozenInstanceError

import pytest

from legal_intake_server.config import ServerSettings, load_settings


class TestLoadSettings:
    def test_defaults(self, monkeypatch):
        for name in ("SESSION_BACKEND", "REDIS_URL", "DISABLE_RATE_LIMIT", "OPENAI_API_KEY"):
            monkeypatch.delenv(name, raising=False)
        settings = load_settings()
        assert settings.session_backend == "memory"
        assert settings.redis_url is None
        assert settings.rate_limit_enabled is True
        assert settings.openai_api_key is None

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("SERVER_CORS_ORIGINS", "https://a.example, https://b.example")
        monkeypatch.setenv("SESSION_BACKEND", "database")
        monkeypatch.setenv("DISABLE_RATE_LIMIT", "true")
        monkeypatch.setenv("REDIS_URL", "redis://cache:6379/0")
        monkeypatch.setenv("SERVER_LOG_LEVEL", "debug")
        settings = load_settings()
        assert settings.cors_origins == ["https://a.example", "https://b.example"]
        assert settings.session_backend == "database"
        assert settings.rate_limit_enabled is False
        assert settings.redis_url == "redis://cache:6379/0"
        assert settings.log_level == "DEBUG"

    def test_unknown_backend(self, monkeypatch):
        monkeypatch.setenv("SESSION_BACKEND", "mongo")
        with pytest.raises(ValueError, match="SESSION_BACKEND"):
            load_settings()

    def test_frozen(self):
        with pytest.raises(FrozenInstanceError):
            ServerSettings().port = 1
