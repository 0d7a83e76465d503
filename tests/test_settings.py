"""Tests for config/settings.py: environment-driven configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from config.settings import Settings
from core.errors import MissingCredentialError


class TestSettings:
    def test_reads_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("ANTHROPIC_API_KEY", " sk-test ")
        monkeypatch.setenv("BRIEF_MODEL", "claude-test")
        monkeypatch.setenv("BRIEF_TIMEOUT_SEC", "7.5")
        monkeypatch.setenv("BRIEF_DEMO_FALLBACK", "0")
        monkeypatch.setenv("DB_PATH", str(tmp_path / "x.db"))
        monkeypatch.setenv("PUBLIC_ORIGIN", "https://briefs.example/")

        settings = Settings()

        assert settings.anthropic_api_key == "sk-test"
        assert settings.brief_model == "claude-test"
        assert settings.request_timeout == 7.5
        assert settings.demo_fallback is False
        assert settings.db_path == Path(tmp_path / "x.db")
        assert settings.public_origin == "https://briefs.example"

    def test_demo_fallback_defaults_on(self, monkeypatch):
        monkeypatch.delenv("BRIEF_DEMO_FALLBACK", raising=False)
        assert Settings().demo_fallback is True

    def test_validate_without_key(self):
        with pytest.raises(MissingCredentialError, match="ANTHROPIC_API_KEY"):
            Settings(anthropic_api_key="").validate()

    def test_validate_with_key(self):
        settings = Settings(anthropic_api_key="sk-test")
        settings.validate()
        assert settings.has_credential
