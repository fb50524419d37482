"""
Tests for settings and logging setup.

These tests verify:
  - Defaults apply when nothing is configured
  - Environment variables override defaults (case-insensitive names)
  - configure_logging() honours an explicit level
"""

import logging

from ledger.config import Settings, configure_logging


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.delenv("DEFAULT_PAGE_SIZE", raising=False)
        settings = Settings(_env_file=None)

        assert settings.DATABASE_URL == "sqlite+aiosqlite:///./data/ledger.db"
        assert settings.DEFAULT_PAGE_SIZE == 50
        assert settings.DEBUG is False

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("database_url", "sqlite+aiosqlite:///./other.db")
        monkeypatch.setenv("DEFAULT_PAGE_SIZE", "20")
        settings = Settings(_env_file=None)

        assert settings.DATABASE_URL == "sqlite+aiosqlite:///./other.db"
        assert settings.DEFAULT_PAGE_SIZE == 20


def test_configure_logging(monkeypatch):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

    configure_logging("debug")

    assert calls[0]["level"] == "DEBUG"
