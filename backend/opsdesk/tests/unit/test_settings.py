"""Tests for environment-driven configuration."""

from opsdesk.config.settings import (
    DEFAULT_CHAT_MAX_TOKENS,
    DEFAULT_MAX_PROMPT_CHARS,
    DEFAULT_OPENAI_MODEL,
    DEFAULT_SUMMARY_MAX_TOKENS,
    DEFAULT_TIMEZONE,
    DeskSettings,
)

ENV_VARS = [
    "DATABASE_URL",
    "SUPABASE_JWT_SECRET",
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "OPENAI_MAX_TOKENS_SUMMARY",
    "OPENAI_MAX_TOKENS_CHAT",
    "CRON_SECRET",
    "INTELLIGENCE_CRON_URL",
    "INTELLIGENCE_TIMEZONE",
    "INTELLIGENCE_RECENT_DAYS",
    "INTELLIGENCE_TASK_LIMIT",
    "INTELLIGENCE_MAX_PROMPT_CHARS",
]


class TestDeskSettingsFromEnv:

    def _clear(self, monkeypatch):
        for name in ENV_VARS:
            monkeypatch.delenv(name, raising=False)

    def test_defaults(self, monkeypatch):
        self._clear(monkeypatch)

        settings = DeskSettings.from_env()

        assert settings.openai_model == DEFAULT_OPENAI_MODEL
        assert settings.summary_max_tokens == DEFAULT_SUMMARY_MAX_TOKENS == 900
        assert settings.chat_max_tokens == DEFAULT_CHAT_MAX_TOKENS == 700
        assert settings.default_timezone == DEFAULT_TIMEZONE == "Asia/Karachi"
        assert settings.max_prompt_chars == DEFAULT_MAX_PROMPT_CHARS == 45000
        assert settings.openai_api_key is None
        assert settings.cron_secret is None

    def test_values_are_read(self, monkeypatch):
        self._clear(monkeypatch)
        monkeypatch.setenv("OPENAI_API_KEY", "sk-live")
        monkeypatch.setenv("OPENAI_MODEL", "gpt-4.1-mini")
        monkeypatch.setenv("OPENAI_MAX_TOKENS_SUMMARY", "1200")
        monkeypatch.setenv("CRON_SECRET", "shh")
        monkeypatch.setenv("INTELLIGENCE_TIMEZONE", "Asia/Dubai")

        settings = DeskSettings.from_env()

        assert settings.openai_api_key == "sk-live"
        assert settings.openai_model == "gpt-4.1-mini"
        assert settings.summary_max_tokens == 1200
        assert settings.cron_secret == "shh"
        assert settings.default_timezone == "Asia/Dubai"

    def test_unusable_numbers_fall_back_to_defaults(self, monkeypatch):
        self._clear(monkeypatch)
        monkeypatch.setenv("OPENAI_MAX_TOKENS_CHAT", "lots")
        monkeypatch.setenv("INTELLIGENCE_RECENT_DAYS", "-3")

        settings = DeskSettings.from_env()

        assert settings.chat_max_tokens == DEFAULT_CHAT_MAX_TOKENS
        assert settings.recent_days == 14

    def test_blank_secrets_are_treated_as_unset(self, monkeypatch):
        self._clear(monkeypatch)
        monkeypatch.setenv("CRON_SECRET", "   ")

        assert DeskSettings.from_env().cron_secret is None

    def test_secrets_are_not_logged(self, monkeypatch, caplog):
        import logging

        self._clear(monkeypatch)
        monkeypatch.setenv("OPENAI_API_KEY", "sk-very-secret")

        with caplog.at_level(logging.INFO):
            DeskSettings.from_env()

        assert "sk-very-secret" not in caplog.text
