import pytest
from pydantic import ValidationError

from authbot.settings import Settings, get_settings


def test_defaults(monkeypatch):
    monkeypatch.setenv("BOT_TOKEN", "1:abc")
    settings = Settings(_env_file=None)

    assert settings.code_ttl_seconds == 20
    assert settings.code_single_use is False
    assert settings.bot_autostart is True
    assert settings.brand_name == "Viloyat Taxi"


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("BOT_TOKEN", "1:abc")
    monkeypatch.setenv("CODE_TTL_SECONDS", "45")
    monkeypatch.setenv("CODE_SINGLE_USE", "true")

    settings = Settings(_env_file=None)

    assert settings.code_ttl_seconds == 45
    assert settings.code_single_use is True


def test_missing_bot_token_is_fatal(monkeypatch):
    monkeypatch.delenv("BOT_TOKEN", raising=False)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_empty_bot_token_is_rejected(monkeypatch):
    monkeypatch.setenv("BOT_TOKEN", "")

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_get_settings_is_cached():
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()
