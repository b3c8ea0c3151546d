from __future__ import annotations

from datetime import timedelta

import pytest
from pydantic import ValidationError

from backoffice_api.settings import Settings


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


def test_defaults_resolve_database_and_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("BACKOFFICE_DATABASE_DSN", raising=False)
    monkeypatch.delenv("BACKOFFICE_SECRET_KEY", raising=False)

    settings = _settings()

    assert settings.database_dsn.startswith("sqlite+aiosqlite:///")
    assert settings.database_dsn.endswith("backoffice.sqlite")
    assert settings.secret_key_generated is True
    assert len(settings.secret_key_value) >= 32


def test_plain_sqlite_dsn_gets_async_driver() -> None:
    settings = _settings(database_dsn="sqlite:///./data/app.sqlite")

    assert settings.database_dsn.startswith("sqlite+aiosqlite:///")


def test_durations_accept_suffixes() -> None:
    settings = _settings(
        session_ttl="2h",
        failed_login_lock_duration="90s",
        abandoned_cart_after="14d",
    )

    assert settings.session_ttl == timedelta(hours=2)
    assert settings.failed_login_lock_duration == timedelta(seconds=90)
    assert settings.abandoned_cart_after == timedelta(days=14)


def test_short_secret_is_rejected() -> None:
    with pytest.raises(ValidationError):
        _settings(secret_key="too-short")


def test_navigation_paths_must_be_local() -> None:
    with pytest.raises(ValidationError):
        _settings(login_path="https://evil.example.com/login")


def test_env_prefix_is_honoured(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BACKOFFICE_LOW_STOCK_THRESHOLD", "3")
    monkeypatch.setenv("BACKOFFICE_SERVER_CORS_ORIGINS", "http://a.test, http://b.test,http://a.test")

    settings = _settings()

    assert settings.low_stock_threshold == 3
    assert settings.server_cors_origins == ["http://a.test", "http://b.test"]


def test_secure_cookies_follow_public_url() -> None:
    assert _settings(server_public_url="https://shop.example.com/").secure_cookies is True
    assert _settings(server_public_url="http://localhost:8000").secure_cookies is False
