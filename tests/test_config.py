"""
tests/test_config.py -- Unit tests for core/config.py signing-key policy.

Settings() is constructed directly (not through the cached get_settings())
so each test controls its own environment.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from core.config import FALLBACK_SECRET_KEY, Settings


def test_missing_key_falls_back_with_warning(monkeypatch, caplog) -> None:
    monkeypatch.delenv("SECRET_KEY", raising=False)
    monkeypatch.delenv("JWT_SECRET", raising=False)
    settings = Settings(_env_file=None)
    assert settings.secret_key == FALLBACK_SECRET_KEY
    assert settings.uses_fallback_secret
    assert "SECRET_KEY is not set" in caplog.text


def test_legacy_jwt_secret_name_accepted(monkeypatch) -> None:
    monkeypatch.delenv("SECRET_KEY", raising=False)
    monkeypatch.setenv("JWT_SECRET", "j" * 32)
    assert Settings(_env_file=None).secret_key == "j" * 32


def test_short_key_rejected(monkeypatch) -> None:
    monkeypatch.setenv("SECRET_KEY", "too-short")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_defaults(monkeypatch) -> None:
    monkeypatch.setenv("SECRET_KEY", "s" * 32)
    monkeypatch.delenv("GOOGLE_CLIENT_ID", raising=False)
    settings = Settings(_env_file=None)
    assert settings.token_expire_days == 30
    assert settings.google_client_id == ""
    assert not settings.uses_fallback_secret


def test_short_legacy_jwt_secret_rejected(monkeypatch) -> None:
    monkeypatch.delenv("SECRET_KEY", raising=False)
    monkeypatch.setenv("JWT_SECRET", "short-legacy")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)
