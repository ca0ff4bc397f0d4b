"""Tests for settings that change what clients can see."""

from __future__ import annotations

from cnpj_finder.core.config import Settings


def test_error_details_hidden_by_default(monkeypatch):
    # Same state as a process started without APP_ENV
    monkeypatch.delenv("APP_ENV", raising=False)
    monkeypatch.delenv("APP_EXPOSE_ERROR_DETAILS", raising=False)

    cfg = Settings(app_env="development")

    assert cfg.app.expose_error_details is False
    assert cfg.expose_error_details is False


def test_error_details_opt_in(monkeypatch):
    monkeypatch.setenv("APP_EXPOSE_ERROR_DETAILS", "true")

    assert Settings(app_env="development").expose_error_details is True
    assert Settings(app_env="production").expose_error_details is False
