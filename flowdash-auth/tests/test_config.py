import logging

import pytest

from flowdash_auth.config import get_settings
from flowdash_auth.middleware.logging_middleware import MASKED, mask_sensitive_fields
from flowdash_auth.services.mailer import LoggingMailer


@pytest.fixture
def fresh_settings():
    get_settings.cache_clear()
    yield get_settings
    get_settings.cache_clear()


def test_settings_from_environment(monkeypatch, tmp_path, fresh_settings):
    monkeypatch.setenv("FLOWDASH_DB_PATH", str(tmp_path / "auth.db"))
    monkeypatch.setenv("FLOWDASH_SECRET_KEY", "configured-secret")
    monkeypatch.setenv("FLOWDASH_FRONTEND_URL", "https://app.flowdash.io/")
    monkeypatch.setenv("FLOWDASH_BCRYPT_ROUNDS", "13")
    monkeypatch.setenv("FLOWDASH_SEED_DEMO_USERS", "false")

    settings = fresh_settings()
    assert settings.database_url == f"sqlite:///{tmp_path / 'auth.db'}"
    assert settings.secret_key == "configured-secret"
    assert settings.frontend_url == "https://app.flowdash.io"
    assert settings.bcrypt_rounds == 13
    assert settings.seed_demo_users is False


def test_settings_defaults_are_safe(monkeypatch, fresh_settings):
    monkeypatch.delenv("FLOWDASH_SECRET_KEY", raising=False)
    monkeypatch.setenv("FLOWDASH_BCRYPT_ROUNDS", "4")

    settings = fresh_settings()
    assert len(settings.secret_key) == 64
    assert settings.bcrypt_rounds == 10
    assert settings.seed_demo_users is True


def test_mask_sensitive_fields():
    body = {
        "email": "jane@x.com",
        "password": "secret1",
        "newPassword": "newpass1",
        "token": "abc",
        "nested": {"password": "x", "items": [{"token": "y"}]},
    }
    masked = mask_sensitive_fields(body)

    assert masked["email"] == "jane@x.com"
    assert masked["password"] == MASKED
    assert masked["newPassword"] == MASKED
    assert masked["token"] == MASKED
    assert masked["nested"]["password"] == MASKED
    assert masked["nested"]["items"][0]["token"] == MASKED
    assert body["password"] == "secret1"


def test_logging_mailer_builds_links(caplog):
    mailer = LoggingMailer("http://localhost:5173/")

    with caplog.at_level(logging.INFO, logger="flowdash_auth.services.mailer"):
        mailer.send_verification("jane+test@x.com", "Jane", "abc123")
        mailer.send_password_reset("jane+test@x.com", "Jane", "def456")

    assert "http://localhost:5173/auth?token=abc123&email=jane%2Btest%40x.com" in caplog.text
    assert "http://localhost:5173/reset-password?token=def456&email=jane%2Btest%40x.com" in caplog.text
    assert "Subject: Verify your FlowDash account" in caplog.text
    assert "Subject: Reset your FlowDash password" in caplog.text
