from __future__ import annotations

from app.core.config import Settings


def test_list_settings_accept_comma_separated_env(monkeypatch) -> None:
    monkeypatch.setenv("ADMIN_GROUPS", "ops, meet-admin ,")
    monkeypatch.setenv("RECORDING_GROUPS", "recording")

    settings = Settings()

    assert settings.admin_groups == ["ops", "meet-admin"]
    assert settings.recording_groups == ["recording"]
    assert settings.privileged_groups == frozenset({"ops", "meet-admin"})


def test_list_settings_accept_json_env(monkeypatch) -> None:
    monkeypatch.setenv("ADMIN_GROUPS", '["admin", "ops"]')
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", '["https://meet.example.com"]')

    settings = Settings()

    assert settings.admin_groups == ["admin", "ops"]
    assert settings.cors_allow_origins == ["https://meet.example.com"]


def test_privileged_groups_default_to_product_admins(monkeypatch) -> None:
    monkeypatch.delenv("ADMIN_GROUPS", raising=False)

    settings = Settings(product_slug="conf")

    assert settings.privileged_groups == frozenset({"admin", "conf-admin"})
