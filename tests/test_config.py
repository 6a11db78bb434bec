from __future__ import annotations

from config import get_settings


def test_settings_are_read_at_call_time(monkeypatch) -> None:
    monkeypatch.setenv("N8N_CONFIRMATION_WEBHOOK_URL", " https://n8n.example.com/webhook/a ")
    monkeypatch.delenv("N8N_WEBHOOK_USERNAME", raising=False)
    monkeypatch.setenv("N8N_WEBHOOK_PASSWORD", "  segredo\n")
    first = get_settings()

    monkeypatch.setenv("N8N_CONFIRMATION_WEBHOOK_URL", "https://n8n.example.com/webhook/b")
    second = get_settings()

    assert first.confirmation_webhook_url == "https://n8n.example.com/webhook/a"
    assert second.confirmation_webhook_url == "https://n8n.example.com/webhook/b"
    assert first.webhook_credentials == ("webhook_api", "segredo")


def test_functions_url_defaults_to_supabase_project(monkeypatch) -> None:
    monkeypatch.setenv("SUPABASE_URL", "https://proj.supabase.co/")
    monkeypatch.delenv("RELAY_FUNCTIONS_URL", raising=False)
    assert get_settings().functions_url == "https://proj.supabase.co/functions/v1"

    monkeypatch.setenv("RELAY_FUNCTIONS_URL", "http://localhost:8000/functions/v1/")
    assert get_settings().functions_url == "http://localhost:8000/functions/v1"
