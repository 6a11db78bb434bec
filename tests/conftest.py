from __future__ import annotations

import time
from typing import Any, Callable

import httpx
import pytest
from fastapi.testclient import TestClient
from jose import jwt

from config import Settings, get_settings
from main import app
from modules.confirmacao.core.schemas import Appointment
from utils.http import get_http_client


SUPABASE_URL = "https://proj.supabase.co"
JWT_SECRET = "segredo-de-teste"
USER_ID = "6f1c2a9e-1111-4c3b-9a55-0d2b7c1e0001"


def make_token(sub: str = USER_ID, secret: str = JWT_SECRET, **claims: Any) -> str:
    payload = {
        "sub": sub,
        "email": "recepcao@clinica.com.br",
        "aud": "authenticated",
        "iss": f"{SUPABASE_URL}/auth/v1",
        "exp": int(time.time()) + 3600,
    }
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(token: str | None = None) -> dict[str, str]:
    return {"Authorization": f"Bearer {token or make_token()}"}


def make_settings(**overrides: Any) -> Settings:
    values = {
        "supabase_url": SUPABASE_URL,
        "supabase_anon_key": "anon-key",
        "supabase_jwt_secret": JWT_SECRET,
        "confirmation_webhook_url": "https://n8n.example.com/webhook/confirmacao",
        "risk_webhook_url": "https://n8n.example.com/webhook/risco",
        "whatsapp_webhook_url": "https://n8n.example.com/webhook/whatsapp",
        "webhook_username": "webhook_api",
        "webhook_password": "s3cret",
    }
    values.update(overrides)
    return Settings(**values)


def appointment(appointment_id: str, scheduled_at: str, **fields: Any) -> Appointment:
    row = {
        "id": appointment_id,
        "scheduled_at": scheduled_at,
        "status": "pendente",
        "confirmacaoEnviada": False,
        "patientName": "Maria Souza",
        "phoneNumber": 5511988887777,
        "serviceName": "Limpeza de pele",
        "professionalName": "Dra. Ana",
        "lead_id": "lead-1",
    }
    row.update(fields)
    return Appointment.model_validate(row)


class FakeUpstream:
    """Servidor externo falso (webhook do n8n ou PostgREST) via httpx.MockTransport."""

    def __init__(self) -> None:
        self.calls: list[httpx.Request] = []
        self.status = 200
        self.body: bytes = b'{"ok":true}'
        self.error: Exception | None = None
        self.responder: Callable[[httpx.Request], httpx.Response] | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if self.error is not None:
            raise self.error
        if self.responder is not None:
            return self.responder(request)
        return httpx.Response(self.status, content=self.body)


class RecordingNotifier:
    def __init__(self) -> None:
        self.toasts: list[tuple[str, str, str]] = []

    def toast(self, title: str, description: str = "", variant: str = "default") -> None:
        self.toasts.append((title, description, variant))


class FakeStore:
    """Tabela de agendamentos em memória com a mesma interface do store Supabase."""

    def __init__(self, appointments: list[Appointment]) -> None:
        self.rows = {a.id: a for a in appointments}
        self.writes: list[str] = []
        self.invalidations = 0
        self.fail_writes = False

    async def list_for_date(self, date_key: str) -> list[Appointment]:
        return list(self.rows.values())

    async def mark_confirmation_sent(self, appointment_id: str) -> None:
        self.writes.append(appointment_id)
        if self.fail_writes:
            raise RuntimeError("banco indisponível")
        row = self.rows[appointment_id]
        self.rows[appointment_id] = row.model_copy(update={"confirmacaoEnviada": True})

    def invalidate(self) -> None:
        self.invalidations += 1


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def api_client(upstream: FakeUpstream, settings: Settings):
    async def _http_client():
        async with httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler)) as client:
            yield client

    app.dependency_overrides[get_http_client] = _http_client
    app.dependency_overrides[get_settings] = lambda: settings
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
