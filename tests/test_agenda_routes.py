from __future__ import annotations

import json

import httpx

from conftest import auth_headers

ROWS = [
    {"id": "a1", "scheduled_at": "2026-01-20 09:00:00+00", "status": "pendente",
     "confirmacaoEnviada": False, "patientName": "Ana", "phoneNumber": 5511911112222},
    {"id": "a2", "scheduled_at": "2026-01-20 10:00:00+00", "status": "risco",
     "confirmacaoEnviada": False, "patientName": None, "phoneNumber": None,
     "leads": {"name": "Beto", "phone": "5511933334444"}},
    {"id": "a3", "scheduled_at": "2026-01-20 11:00:00+00", "status": "confirmado",
     "confirmacaoEnviada": True, "patientName": "Caio"},
    {"id": "a4", "scheduled_at": "2026-01-22 08:00:00+00", "status": "pendente",
     "confirmacaoEnviada": False, "patientName": "Duda"},
]


def test_overview_lists_pending_week_and_risk(api_client, upstream) -> None:
    upstream.responder = lambda request: httpx.Response(200, json=ROWS)

    resp = api_client.get("/agenda/confirmacoes", params={"data": "2026-01-20"}, headers=auth_headers())

    assert resp.status_code == 200
    body = resp.json()
    assert [p["id"] for p in body["pendentes"]] == ["a1", "a2"]
    assert body["pendentes"][1]["phone"] == "5511933334444"
    assert body["pendentes"][1]["patientName"] == "Paciente"
    assert body["riscoNoShow"] == 1
    assert len(body["semana"]) == 7
    assert body["semana"][0] == {
        "date": "2026-01-20", "total": 3, "sent": 1, "notSent": 2,
        "byStatus": {"pendente": 1, "risco": 1, "confirmado": 1},
    }
    assert body["semana"][2]["notSent"] == 1

    [request] = upstream.calls
    assert request.url.params.get_list("scheduled_at")[1] == "lte.2026-01-26 23:59:59+00"
    assert request.headers["Authorization"].startswith("Bearer ")


def test_overview_requires_session(api_client, upstream) -> None:
    resp = api_client.get("/agenda/confirmacoes", params={"data": "2026-01-20"})

    assert resp.status_code == 401
    assert upstream.calls == []


def test_status_update_patches_appointment(api_client, upstream) -> None:
    upstream.status = 204
    upstream.body = b""

    resp = api_client.patch("/agenda/a1/status", json={"status": "confirmado"}, headers=auth_headers())

    assert resp.status_code == 200
    assert resp.json() == {"id": "a1", "status": "confirmado"}
    assert json.loads(upstream.calls[0].content) == {"status": "confirmado"}


def test_status_update_validates_status(api_client, upstream) -> None:
    resp = api_client.patch("/agenda/a1/status", json={"status": "remarcado"}, headers=auth_headers())

    assert resp.status_code == 422
    assert upstream.calls == []
