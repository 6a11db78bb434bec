# store.py
# Acesso à tabela `appointments` via PostgREST (Supabase), com o token do usuário
# para que as políticas de RLS se apliquem.

from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from modules.confirmacao.core import datas
from modules.confirmacao.core.schemas import APPOINTMENT_STATUSES, Appointment

logger = logging.getLogger("clinica.store")

APPOINTMENT_SELECT = "*,leads(name,phone)"


class StoreError(Exception):
    def __init__(self, message: str, status: int = 0):
        super().__init__(message)
        self.message = message
        self.status = status


class SupabaseAppointmentStore:
    def __init__(
        self,
        supabase_url: str,
        anon_key: Optional[str],
        access_token: str,
        client: httpx.AsyncClient,
    ):
        self.rest_url = f"{supabase_url.rstrip('/')}/rest/v1/appointments"
        self.client = client
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }
        if anon_key:
            self.headers["apikey"] = anon_key
        self._cache: Dict[Tuple[str, str], List[Appointment]] = {}

    async def _request(self, method: str, params, json_body=None) -> httpx.Response:
        try:
            resp = await self.client.request(
                method, self.rest_url, params=params, json=json_body, headers=self.headers
            )
        except httpx.HTTPError as exc:
            raise StoreError(f"Falha de conexão com o banco: {exc}") from exc
        if not resp.is_success:
            try:
                data = resp.json()
            except ValueError:
                data = None
            detail = (data.get("message") if isinstance(data, dict) else None) or resp.text
            raise StoreError(detail or f"Erro HTTP {resp.status_code}", resp.status_code)
        return resp

    # ---------- Leitura ----------

    async def list_between(self, start_key: str, end_key: str) -> List[Appointment]:
        """Agendamentos entre duas datas (inclusive), ordenados pelo horário textual."""
        cache_key = (start_key, end_key)
        if cache_key in self._cache:
            return self._cache[cache_key]

        params = [
            ("select", APPOINTMENT_SELECT),
            ("scheduled_at", f"gte.{datas.to_stored_scheduled_at(start_key, '00:00')}"),
            ("scheduled_at", f"lte.{end_key} 23:59:59+00"),
            ("order", "scheduled_at.asc"),
        ]
        resp = await self._request("GET", params)
        rows: List[Dict[str, Any]] = resp.json()
        appointments = [Appointment.model_validate(row) for row in rows]
        appointments.sort(key=lambda a: datas.sort_key(a.scheduled_at))
        self._cache[cache_key] = appointments
        return appointments

    async def list_for_date(self, date_key: str) -> List[Appointment]:
        return await self.list_between(date_key, date_key)

    def invalidate(self) -> None:
        self._cache.clear()

    # ---------- Escrita ----------

    async def mark_confirmation_sent(self, appointment_id: str) -> None:
        # Gravar True duas vezes não tem efeito colateral
        await self._request(
            "PATCH", {"id": f"eq.{appointment_id}"}, {"confirmacaoEnviada": True}
        )
        logger.info("appointment_id=%s confirmacaoEnviada=true", appointment_id)

    async def update_status(self, appointment_id: str, status: str) -> None:
        if status not in APPOINTMENT_STATUSES:
            raise ValueError(f"Status inválido: {status}")
        await self._request("PATCH", {"id": f"eq.{appointment_id}"}, {"status": status})
        logger.info("appointment_id=%s status=%s", appointment_id, status)
