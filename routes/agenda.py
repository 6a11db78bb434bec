from datetime import date
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, status

from auth import get_current_user, oauth2_scheme
from config import Settings, get_settings
from modules.confirmacao.core import datas, selection
from modules.confirmacao.core.dispatcher import build_confirmation_request
from modules.confirmacao.core.store import StoreError, SupabaseAppointmentStore
from routes.schemas import (
    ConfirmationOverview,
    DaySummary,
    PendingAppointment,
    StatusUpdate,
    StatusUpdated,
)
from utils.http import get_http_client

router = APIRouter()


async def get_appointment_store(
    token: Optional[str] = Depends(oauth2_scheme),
    current_user: dict = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> SupabaseAppointmentStore:
    """Store da tabela de agendamentos autenticado com o token do próprio usuário."""
    if not settings.supabase_url:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        )
    return SupabaseAppointmentStore(settings.supabase_url, settings.supabase_anon_key, token, client)


def _store_failure(exc: StoreError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=f"Erro ao acessar os agendamentos: {exc.message}",
    )


@router.get("/confirmacoes", response_model=ConfirmationOverview)
async def confirmation_overview(
    data: date = Query(..., description="Dia no formato YYYY-MM-DD"),
    store: SupabaseAppointmentStore = Depends(get_appointment_store),
):
    """Agendamentos do dia ainda sem confirmação, resumo da semana e risco de no-show."""
    day_key = data.isoformat()
    try:
        appointments = await store.list_between(day_key, datas.add_days(day_key, 6))
    except StoreError as exc:
        raise _store_failure(exc)

    pendentes = []
    for appointment in selection.pending_confirmations(appointments, day_key):
        request = build_confirmation_request(appointment)
        pendentes.append(
            PendingAppointment(
                id=appointment.id,
                horario=datas.time_key(appointment.scheduled_at),
                patientName=request.patientName,
                phone=request.phone or None,
                serviceName=request.serviceName,
                professionalName=appointment.professionalName,
                status=appointment.effective_status,
            )
        )

    semana = [
        DaySummary(
            date=bucket.date_key,
            total=bucket.total,
            sent=bucket.sent,
            notSent=bucket.not_sent,
            byStatus=bucket.by_status,
        )
        for bucket in selection.week_buckets(appointments, day_key)
    ]

    return ConfirmationOverview(
        date=day_key,
        pendentes=pendentes,
        semana=semana,
        riscoNoShow=selection.no_show_risk_count(appointments, day_key),
    )


@router.patch("/{appointment_id}/status", response_model=StatusUpdated)
async def update_appointment_status(
    appointment_id: str,
    body: StatusUpdate,
    store: SupabaseAppointmentStore = Depends(get_appointment_store),
):
    """Atualiza o status de um agendamento (pendente, confirmado, risco, ...)."""
    try:
        await store.update_status(appointment_id, body.status)
    except StoreError as exc:
        raise _store_failure(exc)
    return StatusUpdated(id=appointment_id, status=body.status)
