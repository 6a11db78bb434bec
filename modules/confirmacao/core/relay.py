# relay.py
# Camada de REGRA DE NEGÓCIO dos relays para o n8n. Sem FastAPI.
# Normaliza o corpo validado, monta o payload de saída e encaminha ao webhook.

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

import httpx

from modules.confirmacao.core.schemas import (
    ConfirmationAgendamento,
    ConfirmationMinimal,
    RiskPayload,
)

DEFAULT_PATIENT_NAME = "Paciente"
DEFAULT_SERVICE_NAME = "Consulta"


@dataclass(frozen=True)
class NormalizedConfirmation:
    appointment_id: str
    phone: str
    patient_name: str
    scheduled_at: str
    service_name: str
    professional_name: str = ""
    duracao: Optional[float] = None
    price: Optional[float] = None
    notes: Optional[str] = None


def _first(*values, default=None):
    for value in values:
        if value is not None:
            return value
    return default


def normalize_confirmation(
    body: Union[ConfirmationMinimal, ConfirmationAgendamento],
) -> NormalizedConfirmation:
    """Converte qualquer um dos dois formatos aceitos no registro canônico."""
    if isinstance(body, ConfirmationAgendamento):
        a = body.agendamento
        return NormalizedConfirmation(
            appointment_id=a.id,
            phone=a.phone,
            patient_name=_first(a.patientName, a.nome, default=DEFAULT_PATIENT_NAME),
            scheduled_at=_first(a.scheduledAt, a.scheduled_at, default=""),
            service_name=_first(a.serviceName, a.service_name, default=DEFAULT_SERVICE_NAME),
            professional_name=_first(a.professionalName, a.professional_name, default=""),
            duracao=a.duracao,
            price=a.price,
            notes=a.notes,
        )

    return NormalizedConfirmation(
        appointment_id=body.appointmentId,
        phone=body.phone,
        patient_name=body.patientName,
        scheduled_at=body.scheduledAt,
        service_name=body.serviceName,
    )


def build_confirmation_payload(normalized: NormalizedConfirmation, user_id: str) -> Dict[str, Any]:
    # Chaves duplicadas (camelCase, snake_case, PT) por compatibilidade com os fluxos do n8n
    n = normalized
    return {
        "user_id": user_id,
        "agendamento": {
            "id": n.appointment_id,
            "appointmentId": n.appointment_id,
            "appointment_id": n.appointment_id,
            "phone": n.phone,
            "patientName": n.patient_name,
            "nome": n.patient_name,
            "patient_name": n.patient_name,
            "scheduledAt": n.scheduled_at,
            "scheduled_at": n.scheduled_at,
            "serviceName": n.service_name,
            "service_name": n.service_name,
            "professionalName": n.professional_name,
            "professional_name": n.professional_name,
            "duracao": n.duracao,
            "price": n.price,
            "notes": n.notes,
        },
    }


def build_risk_payload(body: RiskPayload, user_id: str) -> Dict[str, Any]:
    return {
        "user_id": user_id,
        "appointment_id": body.appointmentId,
        "patient_name": body.patientName,
        "phone": body.phone,
        "scheduled_at": body.scheduledAt,
        "service_name": body.serviceName,
        "professional_name": body.professionalName,
        "lead_id": body.leadId,
        "notes": body.notes,
        "tags": body.tags,
        "qualification": body.qualification,
        "last_interaction": body.lastInteraction,
    }


async def forward_to_webhook(
    client: httpx.AsyncClient,
    url: str,
    payload: Dict[str, Any],
    credentials: Optional[Tuple[str, str]] = None,
) -> httpx.Response:
    """POST do payload no webhook; a resposta volta intacta para quem chamou."""
    auth = httpx.BasicAuth(*credentials) if credentials else None
    return await client.post(
        url,
        json=payload,
        auth=auth,
        headers={"Content-Type": "application/json"},
    )
