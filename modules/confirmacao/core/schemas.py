# schemas.py
# Modelos Pydantic do domínio de confirmação: linhas da tabela de agendamentos
# e os formatos aceitos pelos relays.

from __future__ import annotations
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, TypeAdapter

AppointmentStatus = Literal["pendente", "confirmado", "risco", "cancelado", "atendido"]
APPOINTMENT_STATUSES = ("pendente", "confirmado", "risco", "cancelado", "atendido")

Phone = Annotated[str, Field(min_length=10, max_length=20)]
ShortText = Annotated[str, Field(min_length=1, max_length=100)]
Number = Union[StrictInt, StrictFloat]
# Só o formato canônico com hifens; o id segue para o n8n exatamente como veio
UUIDText = Annotated[
    str,
    Field(pattern=r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"),
]

# ---------- Tabela appointments ----------

class LeadRef(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None

class Appointment(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    scheduled_at: str
    status: Optional[AppointmentStatus] = "pendente"
    confirmacaoEnviada: Optional[bool] = False
    patientName: Optional[str] = None
    phoneNumber: Optional[Union[int, str]] = None
    serviceName: Optional[str] = None
    professionalName: Optional[str] = None
    price: Optional[float] = None
    duracao: Optional[int] = None
    notes: Optional[str] = None
    lead_id: Optional[str] = None
    leads: Optional[LeadRef] = None

    @property
    def effective_status(self) -> str:
        return self.status or "pendente"

    @property
    def confirmation_sent(self) -> bool:
        return bool(self.confirmacaoEnviada)

# ---------- Relay de confirmação ----------

class ConfirmationMinimal(BaseModel):
    """Formato legado: campos no topo do corpo."""
    appointmentId: UUIDText
    phone: Phone
    patientName: ShortText
    scheduledAt: str
    serviceName: ShortText

class AgendamentoPayload(BaseModel):
    """Formato 'agendamento', aceita variações de nome PT/EN e campos extras."""
    model_config = ConfigDict(extra="allow")

    id: UUIDText
    phone: Phone
    patientName: Optional[ShortText] = None
    nome: Optional[ShortText] = None
    scheduledAt: Optional[str] = None
    scheduled_at: Optional[str] = None
    serviceName: Optional[ShortText] = None
    service_name: Optional[ShortText] = None
    professionalName: Optional[str] = None
    professional_name: Optional[str] = None
    duracao: Optional[Number] = None
    price: Optional[Number] = None
    notes: Optional[str] = None

class ConfirmationAgendamento(BaseModel):
    model_config = ConfigDict(extra="allow")

    agendamento: AgendamentoPayload

# Tenta o formato plano primeiro; só então o aninhado
ConfirmationBody = TypeAdapter(
    Annotated[
        Union[ConfirmationMinimal, ConfirmationAgendamento],
        Field(union_mode="left_to_right"),
    ]
)

# ---------- Relay de risco de no-show ----------

class RiskPayload(BaseModel):
    appointmentId: UUIDText
    patientName: ShortText
    phone: Phone
    scheduledAt: str
    serviceName: ShortText
    professionalName: ShortText
    leadId: UUIDText
    notes: Optional[Annotated[str, Field(max_length=1000)]] = None
    tags: Optional[Annotated[List[Annotated[str, Field(max_length=50)]], Field(max_length=20)]] = None
    qualification: Optional[Annotated[str, Field(max_length=50)]] = None
    lastInteraction: Optional[str] = None

RiskBody = TypeAdapter(RiskPayload)
