# schemas.py
# Modelos Pydantic (contrato) usados pelo adapter FastAPI da agenda.

from __future__ import annotations
from typing import Dict, List, Optional
from pydantic import BaseModel

from modules.confirmacao.core.schemas import AppointmentStatus

class PendingAppointment(BaseModel):
    id: str
    horario: str
    patientName: Optional[str] = None
    phone: Optional[str] = None
    serviceName: Optional[str] = None
    professionalName: Optional[str] = None
    status: str

class DaySummary(BaseModel):
    date: str
    total: int
    sent: int
    notSent: int
    byStatus: Dict[str, int] = {}

class ConfirmationOverview(BaseModel):
    date: str
    pendentes: List[PendingAppointment]
    semana: List[DaySummary]
    riscoNoShow: int

class StatusUpdate(BaseModel):
    status: AppointmentStatus

class StatusUpdated(BaseModel):
    id: str
    status: AppointmentStatus
