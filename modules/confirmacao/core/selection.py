# selection.py
# Filtros por dia/semana e seleção dos agendamentos que podem receber confirmação.

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from modules.confirmacao.core import datas
from modules.confirmacao.core.schemas import Appointment

# Status que nunca recebem pedido de confirmação
NOT_SELECTABLE_STATUSES = frozenset({"cancelado", "atendido"})


@dataclass(frozen=True)
class DayBucket:
    date_key: str
    total: int
    sent: int
    not_sent: int
    by_status: Dict[str, int] = field(default_factory=dict)


def appointments_for_date(appointments: Iterable[Appointment], date_key: str) -> List[Appointment]:
    day = [a for a in appointments if datas.date_key(a.scheduled_at) == date_key]
    day.sort(key=lambda a: datas.sort_key(a.scheduled_at))
    return day


def is_selectable(appointment: Appointment) -> bool:
    return (
        not appointment.confirmation_sent
        and appointment.effective_status not in NOT_SELECTABLE_STATUSES
    )


def pending_confirmations(appointments: Iterable[Appointment], date_key: str) -> List[Appointment]:
    """Agendamentos do dia ainda sem confirmação enviada."""
    return [a for a in appointments_for_date(appointments, date_key) if is_selectable(a)]


def day_bucket(appointments: Iterable[Appointment], date_key: str) -> DayBucket:
    day = [
        a for a in appointments_for_date(appointments, date_key)
        if a.effective_status not in NOT_SELECTABLE_STATUSES
    ]
    sent = sum(1 for a in day if a.confirmation_sent)
    return DayBucket(
        date_key=date_key,
        total=len(day),
        sent=sent,
        not_sent=len(day) - sent,
        by_status=dict(Counter(a.effective_status for a in day)),
    )


def week_buckets(appointments: Iterable[Appointment], start_key: str, days: int = 7) -> List[DayBucket]:
    items = list(appointments)
    return [day_bucket(items, datas.add_days(start_key, offset)) for offset in range(days)]


def no_show_risk_count(appointments: Iterable[Appointment], date_key: str) -> int:
    return sum(1 for a in appointments_for_date(appointments, date_key) if a.effective_status == "risco")


class Selection:
    """Conjunto ordenado de ids marcados na tela (a ordem é a ordem de envio)."""

    def __init__(self, ids: Iterable[str] = ()):
        self._ids: Dict[str, None] = dict.fromkeys(ids)

    @property
    def ids(self) -> List[str]:
        return list(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, appointment_id: object) -> bool:
        return appointment_id in self._ids

    def select(self, appointment_id: str) -> None:
        self._ids.setdefault(appointment_id, None)

    def toggle(self, appointment_id: str) -> None:
        if appointment_id in self._ids:
            del self._ids[appointment_id]
        else:
            self._ids[appointment_id] = None

    def select_all(self, appointments: Iterable[Appointment]) -> None:
        for appointment in appointments:
            if is_selectable(appointment):
                self.select(appointment.id)

    def clear(self) -> None:
        self._ids.clear()
