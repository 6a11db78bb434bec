# dispatcher.py
# Disparo das confirmações de agendamento via WhatsApp.
#
# Um pedido por agendamento, em sequência: cada chamada ao relay é aguardada
# antes da próxima e nunca há mais de uma pendente. O sucesso de cada item é
# gravado no banco na hora, então um lote interrompido deixa o progresso parcial
# corretamente marcado.

from __future__ import annotations
import asyncio
import logging
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, Tuple

from modules.confirmacao.core.edge_functions import (
    CONNECTION_ERROR_MESSAGE,
    EdgeFunctionError,
)
from modules.confirmacao.core.pacing import FixedDelayPacer
from modules.confirmacao.core.progress import ProgressMessage, SendProgress
from modules.confirmacao.core.relay import DEFAULT_PATIENT_NAME, DEFAULT_SERVICE_NAME
from modules.confirmacao.core.schemas import Appointment
from modules.confirmacao.core.selection import Selection
from utils.mask import mask_phone

logger = logging.getLogger("clinica.dispatcher")

CONFIRMATION_FUNCTION = "confirmation-proxy"
DEFAULT_SUCCESS_MESSAGE = "Confirmação enviada com sucesso"
NOT_FOUND_MESSAGE = "Agendamento não encontrado"
PROGRESS_CLEAR_DELAY_SECONDS = 3.0


class Notifier(Protocol):
    def toast(self, title: str, description: str = "", variant: str = "default") -> None: ...


class RelayClient(Protocol):
    async def invoke(self, function_name: str, body: Dict[str, Any]) -> Any: ...


class AppointmentWriter(Protocol):
    async def mark_confirmation_sent(self, appointment_id: str) -> None: ...

    def invalidate(self) -> None: ...


class DispatchInProgressError(RuntimeError):
    """Já existe um lote em andamento (o botão de envio está desabilitado)."""


@dataclass(frozen=True)
class ConfirmationRequest:
    appointmentId: str
    phone: str
    patientName: str
    scheduledAt: str
    serviceName: str

    def to_json(self) -> Dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class BatchSummary:
    total: int
    sent: int
    errors: int
    messages: Tuple[ProgressMessage, ...]


def build_confirmation_request(appointment: Appointment) -> ConfirmationRequest:
    phone = appointment.phoneNumber
    if phone in (None, "") and appointment.leads is not None:
        phone = appointment.leads.phone
    return ConfirmationRequest(
        appointmentId=appointment.id,
        phone="" if phone is None else str(phone),
        patientName=appointment.patientName or DEFAULT_PATIENT_NAME,
        scheduledAt=appointment.scheduled_at,
        serviceName=appointment.serviceName or DEFAULT_SERVICE_NAME,
    )


class ConfirmationDispatcher:
    def __init__(
        self,
        relay: RelayClient,
        store: AppointmentWriter,
        notifier: Notifier,
        *,
        pacer: Optional[FixedDelayPacer] = None,
        on_progress: Optional[Callable[[Optional[SendProgress]], None]] = None,
        progress_clear_delay: float = PROGRESS_CLEAR_DELAY_SECONDS,
    ):
        self.relay = relay
        self.store = store
        self.notifier = notifier
        self.pacer = pacer or FixedDelayPacer()
        self.on_progress = on_progress
        self.progress_clear_delay = progress_clear_delay
        self.progress: Optional[SendProgress] = None
        self.is_sending = False
        self._clear_handle: Optional[asyncio.TimerHandle] = None

    def _publish(self, progress: Optional[SendProgress]) -> None:
        self.progress = progress
        if self.on_progress is not None:
            self.on_progress(progress)

    async def send(
        self,
        selection: Selection,
        appointments: Mapping[str, Appointment],
    ) -> Optional[BatchSummary]:
        """Envia as confirmações dos ids selecionados e devolve o resumo do lote."""
        if self.is_sending:
            raise DispatchInProgressError("Envio de confirmações já em andamento")

        ids = selection.ids
        if not ids:
            self.notifier.toast(
                "Selecione ao menos um agendamento",
                "Nenhum agendamento foi selecionado para envio.",
                variant="destructive",
            )
            return None

        if self._clear_handle is not None:
            self._clear_handle.cancel()
            self._clear_handle = None

        self.is_sending = True
        try:
            summary = await self._run_batch(ids, appointments)
        except Exception as exc:
            logger.exception("confirmation_batch_failed error=%r", exc)
            self.notifier.toast("Erro ao enviar confirmações", str(exc), variant="destructive")
            return None
        finally:
            self.is_sending = False

        selection.clear()
        self.store.invalidate()
        self._notify_summary(summary)
        self._schedule_progress_clear()
        return summary

    async def _run_batch(self, ids, appointments: Mapping[str, Appointment]) -> BatchSummary:
        progress = SendProgress.start(len(ids))
        self._publish(progress)

        for appointment_id in ids:
            appointment = appointments.get(appointment_id)
            if appointment is None:
                logger.warning("appointment_id=%s not_in_cache", appointment_id)
                progress = progress.failed("", NOT_FOUND_MESSAGE)
                self._publish(progress)
                continue

            request = build_confirmation_request(appointment)
            async with self.pacer:
                progress = progress.sending(request.phone)
                self._publish(progress)
                progress = await self._send_one(progress, request)
            self._publish(progress)

        logger.info(
            "confirmation_batch_done total=%s sent=%s errors=%s",
            progress.total, progress.sent, progress.errors,
        )
        return BatchSummary(
            total=progress.total,
            sent=progress.sent,
            errors=progress.errors,
            messages=progress.messages,
        )

    async def _send_one(self, progress: SendProgress, request: ConfirmationRequest) -> SendProgress:
        try:
            response = await self.relay.invoke(CONFIRMATION_FUNCTION, request.to_json())
        except EdgeFunctionError as exc:
            logger.warning(
                "appointment_id=%s phone=%s status=failed http_status=%s error=%s",
                request.appointmentId, mask_phone(request.phone), exc.status, exc.message,
            )
            return progress.failed(request.phone, exc.message or CONNECTION_ERROR_MESSAGE)

        progress = progress.succeeded(request.phone, response.text or DEFAULT_SUCCESS_MESSAGE)
        logger.info(
            "appointment_id=%s phone=%s status=sent",
            request.appointmentId, mask_phone(request.phone),
        )

        try:
            await self.store.mark_confirmation_sent(request.appointmentId)
        except Exception as exc:  # mensagem já saiu; o item continua como enviado
            logger.error(
                "appointment_id=%s flag_write_failed error=%r", request.appointmentId, exc
            )
        return progress

    def _notify_summary(self, summary: BatchSummary) -> None:
        if summary.errors:
            self.notifier.toast(
                "Envio parcial",
                f"{summary.sent} enviado(s), {summary.errors} erro(s)",
                variant="warning",
            )
        else:
            self.notifier.toast(
                "Confirmações enviadas!",
                f"{summary.sent} confirmação(ões) enviada(s) com sucesso",
            )

    def _schedule_progress_clear(self) -> None:
        # O painel mostra o resultado final por alguns segundos antes de sumir
        loop = asyncio.get_running_loop()
        self._clear_handle = loop.call_later(self.progress_clear_delay, self._publish, None)
