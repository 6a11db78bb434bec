"""Linha de comando para listar e enviar confirmações de agendamento."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from datetime import date as Date
from typing import Optional, Sequence

import httpx

from config import get_settings
from modules.confirmacao.core import datas, selection
from modules.confirmacao.core.dispatcher import ConfirmationDispatcher, build_confirmation_request
from modules.confirmacao.core.edge_functions import EdgeFunctionClient
from modules.confirmacao.core.progress import SendProgress
from modules.confirmacao.core.store import SupabaseAppointmentStore

logger = logging.getLogger("clinica.cli")


class ConsoleNotifier:
    """Mostra os avisos (toasts) do disparador no terminal."""

    def toast(self, title: str, description: str = "", variant: str = "default") -> None:
        level = logging.INFO if variant == "default" else logging.WARNING
        logger.log(level, "toast variant=%s title=%s description=%s", variant, title, description)
        print(f"[{variant}] {title}" + (f" - {description}" if description else ""))


def print_progress(progress: Optional[SendProgress]) -> None:
    if progress is None:
        return
    if progress.current_phone:
        print(f"  enviando para {progress.current_phone}...")
        return
    if progress.messages:
        last = progress.messages[-1]
        mark = "ok" if last.success else "erro"
        print(f"  [{mark}] {last.phone or '-'}: {last.message}")
    print(f"  {progress.processed}/{progress.total} ({progress.sent} enviado(s), {progress.errors} erro(s))")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="clinica", description="Confirmações de agendamento via WhatsApp")
    parser.add_argument("--token", help="Token de acesso da sessão (padrão: SUPABASE_ACCESS_TOKEN)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    pending_parser = subparsers.add_parser("pendentes", help="Lista agendamentos sem confirmação enviada")
    pending_parser.add_argument("--data", type=Date.fromisoformat, required=True, help="Dia no formato YYYY-MM-DD")
    pending_parser.set_defaults(handler=_handle_pending)

    send_parser = subparsers.add_parser("enviar", help="Envia as confirmações do dia")
    send_parser.add_argument("--data", type=Date.fromisoformat, required=True, help="Dia no formato YYYY-MM-DD")
    send_parser.add_argument(
        "--id",
        dest="ids",
        action="append",
        default=[],
        help="Id de agendamento a enviar (repetível). Sem --id, envia todos os pendentes do dia.",
    )
    send_parser.set_defaults(handler=_handle_send)

    return parser


def _resolve_session(args: argparse.Namespace):
    settings = get_settings()
    if not settings.supabase_url:
        raise SystemExit("SUPABASE_URL não configurada")
    token = args.token or os.getenv("SUPABASE_ACCESS_TOKEN")
    if not token:
        raise SystemExit("Informe --token ou defina SUPABASE_ACCESS_TOKEN")
    return settings, token


async def _pending(args: argparse.Namespace, settings, token: str) -> int:
    day_key = args.data.isoformat()
    async with httpx.AsyncClient(timeout=30.0) as client:
        store = SupabaseAppointmentStore(settings.supabase_url, settings.supabase_anon_key, token, client)
        appointments = await store.list_for_date(day_key)

    pending = selection.pending_confirmations(appointments, day_key)
    print(f"{datas.format_date_key_br(day_key)}: {len(pending)} confirmação(ões) pendente(s)")
    for appointment in pending:
        request = build_confirmation_request(appointment)
        print(
            f"  {datas.time_key(appointment.scheduled_at)} {request.patientName} "
            f"({request.serviceName}) {request.phone or 'sem telefone'} [{appointment.id}]"
        )
    return 0


async def _send(args: argparse.Namespace, settings, token: str) -> int:
    day_key = args.data.isoformat()

    # Sem timeout explícito nas chamadas ao relay
    async with httpx.AsyncClient(timeout=None) as client:
        store = SupabaseAppointmentStore(settings.supabase_url, settings.supabase_anon_key, token, client)
        appointments = await store.list_for_date(day_key)
        pending = selection.pending_confirmations(appointments, day_key)

        chosen = selection.Selection()
        if args.ids:
            selectable = {a.id for a in pending}
            for appointment_id in args.ids:
                if appointment_id not in selectable:
                    raise SystemExit(f"Agendamento {appointment_id} não está pendente em {day_key}")
                chosen.select(appointment_id)
        else:
            chosen.select_all(pending)

        relay = EdgeFunctionClient(settings.functions_url, settings.supabase_anon_key, token, client)
        dispatcher = ConfirmationDispatcher(
            relay,
            store,
            ConsoleNotifier(),
            on_progress=print_progress,
        )
        summary = await dispatcher.send(chosen, {a.id: a for a in pending})

    if summary is None:
        return 1
    return 0 if summary.errors == 0 else 2


def _handle_pending(args: argparse.Namespace) -> int:
    return asyncio.run(_pending(args, *_resolve_session(args)))


def _handle_send(args: argparse.Namespace) -> int:
    return asyncio.run(_send(args, *_resolve_session(args)))


def main(argv: Sequence[str] | None = None) -> int:
    logging.basicConfig(level=logging.WARNING, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    parser = _build_parser()
    args = parser.parse_args(argv)
    return args.handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
