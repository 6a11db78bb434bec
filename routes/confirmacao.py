# routes/confirmacao.py
# Relays autenticados para os webhooks do n8n (confirmação e risco de no-show).
# As credenciais do webhook ficam no servidor; o cliente só envia o token da sessão.
import logging
from typing import Any, List

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import TypeAdapter, ValidationError

from auth import get_current_user
from config import Settings, get_settings
from modules.confirmacao.core import relay
from modules.confirmacao.core.schemas import ConfirmationBody, RiskBody
from utils.http import get_http_client
from utils.mask import mask_phone

logger = logging.getLogger("clinica.relay")

router = APIRouter()


def invalid_input(details: List[Any]) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid input", "details": jsonable_encoder(details)},
    )


async def parse_body(request: Request, adapter: TypeAdapter):
    """Lê e valida o corpo; devolve (modelo, None) ou (None, resposta 400)."""
    try:
        raw_body = await request.json()
    except ValueError:
        return None, invalid_input([{"type": "json_invalid", "msg": "Corpo JSON inválido"}])
    try:
        return adapter.validate_python(raw_body), None
    except ValidationError as exc:
        return None, invalid_input(exc.errors(include_url=False))


def relay_upstream(upstream: httpx.Response) -> Response:
    # Corpo e status do webhook repassados sem alteração
    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        media_type="application/json",
    )


async def forward(name: str, client: httpx.AsyncClient, url: str, payload, credentials) -> httpx.Response:
    if not url:
        logger.error("relay=%s webhook_url_missing", name)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook URL not configured",
        )
    try:
        upstream = await relay.forward_to_webhook(client, url, payload, credentials)
    except httpx.HTTPError as exc:
        logger.error("relay=%s upstream_error error=%r", name, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        )
    logger.info("relay=%s upstream_status=%s", name, upstream.status_code)
    return upstream


@router.post("/confirmation-proxy")
async def confirmation_proxy(
    request: Request,
    current_user: dict = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """Encaminha uma confirmação de agendamento ao webhook do n8n."""
    body, error = await parse_body(request, ConfirmationBody)
    if error is not None:
        return error

    normalized = relay.normalize_confirmation(body)
    payload = relay.build_confirmation_payload(normalized, user_id=current_user["id"])

    logger.info(
        "relay=confirmation appointment_id=%s phone=%s user_id=%s",
        normalized.appointment_id,
        mask_phone(normalized.phone),
        current_user["id"],
    )
    upstream = await forward(
        "confirmation",
        client,
        settings.confirmation_webhook_url,
        payload,
        settings.webhook_credentials,
    )
    return relay_upstream(upstream)


@router.post("/risk-proxy")
async def risk_proxy(
    request: Request,
    current_user: dict = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """Encaminha um alerta de risco de falta (no-show) ao webhook do n8n."""
    body, error = await parse_body(request, RiskBody)
    if error is not None:
        return error

    payload = relay.build_risk_payload(body, user_id=current_user["id"])
    upstream = await forward(
        "risk",
        client,
        settings.risk_webhook_url,
        payload,
        settings.webhook_credentials,
    )
    return relay_upstream(upstream)
