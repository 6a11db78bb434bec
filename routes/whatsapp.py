import json
import logging

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from auth import get_current_user
from config import Settings, get_settings
from routes.confirmacao import forward
from utils.http import get_http_client

logger = logging.getLogger("clinica.relay")

router = APIRouter()


@router.post("/whatsapp-proxy")
async def whatsapp_proxy(
    current_user: dict = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """
    Consulta o status da conexão WhatsApp (QR code / instância) no n8n.
    O user_id sai do token validado, nunca do corpo enviado pelo cliente.
    """
    upstream = await forward(
        "whatsapp",
        client,
        settings.whatsapp_webhook_url,
        {"user_id": current_user["id"]},
        None,
    )

    # O n8n pode responder texto puro; nesse caso devolvemos como string JSON
    try:
        data = upstream.json()
    except json.JSONDecodeError:
        data = upstream.text

    return JSONResponse(content=data, status_code=upstream.status_code)
