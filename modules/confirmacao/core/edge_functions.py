# edge_functions.py
# Cliente dos relays (funções de borda) usado pelo disparador de confirmações.

from __future__ import annotations
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger("clinica.edge")

SESSION_EXPIRED_MESSAGE = "Sessão expirada. Faça login novamente."
CONNECTION_ERROR_MESSAGE = "Erro de conexão. Verifique sua internet."


class EdgeFunctionError(Exception):
    """Falha ao chamar um relay. status=0 indica erro de rede/transporte."""

    def __init__(self, message: str, status: int, data: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.data = data


@dataclass(frozen=True)
class EdgeFunctionResponse:
    data: Any
    status: int
    text: str


def _parse_body(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return text


def _error_message(data: Any, text: str, status: int) -> str:
    if isinstance(data, dict):
        for key in ("error", "detail", "message"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
    if isinstance(data, str) and text.strip():
        return text.strip()
    return f"Erro {status}"


class EdgeFunctionClient:
    def __init__(
        self,
        functions_url: str,
        anon_key: Optional[str],
        access_token: Optional[str],
        client: httpx.AsyncClient,
    ):
        self.functions_url = functions_url.rstrip("/")
        self.anon_key = anon_key
        self.access_token = access_token
        self.client = client

    async def invoke(self, function_name: str, body: Dict[str, Any]) -> EdgeFunctionResponse:
        """Chama o relay com o token da sessão; erros viram EdgeFunctionError."""
        if not self.access_token:
            logger.error("edge_function=%s no_access_token", function_name)
            raise EdgeFunctionError(SESSION_EXPIRED_MESSAGE, 401)

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.access_token}",
        }
        if self.anon_key:
            headers["apikey"] = self.anon_key

        try:
            response = await self.client.post(
                f"{self.functions_url}/{function_name}",
                json=body,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            logger.error("edge_function=%s network_error error=%r", function_name, exc)
            raise EdgeFunctionError(CONNECTION_ERROR_MESSAGE, 0, exc) from exc

        text = response.text
        data = _parse_body(text)
        logger.info("edge_function=%s status=%s", function_name, response.status_code)

        if not response.is_success:
            message = _error_message(data, text, response.status_code)
            raise EdgeFunctionError(message, response.status_code, data)

        return EdgeFunctionResponse(data=data, status=response.status_code, text=text)
